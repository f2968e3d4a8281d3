"""Lead enrichment.

Best-effort profile lookup run in the background after classification.
The lookup is simulated from the email domain; a real provider (Clearbit,
Hunter.io, LinkedIn) would slot in behind `lookup_profile`.
"""

import asyncio
import logging
import random
import re
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lead_orchestrator.core.config import settings
from lead_orchestrator.core.database import async_session
from lead_orchestrator.models.lead import Lead

logger = logging.getLogger(__name__)

FREE_EMAIL_DOMAINS = frozenset({"gmail.com", "yahoo.com", "hotmail.com", "outlook.com"})
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def verify_email(email: str) -> bool:
    """Basic syntactic email check."""
    return bool(_EMAIL_RE.match(email or ""))


async def lookup_profile(email: str, delay: Optional[float] = None) -> dict:
    """Simulated profile lookup. Company addresses yield a company profile."""
    await asyncio.sleep(settings.ENRICHMENT_DELAY_SECONDS if delay is None else delay)

    local_part, _, domain = email.partition("@")
    domain = domain.lower()
    if not domain or domain in FREE_EMAIL_DOMAINS:
        return {}

    return {
        "company_name": domain.split(".")[0].upper(),
        "years_experience": random.randint(5, 19),
        "linkedin_url": f"https://linkedin.com/in/{local_part}",
    }


async def enrich_lead(
    lead_id: UUID,
    email: str,
    phone: str,
    session_factory: async_sessionmaker[AsyncSession] = async_session,
    delay: Optional[float] = None,
) -> None:
    """Enrich a lead with profile data. Errors are logged, never raised."""
    try:
        logger.info("Starting lead enrichment for %s", lead_id)

        if not verify_email(email):
            logger.warning("Skipping enrichment for %s: invalid email %s", lead_id, email)
            return

        profile = await lookup_profile(email, delay=delay)
        if not profile:
            logger.info("No enrichment data found for %s", lead_id)
            return

        async with session_factory() as db:
            lead = await db.get(Lead, lead_id)
            if not lead:
                logger.warning("Enrichment target %s no longer exists", lead_id)
                return
            lead.company_name = profile.get("company_name")
            lead.years_experience = profile.get("years_experience")
            lead.linkedin_url = profile.get("linkedin_url")
            await db.commit()

        logger.info("Lead enrichment completed for %s", lead_id)
    except Exception as e:
        logger.error("Lead enrichment failed for %s: %s", lead_id, e)
