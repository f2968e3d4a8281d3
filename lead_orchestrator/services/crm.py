"""External CRM sync.

Pushes leads (with their interaction history) to the CRM's REST API and
keeps the CRM status in step with dashboard decisions. Every call is
best-effort: failures are logged and reported as False.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lead_orchestrator.core.config import settings
from lead_orchestrator.core.database import async_session
from lead_orchestrator.models.lead import Lead, LeadStatus
from lead_orchestrator.services.leads import get_lead

logger = logging.getLogger(__name__)


def _enum_value(value):
    return value.value if value is not None else None


def build_crm_payload(lead: Lead) -> dict:
    """Shape a lead and its interactions the way the CRM's /leads endpoint expects."""
    first_name, _, last_name = lead.name.partition(" ")
    return {
        "contact": {
            "first_name": first_name,
            "last_name": last_name.strip(),
            "email": lead.email,
            "phone": lead.phone,
            "company": lead.company_name,
            "linkedin_url": lead.linkedin_url,
        },
        "lead": {
            "source": lead.source,
            "status": _enum_value(lead.status),
            "persona": _enum_value(lead.persona),
            "intent": _enum_value(lead.intent),
            "score": lead.lead_score,
            "priority": _enum_value(lead.priority),
            "location": lead.location,
            "project_size": lead.project_size,
            "budget": lead.budget,
            "inquiry": lead.inquiry,
            "material_type": lead.material_type,
        },
        "custom_fields": {
            "years_experience": lead.years_experience,
            "engagement_score": lead.engagement_score,
            "nurture_stage": lead.nurture_stage,
        },
        "activities": [
            {
                "type": i.type.value,
                "channel": i.channel.value,
                "message": i.message,
                "timestamp": i.created_at.isoformat() if i.created_at else None,
            }
            for i in lead.interactions
        ],
    }


class CRMClient:
    """Thin REST client for the external CRM."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (settings.CRM_API_URL if api_url is None else api_url).rstrip("/")
        self.api_key = settings.CRM_API_KEY if api_key is None else api_key
        self.session_factory = session_factory
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def sync_lead(self, lead_id: UUID) -> bool:
        """Create the lead in the CRM and store the returned CRM id."""
        if not self.configured:
            logger.warning("CRM credentials not configured, skipping sync for %s", lead_id)
            return False

        try:
            async with self.session_factory() as db:
                lead = await get_lead(db, lead_id, with_history=True)
                if not lead:
                    logger.error("CRM sync failed: lead %s not found", lead_id)
                    return False

                logger.info("Syncing lead %s to CRM", lead_id)
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.post(
                        f"{self.api_url}/leads", headers=self._headers(), json=build_crm_payload(lead)
                    )
                    response.raise_for_status()

                lead.crm_id = str(response.json()["id"])
                lead.crm_synced_at = datetime.utcnow()
                await db.commit()

            logger.info("Lead %s synced to CRM as %s", lead_id, lead.crm_id)
            return True
        except Exception as e:
            logger.error("CRM sync failed for %s: %s", lead_id, e)
            return False

    async def update_status(self, lead_id: UUID, status: LeadStatus) -> bool:
        """Push a status change for a lead that was already synced."""
        if not self.configured:
            logger.warning("CRM credentials not configured, skipping status update for %s", lead_id)
            return False

        try:
            async with self.session_factory() as db:
                lead = await get_lead(db, lead_id)
            if not lead or not lead.crm_id:
                logger.warning("Lead %s not synced to CRM yet", lead_id)
                return False

            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.patch(
                    f"{self.api_url}/leads/{lead.crm_id}",
                    headers=self._headers(),
                    json={"status": status.value},
                )
                response.raise_for_status()

            logger.info("CRM status updated for %s: %s", lead_id, status.value)
            return True
        except Exception as e:
            logger.error("CRM status update failed for %s: %s", lead_id, e)
            return False


# Global CRM client instance
crm_client = CRMClient()
