"""Interaction logging utilities.

Every outbound or inbound message attempt is appended to the interactions
table so the dashboard can show a lead's communication history.
"""

import logging
from datetime import datetime
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from lead_orchestrator.models.interaction import (
    Interaction,
    InteractionType,
    Channel,
    Direction,
    InteractionStatus,
)
from lead_orchestrator.models.lead import Lead

logger = logging.getLogger(__name__)

_SENT_FLAGS = {
    Channel.WHATSAPP: "whatsapp_sent",
    Channel.EMAIL: "email_sent",
}


async def log_interaction(
    db: AsyncSession,
    lead_id: UUID,
    channel: Channel,
    message: str,
    status: InteractionStatus,
    interaction_type: InteractionType = InteractionType.INITIAL_RESPONSE,
    direction: Direction = Direction.OUTBOUND,
    subject: str | None = None,
    metadata: dict | None = None,
) -> None:
    """
    Append an interaction and, for successful outbound sends, stamp the lead.

    Args:
        db: Database session
        lead_id: Lead the message belongs to
        channel: WHATSAPP or EMAIL
        message: Message body as sent/received
        status: SENT, DELIVERED or FAILED
        interaction_type: What the message was for
        direction: OUTBOUND for our sends, INBOUND for replies
        subject: Email subject, if any
        metadata: Provider ids, template name or error text
    """
    now = datetime.utcnow()
    try:
        db.add(
            Interaction(
                lead_id=lead_id,
                type=interaction_type,
                channel=channel,
                direction=direction,
                subject=subject,
                message=message,
                status=status,
                meta=metadata or {},
                sent_at=now if direction == Direction.OUTBOUND and status == InteractionStatus.SENT else None,
                delivered_at=now if status == InteractionStatus.DELIVERED else None,
            )
        )

        if direction == Direction.OUTBOUND and status == InteractionStatus.SENT:
            lead = await db.get(Lead, lead_id)
            if lead:
                setattr(lead, _SENT_FLAGS[channel], True)
                lead.last_contacted_at = now

        await db.commit()
        logger.info(
            "Interaction logged: lead=%s channel=%s direction=%s status=%s",
            lead_id,
            channel.value,
            direction.value,
            status.value,
        )
    except Exception as e:
        logger.error("Failed to log interaction for lead %s: %s", lead_id, e)
        # Logging must never break the send path
        await db.rollback()
