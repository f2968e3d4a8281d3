"""Twilio WhatsApp service.

Outbound messages are fire-and-forget: every attempt is logged as an
interaction and failures come back as False, never as exceptions.
Inbound replies bump the lead's engagement score.
"""

import logging
from datetime import datetime
from uuid import UUID
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from sqlalchemy.ext.asyncio import AsyncSession

from lead_orchestrator.core.config import settings
from lead_orchestrator.models.interaction import (
    Channel,
    Direction,
    InteractionStatus,
    InteractionType,
)
from lead_orchestrator.services.leads import find_latest_lead_by_phone
from lead_orchestrator.utils.interaction_log import log_interaction

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"
INBOUND_ENGAGEMENT_STEP = 0.1


def format_whatsapp_address(phone: str) -> str:
    return phone if phone.startswith(WHATSAPP_PREFIX) else f"{WHATSAPP_PREFIX}{phone}"


class WhatsAppSender:
    """Sends WhatsApp messages through the Twilio Messages API."""

    def _get_client(self) -> Client:
        return Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

    async def send(
        self,
        db: AsyncSession,
        to: str,
        message: str,
        lead_id: UUID | None = None,
        media_url: str | None = None,
    ) -> bool:
        """Send a WhatsApp message. Returns True on success.

        Args:
            db: Database session for interaction logging
            to: Destination phone, with or without the whatsapp: prefix
            message: Message body
            lead_id: Lead to log the attempt against
            media_url: Optional attachment (catalog PDF, brochure)
        """
        formatted_to = format_whatsapp_address(to)
        interaction_type = InteractionType.TECHNICAL_INFO if media_url else InteractionType.INITIAL_RESPONSE

        if not all([settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_WHATSAPP_NUMBER]):
            logger.warning("Twilio credentials not configured - skipping WhatsApp to %s", formatted_to)
            await self._log(db, lead_id, message, InteractionStatus.FAILED, interaction_type,
                            {"error": "twilio_not_configured"})
            return False

        logger.info("Sending WhatsApp message to %s (lead=%s)", formatted_to, lead_id)
        params = {
            "from_": settings.TWILIO_WHATSAPP_NUMBER,
            "to": formatted_to,
            "body": message,
        }
        if media_url:
            params["media_url"] = [media_url]

        try:
            result = self._get_client().messages.create(**params)
        except TwilioRestException as e:
            logger.error("Twilio error sending WhatsApp to %s: %s", formatted_to, e)
            await self._log(db, lead_id, message, InteractionStatus.FAILED, interaction_type,
                            {"error": str(e), "twilio_code": e.code})
            return False
        except Exception as e:
            logger.error("Unexpected error sending WhatsApp to %s: %s", formatted_to, e)
            await self._log(db, lead_id, message, InteractionStatus.FAILED, interaction_type,
                            {"error": str(e)})
            return False

        logger.info("WhatsApp sent to %s - SID: %s status=%s", formatted_to, result.sid, result.status)
        metadata = {"twilio_sid": result.sid, "twilio_status": result.status}
        if media_url:
            metadata["media_url"] = media_url
        await self._log(db, lead_id, message, InteractionStatus.SENT, interaction_type, metadata)
        return True

    async def _log(
        self,
        db: AsyncSession,
        lead_id: UUID | None,
        message: str,
        status: InteractionStatus,
        interaction_type: InteractionType,
        metadata: dict,
    ) -> None:
        if lead_id:
            await log_interaction(
                db,
                lead_id=lead_id,
                channel=Channel.WHATSAPP,
                message=message,
                status=status,
                interaction_type=interaction_type,
                metadata=metadata,
            )


async def handle_incoming_whatsapp(
    db: AsyncSession,
    from_number: str,
    body: str,
    message_sid: str | None = None,
) -> bool:
    """Log an inbound WhatsApp reply against the sender's newest lead.

    Returns False when the sender matches no lead or logging fails.
    """
    phone = from_number.replace(WHATSAPP_PREFIX, "")
    logger.info("Incoming WhatsApp from %s (sid=%s)", phone, message_sid)

    try:
        lead = await find_latest_lead_by_phone(db, phone)
        if not lead:
            logger.info("Inbound WhatsApp from unknown number %s ignored", phone)
            return False

        lead.engagement_score = min(1.0, (lead.engagement_score or 0.0) + INBOUND_ENGAGEMENT_STEP)
        lead.updated_at = datetime.utcnow()
        await log_interaction(
            db,
            lead_id=lead.id,
            channel=Channel.WHATSAPP,
            message=body,
            status=InteractionStatus.DELIVERED,
            interaction_type=InteractionType.FOLLOW_UP,
            direction=Direction.INBOUND,
            metadata={"twilio_sid": message_sid},
        )
        logger.info("Incoming WhatsApp logged for lead %s", lead.id)
        return True
    except Exception as e:
        logger.error("Handling incoming WhatsApp from %s failed: %s", phone, e)
        await db.rollback()
        return False


# Global WhatsApp sender instance
whatsapp_sender = WhatsAppSender()
