"""Lead intake and Twilio webhook handlers.

Thin HTTP layer; the workflow lives in lead_orchestrator.services.orchestration.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from lead_orchestrator.core.database import get_db
from lead_orchestrator.core.dependencies import get_orchestrator
from lead_orchestrator.schemas.lead import LeadIntake, LeadIntakeResponse
from lead_orchestrator.services.leads import HIGH_PRIORITY_SCORE
from lead_orchestrator.services.orchestration import LeadOrchestrator
from lead_orchestrator.services.security_service import rate_limit
from lead_orchestrator.services.whatsapp import handle_incoming_whatsapp

router = APIRouter()
logger = logging.getLogger(__name__)

USER_AGENT_MAX_LENGTH = 500


def estimated_response_time(score: float) -> str:
    return "5 minutes" if score >= HIGH_PRIORITY_SCORE else "24 hours"


@router.post("/lead", response_model=LeadIntakeResponse, dependencies=[Depends(rate_limit)])
async def receive_lead(
    intake: LeadIntake,
    request: Request,
    db: AsyncSession = Depends(get_db),
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
):
    """Accept a website form submission and run the intake workflow."""
    logger.info("New lead received: %s", intake.email)

    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    if user_agent:
        user_agent = user_agent[:USER_AGENT_MAX_LENGTH]

    try:
        result = await orchestrator.run(db, intake, ip_address=ip_address, user_agent=user_agent)
    except Exception:
        logger.exception("Lead processing failed for %s", intake.email)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to process lead. Please try again."},
        )

    return LeadIntakeResponse(
        message="Thank you! We'll contact you shortly.",
        lead_id=result.lead_id,
        estimated_response_time=estimated_response_time(result.score),
    )


@router.post("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Receive inbound WhatsApp replies from Twilio. Always answers 200 OK."""
    try:
        form = await request.form()
        from_number = form.get("From", "")
        body = form.get("Body", "")
        message_sid = form.get("MessageSid")
        logger.info("WhatsApp webhook from %s: %s", from_number, body[:100])

        if from_number:
            await handle_incoming_whatsapp(db, from_number, body, message_sid)
    except Exception as e:
        logger.error("WhatsApp webhook error: %s", e)

    return PlainTextResponse("OK")


@router.get("/test", dependencies=[Depends(rate_limit)])
async def test_webhook():
    return {
        "success": True,
        "message": "Webhook endpoint is working",
        "timestamp": datetime.utcnow().isoformat(),
    }
