"""Email service using SendGrid."""

import logging
from html import escape
from typing import Any, Callable, Dict, Optional
from uuid import UUID
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from sqlalchemy.ext.asyncio import AsyncSession

from lead_orchestrator.core.config import settings
from lead_orchestrator.models.interaction import Channel, InteractionStatus, InteractionType
from lead_orchestrator.utils.interaction_log import log_interaction

logger = logging.getLogger(__name__)

_STYLE = """
            body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
            .container { max-width: 600px; margin: 0 auto; padding: 20px; }
            .header { background: #2c3e50; color: white; padding: 20px; text-align: center; }
            .content { padding: 20px; background: #f9f9f9; }
            .button { display: inline-block; padding: 12px 24px; background: #3498db; color: white;
                      text-decoration: none; border-radius: 5px; margin: 10px 0; }
            .footer { text-align: center; padding: 20px; font-size: 12px; color: #777; }
"""


def _page(title: str, body: str, brand: str, footer_note: str = "") -> str:
    note = f"<p>{footer_note}</p>" if footer_note else ""
    return f"""
        <!DOCTYPE html>
        <html>
        <head><style>{_STYLE}</style></head>
        <body>
            <div class="container">
                <div class="header"><h1>{title}</h1></div>
                <div class="content">{body}</div>
                <div class="footer">
                    <p>&copy; {escape(brand)}. All rights reserved.</p>
                    {note}
                </div>
            </div>
        </body>
        </html>
        """


def _technical_specs(data: Dict[str, Any], brand: str) -> str:
    body = f"""
                    <p>Dear {escape(data.get("name") or "there")},</p>
                    <p>Thank you for your interest in our {escape(data.get("material_type") or "products")}.</p>
                    <p>As requested, please find the complete technical specifications and documentation below.</p>

                    <h3>What's Included:</h3>
                    <ul>
                        <li>Product specifications and dimensions</li>
                        <li>Installation guidelines</li>
                        <li>Maintenance instructions</li>
                        <li>Warranty information</li>
                        <li>CAD files (DWG format)</li>
                    </ul>

                    <p><strong>Your Inquiry:</strong><br>{escape(data.get("inquiry") or "")}</p>

                    <a href="#" class="button">Download Complete Catalog</a>

                    <p>Our technical team is available to answer any questions you may have.
                       Feel free to reply to this email or call us directly.</p>

                    <p>Best regards,<br>Technical Team<br>{escape(brand)}</p>
    """
    return _page(
        "Technical Specifications",
        body,
        brand,
        "This email was sent because you submitted an inquiry on our website.",
    )


def _welcome(data: Dict[str, Any], brand: str) -> str:
    body = f"""
                    <p>Dear {escape(data.get("name") or "there")},</p>
                    <p>Thank you for reaching out to us. We've received your inquiry and our team is reviewing it.</p>
                    <p>We'll get back to you within 24 hours with the information you need.</p>
                    <p>In the meantime, feel free to explore our website or contact us directly if you have urgent questions.</p>
                    <p>Best regards,<br>Team {escape(brand)}</p>
    """
    return _page(f"Welcome to {escape(brand)}!", body, brand)


def _nurture_day3(data: Dict[str, Any], brand: str) -> str:
    body = f"""
                    <p>Hi {escape(data.get("name") or "there")},</p>
                    <p>Planning your project budget? We've created a simple calculator to help you estimate
                       costs for your {escape(data.get("material_type") or "flooring")} project.</p>

                    <a href="#" class="button">Try Our Budget Calculator</a>

                    <p>Plus, check out these helpful resources:</p>
                    <ul>
                        <li>Cost comparison guide</li>
                        <li>Installation cost estimator</li>
                        <li>Financing options</li>
                    </ul>

                    <p>Have questions? Just reply to this email!</p>
                    <p>Best regards,<br>Team {escape(brand)}</p>
    """
    return _page("Budget Planning Made Easy", body, brand)


TEMPLATES: Dict[str, Callable[[Dict[str, Any], str], str]] = {
    "technical-specs": _technical_specs,
    "welcome": _welcome,
    "nurture-day3": _nurture_day3,
}


def render_template(template: str, data: Dict[str, Any]) -> str:
    """Render an email template; unknown names fall back to `welcome`."""
    render = TEMPLATES.get(template, _welcome)
    return render(data, settings.BRAND_NAME)


class EmailService:
    """Email service for lead communication."""

    @property
    def enabled(self) -> bool:
        return bool(settings.SENDGRID_API_KEY)

    async def send_email(
        self,
        db: AsyncSession,
        to: str,
        subject: str,
        template: str,
        data: Dict[str, Any],
        lead_id: Optional[UUID] = None,
    ) -> bool:
        """
        Render a template and send it.

        Args:
            db: Database session for interaction logging
            to: Recipient email address
            subject: Email subject
            template: Template name (technical-specs, welcome, nurture-day3)
            data: Template variables (name, material_type, inquiry)
            lead_id: Lead to log the attempt against

        Returns:
            True if sent successfully, False otherwise
        """
        html_body = render_template(template, data)
        interaction_type = (
            InteractionType.TECHNICAL_INFO if template == "technical-specs" else InteractionType.INITIAL_RESPONSE
        )

        if not self.enabled:
            logger.warning("SENDGRID_API_KEY not configured. Would have sent to %s: %s", to, subject)
            await self._log(db, lead_id, subject, html_body, InteractionStatus.FAILED, interaction_type,
                            {"template": template, "error": "sendgrid_not_configured"})
            return False

        logger.info("Sending email to %s (template=%s)", to, template)
        try:
            message = Mail(
                from_email=(settings.SENDGRID_FROM_EMAIL, settings.SENDGRID_FROM_NAME),
                to_emails=to,
                subject=subject,
                html_content=html_body,
            )
            response = SendGridAPIClient(settings.SENDGRID_API_KEY).send(message)
        except Exception as e:
            logger.error("Error sending email to %s: %s", to, e)
            await self._log(db, lead_id, subject, html_body, InteractionStatus.FAILED, interaction_type,
                            {"template": template, "error": str(e)})
            return False

        if 200 <= response.status_code < 300:
            message_id = response.headers.get("X-Message-Id") if response.headers else None
            logger.info("Email sent successfully to %s: %s", to, subject)
            await self._log(db, lead_id, subject, html_body, InteractionStatus.SENT, interaction_type,
                            {"template": template, "message_id": message_id})
            return True

        logger.error("Failed to send email to %s: %s %s", to, response.status_code, response.body)
        await self._log(db, lead_id, subject, html_body, InteractionStatus.FAILED, interaction_type,
                        {"template": template, "status_code": response.status_code})
        return False

    async def _log(
        self,
        db: AsyncSession,
        lead_id: Optional[UUID],
        subject: str,
        html_body: str,
        status: InteractionStatus,
        interaction_type: InteractionType,
        metadata: dict,
    ) -> None:
        if lead_id:
            await log_interaction(
                db,
                lead_id=lead_id,
                channel=Channel.EMAIL,
                message=html_body,
                status=status,
                interaction_type=interaction_type,
                subject=subject,
                metadata=metadata,
            )


# Global email service instance
email_service = EmailService()
