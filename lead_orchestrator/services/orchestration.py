"""Lead orchestration workflow.

Takes a lead from form submission to first contact:

    persist -> classify -> (enrich, detached) -> route -> communicate
            -> (CRM sync, detached)

Routing is a precedence-ordered table of (action, predicate) pairs; the
first matching predicate picks the handler. Enrichment and CRM sync run as
detached asyncio tasks whose failures are only logged.
"""

import asyncio
import enum
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lead_orchestrator.core.config import settings
from lead_orchestrator.models.lead import Lead, LeadStatus, Persona, Intent, Priority
from lead_orchestrator.models.task import TaskType
from lead_orchestrator.schemas.classification import Classification
from lead_orchestrator.schemas.lead import LeadIntake, OrchestrationResult
from lead_orchestrator.schemas.task import TaskCreate
from lead_orchestrator.services.classifier import LeadClassifier
from lead_orchestrator.services.crm import CRMClient
from lead_orchestrator.services.email_service import EmailService
from lead_orchestrator.services.leads import priority_for_score, transition_status
from lead_orchestrator.services.tasks import create_task
from lead_orchestrator.services.whatsapp import WhatsAppSender

logger = logging.getLogger(__name__)

ARCHITECT_RESPONSE_WINDOW = timedelta(minutes=5)
PRICE_CALLBACK_WINDOW = timedelta(hours=24)
TECHNICAL_FOLLOW_UP_DAYS = 3
PRICE_HIGH_PRIORITY_SCORE = 0.5
LEAD_SOURCE = "website"

# (day offset, content piece)
NURTURE_SCHEDULE = [
    (1, "design_inspiration"),
    (3, "budget_calculator"),
    (5, "customer_testimonials"),
    (7, "dealer_locator"),
]

EnrichFn = Callable[[UUID, str, str], Awaitable[None]]


class RouteAction(str, enum.Enum):
    ESCALATE_ARCHITECT = "escalate_architect"
    SEND_TECHNICAL_SPECS = "send_technical_specs"
    QUOTE_PRICE = "quote_price"
    NURTURE = "nurture"


ROUTING_TABLE: list[tuple[RouteAction, Callable[[Classification, float], bool]]] = [
    (
        RouteAction.ESCALATE_ARCHITECT,
        lambda c, threshold: c.persona == Persona.ARCHITECT and c.lead_score >= threshold,
    ),
    (RouteAction.SEND_TECHNICAL_SPECS, lambda c, _: c.intent == Intent.TECHNICAL_SPECS),
    (RouteAction.QUOTE_PRICE, lambda c, _: c.intent == Intent.PRICE_INQUIRY),
]


def select_route(classification: Classification, high_value_threshold: float = 0.8) -> RouteAction:
    """First matching rule wins; anything unmatched is nurtured."""
    for action, matches in ROUTING_TABLE:
        if matches(classification, high_value_threshold):
            return action
    return RouteAction.NURTURE


class LeadOrchestrator:
    """Runs the intake workflow against injected collaborators."""

    def __init__(
        self,
        classifier: LeadClassifier,
        whatsapp: WhatsAppSender,
        email: EmailService,
        enrich: EnrichFn,
        crm: CRMClient,
        clock: Callable[[], datetime] = datetime.utcnow,
        high_value_threshold: Optional[float] = None,
        catalog_url: Optional[str] = None,
    ):
        self.classifier = classifier
        self.whatsapp = whatsapp
        self.email = email
        self.enrich = enrich
        self.crm = crm
        self.clock = clock
        self.high_value_threshold = (
            settings.HIGH_VALUE_THRESHOLD if high_value_threshold is None else high_value_threshold
        )
        self.catalog_url = settings.CATALOG_PDF_URL if catalog_url is None else catalog_url
        self._background: set[asyncio.Task] = set()
        self._handlers = {
            RouteAction.ESCALATE_ARCHITECT: self._escalate_architect,
            RouteAction.SEND_TECHNICAL_SPECS: self._send_technical_specs,
            RouteAction.QUOTE_PRICE: self._quote_price,
            RouteAction.NURTURE: self._start_nurture,
        }

    async def run(
        self,
        db: AsyncSession,
        intake: LeadIntake,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> OrchestrationResult:
        """Process one website submission. Raises only if the lead cannot be persisted.

        `ip_address` and `user_agent` come from the HTTP request, never the form body.
        """
        logger.info("Starting lead orchestration for %s", intake.email)
        now = self.clock()

        lead = Lead(
            name=intake.name,
            email=intake.email,
            phone=intake.phone,
            inquiry=intake.inquiry,
            material_type=intake.material_type,
            source=LEAD_SOURCE,
            ip_address=ip_address,
            user_agent=user_agent,
            status=LeadStatus.NEW,
            priority=Priority.LOW,
            created_at=now,
            updated_at=now,
        )
        db.add(lead)
        await db.commit()
        await db.refresh(lead)
        logger.info("Lead %s created", lead.id)

        classification = await self.classifier.classify(
            name=intake.name,
            email=intake.email,
            phone=intake.phone,
            inquiry=intake.inquiry,
            material_type=intake.material_type,
        )
        self._apply_classification(lead, classification)
        await db.commit()

        self.fire_and_forget("enrichment", lead.id, lambda: self.enrich(lead.id, intake.email, intake.phone))

        route = select_route(classification, self.high_value_threshold)
        logger.info("Lead %s routed to %s", lead.id, route.value)
        await self._handlers[route](db, lead, intake, classification, now)

        self.fire_and_forget("CRM sync", lead.id, lambda: self.crm.sync_lead(lead.id))

        logger.info("Lead orchestration completed for %s (status=%s)", lead.id, lead.status.value)
        return OrchestrationResult(
            lead_id=lead.id,
            persona=classification.persona,
            intent=classification.intent,
            score=classification.lead_score,
            status=lead.status,
        )

    def fire_and_forget(self, label: str, lead_id: UUID, start: Callable[[], Awaitable]) -> None:
        """Run `start()` detached; its outcome never reaches the caller."""

        async def runner():
            try:
                await start()
            except Exception:
                logger.exception("%s failed for lead %s", label, lead_id)

        task = asyncio.create_task(runner())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for detached work (shutdown, tests)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    @staticmethod
    def _apply_classification(lead: Lead, classification: Classification) -> None:
        entities = classification.extracted_entities
        lead.persona = classification.persona
        lead.intent = classification.intent
        lead.lead_score = classification.lead_score
        lead.classification_reasoning = classification.reasoning
        lead.location = entities.location
        lead.project_size = entities.project_size
        lead.budget = entities.budget
        lead.urgency = entities.urgency
        lead.material_type = lead.material_type or entities.material_type
        lead.priority = priority_for_score(classification.lead_score)
        lead.updated_at = datetime.utcnow()

    async def _send_generated_message(self, db: AsyncSession, lead: Lead, classification: Classification) -> None:
        message = await self.classifier.generate_message(
            classification.persona,
            classification.intent,
            lead.name,
            classification.extracted_entities,
        )
        await self.whatsapp.send(db, lead.phone, message, lead_id=lead.id)

    async def _escalate_architect(
        self,
        db: AsyncSession,
        lead: Lead,
        intake: LeadIntake,
        classification: Classification,
        now: datetime,
    ) -> None:
        """High-value architect: urgent human review plus instant acknowledgment."""
        entities_json = classification.extracted_entities.model_dump_json(indent=2, exclude_none=True)
        await create_task(db, TaskCreate(
            lead_id=lead.id,
            title=f"🔥 High-Value Architect Lead: {lead.name}",
            description=(
                f"**Persona:** Architect\n"
                f"**Score:** {classification.lead_score}\n"
                f"**Intent:** {classification.intent.value}\n\n"
                f"**Inquiry:**\n{lead.inquiry}\n\n"
                f"**Extracted Info:**\n{entities_json}\n\n"
                f"**Action Required:** Contact within 5 minutes for maximum conversion probability."
            ),
            type=TaskType.REVIEW_LEAD,
            priority=Priority.URGENT,
            due_at=now + ARCHITECT_RESPONSE_WINDOW,
        ))

        message = (
            f"Hi {lead.name}! 👋\n\n"
            f"Thank you for reaching out. I can see you're working on an exciting project!\n\n"
            f"Our senior technical consultant will call you within the next 5 minutes "
            f"to discuss your requirements in detail.\n\n"
            f"Meanwhile, I'm sharing our comprehensive technical catalog.\n\n"
            f"Looking forward to working with you!\n\n"
            f"- Team {settings.BRAND_NAME}"
        )
        await self.whatsapp.send(db, lead.phone, message, lead_id=lead.id, media_url=self.catalog_url or None)

        transition_status(lead, LeadStatus.HOT)
        await db.commit()

    async def _send_technical_specs(
        self,
        db: AsyncSession,
        lead: Lead,
        intake: LeadIntake,
        classification: Classification,
        now: datetime,
    ) -> None:
        """Technical documentation request: message, specifications email, follow-up in 3 days."""
        await self._send_generated_message(db, lead, classification)
        await self.email.send_email(
            db,
            to=lead.email,
            subject=f"Technical Specifications - {lead.material_type or 'Materials'}",
            template="technical-specs",
            data={"name": lead.name, "material_type": lead.material_type, "inquiry": lead.inquiry},
            lead_id=lead.id,
        )

        transition_status(lead, LeadStatus.CONTACTED)
        await db.commit()

        await create_task(db, TaskCreate(
            lead_id=lead.id,
            title="Follow-up: Check engagement",
            description="Follow up with this lead to check if they need any additional information.",
            type=TaskType.FOLLOW_UP,
            priority=Priority.MEDIUM,
            due_at=now + timedelta(days=TECHNICAL_FOLLOW_UP_DAYS),
        ))
        logger.info("Follow-up scheduled for %s in %d days", lead.id, TECHNICAL_FOLLOW_UP_DAYS)

    async def _quote_price(
        self,
        db: AsyncSession,
        lead: Lead,
        intake: LeadIntake,
        classification: Classification,
        now: datetime,
    ) -> None:
        """Pricing request: message now, sales call with a quote within 24 hours."""
        await self._send_generated_message(db, lead, classification)

        transition_status(lead, LeadStatus.CONTACTED)
        await db.commit()

        entities_json = classification.extracted_entities.model_dump_json(indent=2, exclude_none=True)
        await create_task(db, TaskCreate(
            lead_id=lead.id,
            title=f"Call for Price Quote: {lead.name}",
            description=(
                f"Lead is interested in pricing for {lead.material_type or 'our products'}.\n\n"
                f"Project details:\n{entities_json}"
            ),
            type=TaskType.CALL_LEAD,
            priority=(
                Priority.HIGH if classification.lead_score >= PRICE_HIGH_PRIORITY_SCORE else Priority.MEDIUM
            ),
            due_at=now + PRICE_CALLBACK_WINDOW,
        ))

    async def _start_nurture(
        self,
        db: AsyncSession,
        lead: Lead,
        intake: LeadIntake,
        classification: Classification,
        now: datetime,
    ) -> None:
        """Exploratory lead: message now, then the fixed nurture sequence."""
        await self._send_generated_message(db, lead, classification)

        transition_status(lead, LeadStatus.NURTURING)
        lead.nurture_stage = 1
        await db.commit()

        persona = classification.persona.value
        for day, content in NURTURE_SCHEDULE:
            await create_task(db, TaskCreate(
                lead_id=lead.id,
                title=f"Nurture Day {day}: {content}",
                description=f"Send {content} content to nurture this {persona} lead.",
                type=TaskType.FOLLOW_UP,
                priority=Priority.LOW,
                due_at=now + timedelta(days=day),
            ))
        logger.info("Nurture campaign started for %s (%d stages)", lead.id, len(NURTURE_SCHEDULE))
