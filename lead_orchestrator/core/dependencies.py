"""FastAPI dependencies for the orchestration services."""

from functools import lru_cache

from lead_orchestrator.services.classifier import classifier
from lead_orchestrator.services.crm import crm_client
from lead_orchestrator.services.email_service import email_service
from lead_orchestrator.services.enrichment import enrich_lead
from lead_orchestrator.services.orchestration import LeadOrchestrator
from lead_orchestrator.services.whatsapp import whatsapp_sender


@lru_cache
def get_orchestrator() -> LeadOrchestrator:
    """Process-wide orchestrator wired to the real providers.

    Tests override this with `app.dependency_overrides[get_orchestrator]`.
    """
    return LeadOrchestrator(
        classifier=classifier,
        whatsapp=whatsapp_sender,
        email=email_service,
        enrich=enrich_lead,
        crm=crm_client,
    )
