from lead_orchestrator.models.lead import Lead, LeadStatus, Persona, Intent, Priority  # noqa: F401
from lead_orchestrator.models.interaction import Interaction  # noqa: F401
from lead_orchestrator.models.task import Task  # noqa: F401
