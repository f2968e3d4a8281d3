"""Pydantic schemas for the LLM classification result."""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from lead_orchestrator.models.lead import Persona, Intent

# Width of the lead columns these entities are copied into.
ENTITY_MAX_LENGTH = 255


class ExtractedEntities(BaseModel):
    """Entities pulled out of the free-text inquiry. All optional."""
    location: Optional[str] = None
    project_size: Optional[str] = None
    budget: Optional[str] = None
    material_type: Optional[str] = None
    urgency: Optional[Literal["LOW", "MEDIUM", "HIGH"]] = None

    @field_validator("location", "project_size", "budget", "material_type")
    @classmethod
    def truncate(cls, v):
        # Model output is unbounded; clip rather than reject the classification
        if v is None:
            return v
        return v.strip()[:ENTITY_MAX_LENGTH] or None


class Classification(BaseModel):
    """Structured classification of a lead."""
    persona: Persona
    intent: Intent
    lead_score: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    extracted_entities: ExtractedEntities = Field(default_factory=ExtractedEntities)


FALLBACK_CLASSIFICATION = Classification(
    persona=Persona.UNKNOWN,
    intent=Intent.GENERAL_INQUIRY,
    lead_score=0.3,
    reasoning="Classification failed, using fallback values",
)
