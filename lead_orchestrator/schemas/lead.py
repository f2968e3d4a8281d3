"""Pydantic schemas for Leads."""

from datetime import datetime
from uuid import UUID
from pydantic import AliasChoices, BaseModel, EmailStr, Field
from typing import List, Optional
from lead_orchestrator.models.lead import LeadStatus, Persona, Intent, Priority
from lead_orchestrator.schemas.interaction import InteractionOut
from lead_orchestrator.schemas.task import TaskOut


class LeadIntake(BaseModel):
    """Website form submission."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=50)
    inquiry: str = Field(min_length=1)
    material_type: Optional[str] = Field(
        None, max_length=255, validation_alias=AliasChoices("material_type", "materialType")
    )

    class Config:
        str_strip_whitespace = True


class OrchestrationResult(BaseModel):
    """What the orchestration sequence reports back to the intake route."""
    lead_id: UUID
    persona: Persona
    intent: Intent
    score: float
    status: LeadStatus


class LeadOut(BaseModel):
    """Schema for returning lead details."""
    id: UUID
    name: str
    email: str
    phone: str
    inquiry: str
    material_type: Optional[str] = None
    source: str
    persona: Optional[Persona] = None
    intent: Optional[Intent] = None
    lead_score: float
    classification_reasoning: Optional[str] = None
    location: Optional[str] = None
    project_size: Optional[str] = None
    budget: Optional[str] = None
    urgency: Optional[str] = None
    status: LeadStatus
    priority: Priority
    nurture_stage: Optional[int] = None
    assigned_to: Optional[str] = None
    whatsapp_sent: bool
    email_sent: bool
    engagement_score: float
    last_contacted_at: Optional[datetime] = None
    linkedin_url: Optional[str] = None
    company_name: Optional[str] = None
    years_experience: Optional[int] = None
    crm_id: Optional[str] = None
    crm_synced_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LeadDetailOut(LeadOut):
    """Lead with its interactions and tasks, newest first."""
    interactions: List[InteractionOut] = []
    tasks: List[TaskOut] = []


class LeadSummaryOut(BaseModel):
    """Compact lead embedded in task listings."""
    id: UUID
    name: str
    email: str
    phone: str
    persona: Optional[Persona] = None
    intent: Optional[Intent] = None
    lead_score: float
    status: LeadStatus

    class Config:
        from_attributes = True


class ApproveLeadRequest(BaseModel):
    assigned_to: Optional[str] = None
    notes: Optional[str] = None


class RejectLeadRequest(BaseModel):
    reason: str = "not_qualified"


class LeadIntakeResponse(BaseModel):
    success: bool = True
    message: str
    lead_id: UUID
    estimated_response_time: str


class LeadListResponse(BaseModel):
    success: bool = True
    count: int
    leads: List[LeadDetailOut]


class LeadDetailResponse(BaseModel):
    success: bool = True
    lead: LeadDetailOut


class LeadActionResponse(BaseModel):
    success: bool = True
    message: str
    lead: LeadOut


class TaskWithLeadOut(TaskOut):
    lead: LeadSummaryOut


class TaskListResponse(BaseModel):
    success: bool = True
    count: int
    tasks: List[TaskWithLeadOut]
