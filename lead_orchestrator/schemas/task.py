"""Pydantic schemas for Tasks."""

from datetime import datetime
from uuid import UUID
from typing import List, Optional
from pydantic import BaseModel

from lead_orchestrator.models.lead import Priority
from lead_orchestrator.models.task import TaskType, TaskStatus


class TaskCreate(BaseModel):
    """Input for creating a follow-up task."""
    lead_id: UUID
    title: str
    description: Optional[str] = None
    type: TaskType
    priority: Priority
    assigned_to: Optional[str] = None
    due_at: Optional[datetime] = None


class TaskOut(BaseModel):
    id: UUID
    lead_id: UUID
    title: str
    description: Optional[str] = None
    type: TaskType
    priority: Priority
    status: TaskStatus
    assigned_to: Optional[str] = None
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CompleteTaskRequest(BaseModel):
    notes: Optional[str] = None


class TaskActionResponse(BaseModel):
    success: bool = True
    message: str
    task: TaskOut
