"""Pydantic schemas for Interactions."""

from datetime import datetime
from uuid import UUID
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from lead_orchestrator.models.interaction import (
    InteractionType,
    Channel,
    Direction,
    InteractionStatus,
)


class InteractionOut(BaseModel):
    id: UUID
    lead_id: UUID
    type: InteractionType
    channel: Channel
    direction: Direction
    subject: Optional[str] = None
    message: str
    status: InteractionStatus
    # ORM attribute is `meta`; the column and API field are `metadata`
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="meta")
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
