import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from lead_orchestrator.core.database import Base
from lead_orchestrator.models.lead import Priority


class TaskType(str, enum.Enum):
    CALL_LEAD = "CALL_LEAD"
    SEND_QUOTE = "SEND_QUOTE"
    SCHEDULE_MEETING = "SCHEDULE_MEETING"
    SEND_SAMPLES = "SEND_SAMPLES"
    FOLLOW_UP = "FOLLOW_UP"
    APPROVE_DISCOUNT = "APPROVE_DISCOUNT"
    REVIEW_LEAD = "REVIEW_LEAD"


class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Task(Base):
    """Follow-up action item for a human operator."""
    __tablename__ = "tasks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(TaskType), nullable=False)
    priority = Column(Enum(Priority), nullable=False, default=Priority.MEDIUM)
    status = Column(Enum(TaskStatus), nullable=False, default=TaskStatus.PENDING, index=True)
    assigned_to = Column(String(255), nullable=True, index=True)
    due_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    lead = relationship("Lead", back_populates="tasks")
