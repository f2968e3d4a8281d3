import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from lead_orchestrator.core.database import Base


class InteractionType(str, enum.Enum):
    INITIAL_RESPONSE = "INITIAL_RESPONSE"
    TECHNICAL_INFO = "TECHNICAL_INFO"
    FOLLOW_UP = "FOLLOW_UP"
    NURTURE = "NURTURE"


class Channel(str, enum.Enum):
    WHATSAPP = "WHATSAPP"
    EMAIL = "EMAIL"


class Direction(str, enum.Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class InteractionStatus(str, enum.Enum):
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class Interaction(Base):
    """Append-only log of a message sent to or received from a lead."""
    __tablename__ = "interactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id"), nullable=False, index=True)
    type = Column(Enum(InteractionType), nullable=False)
    channel = Column(Enum(Channel), nullable=False, index=True)
    direction = Column(Enum(Direction), nullable=False)
    subject = Column(String(500), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(Enum(InteractionStatus), nullable=False)
    meta = Column("metadata", JSON, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    lead = relationship("Lead", back_populates="interactions")
