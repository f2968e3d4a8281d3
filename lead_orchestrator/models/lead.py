"""Lead model."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Enum, Float, Integer, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from lead_orchestrator.core.database import Base


class Persona(str, enum.Enum):
    """Buyer type assigned by the classifier."""
    HOMEOWNER = "HOMEOWNER"
    ARCHITECT = "ARCHITECT"
    CONTRACTOR = "CONTRACTOR"
    DEALER = "DEALER"
    UNKNOWN = "UNKNOWN"


class Intent(str, enum.Enum):
    """Purpose of the inquiry assigned by the classifier."""
    PRICE_INQUIRY = "PRICE_INQUIRY"
    SAMPLE_REQUEST = "SAMPLE_REQUEST"
    TECHNICAL_SPECS = "TECHNICAL_SPECS"
    DESIGN_HELP = "DESIGN_HELP"
    INSTALLATION_QUERY = "INSTALLATION_QUERY"
    DEALER_LOCATOR = "DEALER_LOCATOR"
    COMPLAINT = "COMPLAINT"
    GENERAL_INQUIRY = "GENERAL_INQUIRY"


class LeadStatus(str, enum.Enum):
    """Workflow state. CONVERTED, LOST and SPAM are terminal."""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    NURTURING = "NURTURING"
    HOT = "HOT"
    CONVERTED = "CONVERTED"
    LOST = "LOST"
    SPAM = "SPAM"


class Priority(str, enum.Enum):
    """Shared by leads and tasks."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Lead(Base):
    """One record per inquiry."""
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False, index=True)
    inquiry = Column(Text, nullable=False)
    material_type = Column(String(255), nullable=True)
    source = Column(String(50), nullable=False, default="website")
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # Classification
    persona = Column(Enum(Persona), nullable=True, index=True)
    intent = Column(Enum(Intent), nullable=True, index=True)
    lead_score = Column(Float, nullable=False, default=0.0)
    classification_reasoning = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    project_size = Column(String(255), nullable=True)
    budget = Column(String(255), nullable=True)
    urgency = Column(String(20), nullable=True)

    # Workflow
    status = Column(Enum(LeadStatus), nullable=False, default=LeadStatus.NEW, index=True)
    priority = Column(Enum(Priority), nullable=False, default=Priority.LOW, index=True)
    nurture_stage = Column(Integer, nullable=True)
    assigned_to = Column(String(255), nullable=True)

    # Engagement
    whatsapp_sent = Column(Boolean, nullable=False, default=False)
    email_sent = Column(Boolean, nullable=False, default=False)
    engagement_score = Column(Float, nullable=False, default=0.0)
    last_contacted_at = Column(DateTime, nullable=True)

    # Enrichment
    linkedin_url = Column(String(500), nullable=True)
    company_name = Column(String(255), nullable=True)
    years_experience = Column(Integer, nullable=True)

    # CRM sync
    crm_id = Column(String(255), nullable=True)
    crm_synced_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    interactions = relationship(
        "Interaction", back_populates="lead", order_by="Interaction.created_at.desc()"
    )
    tasks = relationship("Task", back_populates="lead", order_by="Task.created_at.desc()")
