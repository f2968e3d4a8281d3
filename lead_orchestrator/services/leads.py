"""Lead lookups, priority tiers and status transition rules."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lead_orchestrator.models.lead import Lead, LeadStatus, Priority

logger = logging.getLogger(__name__)

HIGH_PRIORITY_SCORE = 0.8
MEDIUM_PRIORITY_SCORE = 0.5

TERMINAL_STATUSES = frozenset({LeadStatus.CONVERTED, LeadStatus.LOST, LeadStatus.SPAM})

# Leads only move forward through these stages; terminal statuses share the last one.
_STAGE = {
    LeadStatus.NEW: 0,
    LeadStatus.NURTURING: 1,
    LeadStatus.CONTACTED: 2,
    LeadStatus.HOT: 3,
    LeadStatus.QUALIFIED: 4,
    LeadStatus.CONVERTED: 5,
    LeadStatus.LOST: 5,
    LeadStatus.SPAM: 5,
}


class InvalidStatusTransition(ValueError):
    """Raised when a status change would move a lead backwards."""

    def __init__(self, current: LeadStatus, target: LeadStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move lead from {current.value} to {target.value}")


def priority_for_score(score: float) -> Priority:
    """Map a lead score in [0, 1] to a priority tier."""
    if score >= HIGH_PRIORITY_SCORE:
        return Priority.HIGH
    if score >= MEDIUM_PRIORITY_SCORE:
        return Priority.MEDIUM
    return Priority.LOW


def can_transition(current: LeadStatus, target: LeadStatus) -> bool:
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    return _STAGE[target] >= _STAGE[current]


def transition_status(lead: Lead, target: LeadStatus) -> None:
    """Set lead.status, refusing backwards moves. Caller commits."""
    current = lead.status or LeadStatus.NEW
    if not can_transition(current, target):
        raise InvalidStatusTransition(current, target)
    if current != target:
        lead.status = target
        lead.updated_at = datetime.utcnow()
        logger.info("Lead %s status %s -> %s", lead.id, current.value, target.value)


async def get_lead(db: AsyncSession, lead_id: UUID, with_history: bool = False) -> Lead | None:
    """Fetch a lead by id, optionally eager-loading interactions and tasks."""
    query = select(Lead).where(Lead.id == lead_id)
    if with_history:
        query = query.options(selectinload(Lead.interactions), selectinload(Lead.tasks))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def find_latest_lead_by_phone(db: AsyncSession, phone: str) -> Lead | None:
    result = await db.execute(
        select(Lead).where(Lead.phone == phone).order_by(Lead.created_at.desc()).limit(1)
    )
    return result.scalar_one_or_none()
