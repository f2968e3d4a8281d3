"""Dashboard endpoints for human review of leads and tasks.

- GET /api/dashboard/pending-leads → high-priority leads awaiting review
- GET /api/dashboard/lead/{id} → lead with full history
- POST /api/dashboard/approve-lead/{id} → qualify and assign
- POST /api/dashboard/reject-lead/{id} → mark LOST or SPAM
- POST /api/dashboard/convert-lead/{id} → mark CONVERTED
- GET /api/dashboard/tasks → task queue
- POST /api/dashboard/task/{id}/complete → close a task
- GET /api/dashboard/stats → headline numbers
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lead_orchestrator.core.database import get_db
from lead_orchestrator.core.dependencies import get_orchestrator
from lead_orchestrator.models.lead import Lead, LeadStatus, Priority
from lead_orchestrator.models.task import Task, TaskStatus
from lead_orchestrator.schemas.lead import (
    ApproveLeadRequest,
    LeadActionResponse,
    LeadDetailOut,
    LeadDetailResponse,
    LeadListResponse,
    LeadOut,
    RejectLeadRequest,
    TaskListResponse,
    TaskWithLeadOut,
)
from lead_orchestrator.schemas.task import CompleteTaskRequest, TaskActionResponse, TaskOut
from lead_orchestrator.services.leads import InvalidStatusTransition, get_lead, transition_status
from lead_orchestrator.services.orchestration import LeadOrchestrator
from lead_orchestrator.services.tasks import (
    cancel_pending_tasks,
    complete_task,
    list_tasks,
    start_pending_tasks,
)

router = APIRouter()
logger = logging.getLogger(__name__)

PENDING_LEADS_LIMIT = 50
RECENT_INTERACTIONS = 5

_LEAD_PRIORITY_RANK = case(
    (Lead.priority == Priority.URGENT, 0),
    (Lead.priority == Priority.HIGH, 1),
    (Lead.priority == Priority.MEDIUM, 2),
    else_=3,
)


def _round(value: float) -> float:
    return round(value, 2)


async def _load_lead_or_404(db: AsyncSession, lead_id: UUID) -> Lead:
    lead = await get_lead(db, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


def _move(lead: Lead, target: LeadStatus) -> None:
    try:
        transition_status(lead, target)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


def _push_crm_status(orchestrator: LeadOrchestrator, lead_id: UUID, status: LeadStatus) -> None:
    orchestrator.fire_and_forget(
        "CRM status update", lead_id, lambda: orchestrator.crm.update_status(lead_id, status)
    )


@router.get("/pending-leads", response_model=LeadListResponse)
async def pending_leads(db: AsyncSession = Depends(get_db)):
    """NEW or HOT leads with HIGH/URGENT priority, most pressing first."""
    result = await db.execute(
        select(Lead)
        .where(
            Lead.status.in_([LeadStatus.NEW, LeadStatus.HOT]),
            Lead.priority.in_([Priority.HIGH, Priority.URGENT]),
        )
        .options(selectinload(Lead.interactions), selectinload(Lead.tasks))
        .order_by(_LEAD_PRIORITY_RANK, Lead.lead_score.desc(), Lead.created_at.desc())
        .limit(PENDING_LEADS_LIMIT)
    )

    leads = []
    for lead in result.scalars().all():
        out = LeadDetailOut.model_validate(lead)
        out.tasks = [t for t in out.tasks if t.status == TaskStatus.PENDING]
        out.interactions = out.interactions[:RECENT_INTERACTIONS]
        leads.append(out)

    return LeadListResponse(count=len(leads), leads=leads)


@router.get("/lead/{lead_id}", response_model=LeadDetailResponse)
async def lead_detail(lead_id: UUID, db: AsyncSession = Depends(get_db)):
    lead = await get_lead(db, lead_id, with_history=True)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return LeadDetailResponse(lead=LeadDetailOut.model_validate(lead))


@router.post("/approve-lead/{lead_id}", response_model=LeadActionResponse)
async def approve_lead(
    lead_id: UUID,
    body: ApproveLeadRequest,
    db: AsyncSession = Depends(get_db),
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
):
    """Qualify a lead, assign it and start its pending tasks."""
    lead = await _load_lead_or_404(db, lead_id)
    _move(lead, LeadStatus.QUALIFIED)
    lead.assigned_to = body.assigned_to

    started = await start_pending_tasks(db, lead_id, assigned_to=body.assigned_to, notes=body.notes)
    await db.commit()
    await db.refresh(lead)
    logger.info("Lead %s approved, assigned to %s (%d tasks started)", lead_id, body.assigned_to, started)

    _push_crm_status(orchestrator, lead_id, LeadStatus.QUALIFIED)
    return LeadActionResponse(message="Lead approved and assigned", lead=LeadOut.model_validate(lead))


@router.post("/reject-lead/{lead_id}", response_model=LeadActionResponse)
async def reject_lead(
    lead_id: UUID,
    body: RejectLeadRequest,
    db: AsyncSession = Depends(get_db),
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
):
    """Close a lead as SPAM (reason `spam`) or LOST, cancelling its pending tasks."""
    lead = await _load_lead_or_404(db, lead_id)
    target = LeadStatus.SPAM if body.reason == "spam" else LeadStatus.LOST
    _move(lead, target)

    cancelled = await cancel_pending_tasks(db, lead_id, notes=f"Rejected: {body.reason}")
    await db.commit()
    await db.refresh(lead)
    logger.info("Lead %s rejected as %s (%d tasks cancelled)", lead_id, target.value, cancelled)

    _push_crm_status(orchestrator, lead_id, target)
    return LeadActionResponse(message="Lead rejected", lead=LeadOut.model_validate(lead))


@router.post("/convert-lead/{lead_id}", response_model=LeadActionResponse)
async def convert_lead(
    lead_id: UUID,
    db: AsyncSession = Depends(get_db),
    orchestrator: LeadOrchestrator = Depends(get_orchestrator),
):
    lead = await _load_lead_or_404(db, lead_id)
    _move(lead, LeadStatus.CONVERTED)
    await db.commit()
    await db.refresh(lead)
    logger.info("Lead %s converted", lead_id)

    _push_crm_status(orchestrator, lead_id, LeadStatus.CONVERTED)
    return LeadActionResponse(message="Lead marked as converted", lead=LeadOut.model_validate(lead))


@router.get("/tasks", response_model=TaskListResponse)
async def tasks(
    assigned_to: Optional[str] = Query(None, description="Filter by assignee"),
    status: Optional[TaskStatus] = Query(None, description="Filter by task status"),
    db: AsyncSession = Depends(get_db),
):
    """Task queue, urgent and soonest due first."""
    rows = await list_tasks(db, assigned_to=assigned_to, status=status)
    return TaskListResponse(count=len(rows), tasks=[TaskWithLeadOut.model_validate(t) for t in rows])


@router.post("/task/{task_id}/complete", response_model=TaskActionResponse)
async def complete(task_id: UUID, body: CompleteTaskRequest, db: AsyncSession = Depends(get_db)):
    task = await complete_task(db, task_id, notes=body.notes)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskActionResponse(message="Task completed", task=TaskOut.model_validate(task))


@router.get("/stats")
async def stats(db: AsyncSession = Depends(get_db)):
    """Headline numbers for the dashboard header."""
    status_counts = dict(
        (await db.execute(select(Lead.status, func.count(Lead.id)).group_by(Lead.status))).all()
    )
    total = sum(status_counts.values())
    converted = status_counts.get(LeadStatus.CONVERTED, 0)

    pending_tasks = (
        await db.execute(select(func.count(Task.id)).where(Task.status == TaskStatus.PENDING))
    ).scalar() or 0

    contacted = (
        await db.execute(
            select(Lead.created_at, Lead.last_contacted_at).where(Lead.last_contacted_at.is_not(None))
        )
    ).all()
    response_minutes = [(last - created).total_seconds() / 60 for created, last in contacted]
    avg_response = _round(sum(response_minutes) / len(response_minutes)) if response_minutes else 0.0

    by_persona = (
        await db.execute(
            select(Lead.persona, func.count(Lead.id)).where(Lead.persona.is_not(None)).group_by(Lead.persona)
        )
    ).all()
    by_intent = (
        await db.execute(
            select(Lead.intent, func.count(Lead.id)).where(Lead.intent.is_not(None)).group_by(Lead.intent)
        )
    ).all()

    return {
        "success": True,
        "stats": {
            "total_leads": total,
            "new_leads": status_counts.get(LeadStatus.NEW, 0),
            "hot_leads": status_counts.get(LeadStatus.HOT, 0),
            "converted_leads": converted,
            "pending_tasks": pending_tasks,
            "avg_response_time_minutes": avg_response,
            "conversion_rate": _round(converted / total * 100) if total else 0.0,
            "persona_breakdown": {persona.value: count for persona, count in by_persona},
            "intent_breakdown": {intent.value: count for intent, count in by_intent},
        },
    }
