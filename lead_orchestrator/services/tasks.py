"""Task service for human-in-the-loop follow-up actions."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lead_orchestrator.models.lead import Priority
from lead_orchestrator.models.task import Task, TaskStatus
from lead_orchestrator.schemas.task import TaskCreate

logger = logging.getLogger(__name__)

# URGENT first; enum names do not sort by severity
_PRIORITY_RANK = case(
    (Task.priority == Priority.URGENT, 0),
    (Task.priority == Priority.HIGH, 1),
    (Task.priority == Priority.MEDIUM, 2),
    else_=3,
)


async def create_task(db: AsyncSession, task_in: TaskCreate) -> Task:
    """Create a PENDING task for a lead."""
    task = Task(
        lead_id=task_in.lead_id,
        title=task_in.title,
        description=task_in.description,
        type=task_in.type,
        priority=task_in.priority,
        assigned_to=task_in.assigned_to,
        due_at=task_in.due_at,
        status=TaskStatus.PENDING,
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)

    logger.info(
        "Task created: %s lead=%s type=%s priority=%s",
        task.id,
        task.lead_id,
        task.type.value,
        task.priority.value,
    )
    return task


async def list_tasks(
    db: AsyncSession,
    assigned_to: Optional[str] = None,
    status: Optional[TaskStatus] = None,
) -> list[Task]:
    """List tasks with their lead, most urgent and soonest due first."""
    query = select(Task).options(selectinload(Task.lead))
    if assigned_to:
        query = query.where(Task.assigned_to == assigned_to)
    if status:
        query = query.where(Task.status == status)
    query = query.order_by(_PRIORITY_RANK, Task.due_at.asc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def complete_task(db: AsyncSession, task_id: UUID, notes: Optional[str] = None) -> Task | None:
    """Mark a task COMPLETED. Returns None if it does not exist."""
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if not task:
        return None

    task.status = TaskStatus.COMPLETED
    task.completed_at = datetime.utcnow()
    task.notes = notes
    await db.commit()
    await db.refresh(task)

    logger.info("Task completed: %s", task_id)
    return task


async def _transition_pending(db: AsyncSession, lead_id: UUID, values: dict) -> int:
    result = await db.execute(
        update(Task)
        .where(Task.lead_id == lead_id, Task.status == TaskStatus.PENDING)
        .values(updated_at=datetime.utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def start_pending_tasks(
    db: AsyncSession,
    lead_id: UUID,
    assigned_to: Optional[str] = None,
    notes: Optional[str] = None,
) -> int:
    """Move a lead's PENDING tasks to IN_PROGRESS. Caller commits."""
    return await _transition_pending(
        db, lead_id, {"status": TaskStatus.IN_PROGRESS, "assigned_to": assigned_to, "notes": notes}
    )


async def cancel_pending_tasks(db: AsyncSession, lead_id: UUID, notes: Optional[str] = None) -> int:
    """Move a lead's PENDING tasks to CANCELLED. Caller commits."""
    return await _transition_pending(db, lead_id, {"status": TaskStatus.CANCELLED, "notes": notes})
