"""
Kanban ordering for tasks.

A task's ``position`` is its zero-based index inside the (project, status)
column it sits in. ``update_task_order`` applies a client-computed layout as
one atomic batch; it does not move tasks that are left out of the batch, so
the caller must send every task whose position or status changes as a side
effect of a drag-and-drop move.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ..db import transaction
from ..errors import NotFoundError, ValidationError
from ..models.models import Task, TaskStatus
from .authorization import authorize_task_update


logger = structlog.get_logger(__name__)


def update_task_order(db: Session, updates: Sequence) -> None:
    """Write every ``{id, position, status}`` entry in input order, all or nothing.

    An id that matches no task aborts the batch with ``NotFoundError`` and
    rolls back the entries already written. When an id repeats, the last
    entry wins.
    """
    if not updates:
        return
    with transaction(db) as tx:
        _lock_tasks(tx, [u.id for u in updates])
        now = datetime.now(timezone.utc)
        for item in updates:
            result = tx.execute(
                update(Task)
                .where(Task.id == item.id)
                .values(position=item.position, status=item.status, updated_at=now)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Task {item.id} not found.")


def reorder_tasks(
    db: Session,
    user_id: uuid.UUID,
    updates: Sequence,
    project_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    """Authorize ``user_id`` for the batch and apply it; return the batch's project id."""
    batch_project_id = authorize_task_update(db, user_id, updates)
    if project_id is not None and project_id != batch_project_id:
        raise ValidationError("projectId does not match the project of the submitted tasks.")
    update_task_order(db, updates)
    logger.info(
        "task_order_updated",
        user_id=str(user_id),
        project_id=str(batch_project_id),
        task_count=len(updates),
    )
    return batch_project_id


def next_position(db: Session, project_id: uuid.UUID, status: TaskStatus) -> int:
    """Position that appends a task to the end of a column."""
    return (
        db.query(func.count(Task.id))
        .filter(Task.project_id == project_id, Task.status == status)
        .scalar()
        or 0
    )


def compact_column(db: Session, project_id: uuid.UUID, status: TaskStatus) -> None:
    """Re-pack a column to positions 0..n-1, keeping its current relative order.

    Runs inside the caller's transaction; the caller commits.
    """
    tasks = (
        db.query(Task)
        .filter(Task.project_id == project_id, Task.status == status)
        .order_by(Task.position, Task.created_at)
        .all()
    )
    for index, task in enumerate(tasks):
        if task.position != index:
            task.position = index


def _lock_tasks(db: Session, task_ids) -> None:
    # Ordered by id so concurrent batches take row locks in the same order.
    # SQLite ignores FOR UPDATE.
    (
        db.query(Task.id)
        .filter(Task.id.in_(set(task_ids)))
        .order_by(Task.id)
        .with_for_update()
        .all()
    )
