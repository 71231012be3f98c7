import uuid
from decimal import Decimal
from typing import Dict, List, Optional

import structlog
from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload, selectinload

from ..db import transaction
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.models import (
    ProjectMember,
    ProjectRole,
    Task,
    TaskComment,
    TaskStatus,
    TimeEntry,
    utcnow,
)
from ..schemas.tasks import TaskCreate, TaskUpdate, TimeEntryCreate
from .authorization import authorize_project_member, can_user_access_task
from .task_ordering import compact_column, next_position


logger = structlog.get_logger(__name__)


def get_task(db: Session, task_id: uuid.UUID, *, with_details: bool = False) -> Task:
    q = db.query(Task).options(joinedload(Task.assignee))
    if with_details:
        q = q.options(
            joinedload(Task.reporter),
            selectinload(Task.comments).joinedload(TaskComment.user),
            selectinload(Task.time_entries).joinedload(TimeEntry.user),
        )
    task = q.filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError("Task not found.")
    return task


def _ensure_project_member(db: Session, project_id: uuid.UUID, user_id: uuid.UUID, label: str) -> None:
    exists = (
        db.query(ProjectMember.id)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )
    if exists is None:
        raise ValidationError(f"The {label} must be a member of the project.")


def create_task(db: Session, user_id: uuid.UUID, data: TaskCreate) -> Task:
    authorize_project_member(db, user_id, data.project_id)
    reporter_id = data.reporter_id or user_id
    if data.assignee_id:
        _ensure_project_member(db, data.project_id, data.assignee_id, "assignee")
    if reporter_id != user_id:
        _ensure_project_member(db, data.project_id, reporter_id, "reporter")

    with transaction(db):
        task = Task(
            title=data.title,
            description=data.description,
            project_id=data.project_id,
            assignee_id=data.assignee_id,
            reporter_id=reporter_id,
            priority=data.priority,
            status=data.status,
            position=next_position(db, data.project_id, data.status),
            estimated_hours=data.estimated_hours,
            actual_hours=Decimal("0"),
            start_date=data.start_date,
            due_date=data.due_date,
        )
        db.add(task)
    logger.info("task_created", task_id=str(task.id), project_id=str(task.project_id), user_id=str(user_id))
    return task


def list_tasks_for_user(db: Session, user_id: uuid.UUID) -> Dict[str, List[Task]]:
    """Tasks assigned to the user, grouped by status and ordered by column position."""
    tasks = (
        db.query(Task)
        .options(joinedload(Task.assignee))
        .filter(Task.assignee_id == user_id)
        .order_by(Task.project_id, Task.position)
        .all()
    )
    grouped: Dict[str, List[Task]] = {s.value: [] for s in TaskStatus}
    for task in tasks:
        grouped[task.status.value].append(task)
    return grouped


def _move_to_column(db: Session, task: Task, status: TaskStatus) -> None:
    # Append to the end of the new column and close the gap left behind
    old_status = task.status
    task.position = next_position(db, task.project_id, status)
    task.status = status
    db.flush()
    compact_column(db, task.project_id, old_status)


def update_task(db: Session, user_id: uuid.UUID, task_id: uuid.UUID, data: TaskUpdate) -> Task:
    task = get_task(db, task_id)
    authorize_project_member(db, user_id, task.project_id)
    fields = data.model_dump(exclude_unset=True)
    status = fields.pop("status", None)
    if fields.get("assignee_id"):
        _ensure_project_member(db, task.project_id, fields["assignee_id"], "assignee")

    with transaction(db):
        for key, value in fields.items():
            if key == "title" and value is None:
                continue
            setattr(task, key, value)
        if status is not None and status != task.status:
            _move_to_column(db, task, status)
    return task


def update_task_status(db: Session, user_id: uuid.UUID, task_id: uuid.UUID, status: TaskStatus) -> Task:
    task = can_user_access_task(db, task_id, user_id)
    if status != task.status:
        with transaction(db):
            _move_to_column(db, task, status)
        logger.info("task_status_changed", task_id=str(task.id), status=status.value, user_id=str(user_id))
    return task


def delete_task(db: Session, user_id: uuid.UUID, task_id: uuid.UUID) -> None:
    task = get_task(db, task_id)
    role = authorize_project_member(db, user_id, task.project_id)
    if role != ProjectRole.LEAD and task.reporter_id != user_id:
        raise AuthorizationError("Only the project lead or the reporter can delete this task.")
    project_id, status = task.project_id, task.status
    with transaction(db):
        db.delete(task)
        db.flush()
        compact_column(db, project_id, status)
    logger.info("task_deleted", task_id=str(task_id), project_id=str(project_id), user_id=str(user_id))


def add_comment(db: Session, user_id: uuid.UUID, task_id: uuid.UUID, content: str) -> TaskComment:
    task = get_task(db, task_id)
    authorize_project_member(db, user_id, task.project_id)
    with transaction(db):
        comment = TaskComment(task_id=task.id, user_id=user_id, content=content)
        db.add(comment)
    db.refresh(comment)
    return comment


def log_time(db: Session, user_id: uuid.UUID, task_id: uuid.UUID, data: TimeEntryCreate) -> TimeEntry:
    """Append a time entry and add its hours to the task's running total, atomically."""
    task = get_task(db, task_id)
    authorize_project_member(db, user_id, task.project_id)
    with transaction(db):
        entry = TimeEntry(
            task_id=task.id,
            user_id=user_id,
            hours=data.hours,
            date=data.date,
            description=data.description,
        )
        db.add(entry)
        # Increment in SQL so concurrent entries never overwrite each other
        db.execute(
            update(Task)
            .where(Task.id == task.id)
            .values(actual_hours=Task.actual_hours + data.hours, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    db.refresh(task)
    db.refresh(entry)
    logger.info("time_logged", task_id=str(task.id), user_id=str(user_id), hours=str(data.hours))
    return entry


def get_actual_hours(db: Session, task_id: uuid.UUID) -> Optional[Decimal]:
    return db.query(Task.actual_hours).filter(Task.id == task_id).scalar()
