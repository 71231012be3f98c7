"""
Project calendar: stored events merged with task due dates and the project milestone.
"""
import uuid
from typing import Dict, List

import structlog
from sqlalchemy.orm import Session

from ..db import transaction
from ..models.models import CalendarEvent, Task, as_utc
from ..schemas.calendar import CalendarEventCreate
from .authorization import authorize_project_member
from .project_service import get_project


logger = structlog.get_logger(__name__)

TASK_COLOR = "#F59E0B"
MILESTONE_COLOR = "#EF4444"


def create_event(db: Session, user_id: uuid.UUID, project_id: uuid.UUID, data: CalendarEventCreate) -> CalendarEvent:
    get_project(db, project_id)
    authorize_project_member(db, user_id, project_id)
    with transaction(db):
        event = CalendarEvent(project_id=project_id, created_by_id=user_id, **data.model_dump())
        db.add(event)
    db.refresh(event)
    logger.info("calendar_event_created", event_id=str(event.id), project_id=str(project_id), user_id=str(user_id))
    return event


def list_project_calendar(db: Session, user_id: uuid.UUID, project_id: uuid.UUID) -> List[Dict]:
    """Every dated thing in a project, earliest first.

    Tasks with a due date and the project's own due date show up as
    all-day entries next to the stored events.
    """
    project = get_project(db, project_id)
    authorize_project_member(db, user_id, project_id)

    entries = [
        {
            "id": str(event.id),
            "title": event.title,
            "start": as_utc(event.start_time),
            "end": as_utc(event.end_time),
            "color": event.color,
            "all_day": event.is_all_day,
        }
        for event in db.query(CalendarEvent).filter(CalendarEvent.project_id == project_id)
    ]
    tasks = (
        db.query(Task.id, Task.title, Task.due_date)
        .filter(Task.project_id == project_id, Task.due_date.isnot(None))
        .all()
    )
    for task_id, title, due_date in tasks:
        due = as_utc(due_date)
        entries.append(
            {"id": f"task-{task_id}", "title": f"[Task] {title}", "start": due, "end": due, "color": TASK_COLOR, "all_day": True}
        )
    if project.due_date is not None:
        due = as_utc(project.due_date)
        entries.append(
            {
                "id": f"project-{project.id}",
                "title": f"[Milestone] Project Due: {project.name}",
                "start": due,
                "end": due,
                "color": MILESTONE_COLOR,
                "all_day": True,
            }
        )
    entries.sort(key=lambda e: e["start"])
    return entries
