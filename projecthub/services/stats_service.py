import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.models import (
    Department,
    Project,
    ProjectMember,
    Task,
    TaskStatus,
    TimeEntry,
    Workspace,
    WorkspaceMember,
    as_utc,
)


def start_of_week(now: datetime) -> datetime:
    """Midnight UTC of the most recent Sunday."""
    days = (now.weekday() + 1) % 7
    return (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)


def dashboard_stats(db: Session, user_id: uuid.UUID) -> Dict:
    workspaces = (
        db.query(func.count(func.distinct(Workspace.id)))
        .outerjoin(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(or_(Workspace.owner_id == user_id, WorkspaceMember.user_id == user_id))
        .scalar()
    )
    projects = (
        db.query(func.count(func.distinct(Project.id)))
        .outerjoin(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(or_(Project.created_by == user_id, ProjectMember.user_id == user_id))
        .scalar()
    )
    tasks = (
        db.query(func.count(Task.id))
        .filter(or_(Task.assignee_id == user_id, Task.reporter_id == user_id))
        .scalar()
    )
    hours = (
        db.query(func.coalesce(func.sum(TimeEntry.hours), 0))
        .filter(TimeEntry.user_id == user_id, TimeEntry.date >= start_of_week(datetime.now(timezone.utc)))
        .scalar()
    )
    return {
        "total_workspaces": workspaces,
        "total_projects": projects,
        "total_tasks": tasks,
        "total_hours": round(float(hours), 2),
    }


def department_stats(db: Session, workspace_id: uuid.UUID) -> List[Dict]:
    """Task totals per department for the projects of one workspace, busiest first."""
    now = datetime.now(timezone.utc)
    stats = {
        dept_id: {"id": dept_id, "name": name, "total_tasks": 0, "completed_tasks": 0, "overdue_tasks": 0}
        for dept_id, name in db.query(Department.id, Department.name).order_by(Department.name)
    }
    rows = (
        db.query(Project.department_id, Task.status, Task.due_date)
        .join(Task, Task.project_id == Project.id)
        .filter(Project.workspace_id == workspace_id, Project.department_id.isnot(None))
        .all()
    )
    for dept_id, task_status, due_date in rows:
        entry = stats[dept_id]
        entry["total_tasks"] += 1
        if task_status == TaskStatus.DONE:
            entry["completed_tasks"] += 1
        elif due_date is not None and as_utc(due_date) < now:
            entry["overdue_tasks"] += 1
    results = list(stats.values())
    for entry in results:
        total = entry["total_tasks"]
        entry["completion_rate"] = entry["completed_tasks"] / total * 100 if total else 0.0
    results.sort(key=lambda e: e["total_tasks"], reverse=True)
    return results
