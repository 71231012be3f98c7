"""
Personal work lists: the tasks assigned to one user, grouped or filtered.
"""
import uuid
from typing import Dict, List, Optional

from sqlalchemy.orm import Query, Session, contains_eager

from ..errors import AuthorizationError, NotFoundError
from ..models.models import Project, ProjectMember, ProjectRole, SystemRole, Task, TaskStatus, User


ACTIVE_STATUSES = (TaskStatus.TODO, TaskStatus.IN_PROGRESS)
OPEN_STATUSES = ACTIVE_STATUSES + (TaskStatus.REVIEW,)
WORK_VIEWERS = (SystemRole.ADMIN, SystemRole.MANAGER)


def get_work_owner(db: Session, viewer: User, user_id: uuid.UUID) -> User:
    """Users see their own work; admins and managers may look at anyone's."""
    if viewer.id != user_id and viewer.role not in WORK_VIEWERS:
        raise AuthorizationError("You can only view your own work.")
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found.")
    return user


def _assigned(db: Session, user_id: uuid.UUID, statuses) -> Query:
    return (
        db.query(Task)
        .join(Task.project)
        .options(contains_eager(Task.project))
        .filter(Task.assignee_id == user_id, Task.status.in_(statuses))
        .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)
    )


def my_work(db: Session, user: User) -> Dict:
    """Open tasks in the user's projects, split into client, own-department and other work.

    Tasks waiting in REVIEW are left out where the user is a plain project member.
    """
    roles = dict(
        db.query(ProjectMember.project_id, ProjectMember.role).filter(ProjectMember.user_id == user.id).all()
    )
    grouped: Dict[str, List[Task]] = {"client_project_tasks": [], "my_department_tasks": [], "other_tasks": []}
    for task in _assigned(db, user.id, OPEN_STATUSES):
        role = roles.get(task.project_id)
        if role is None:
            continue
        if role == ProjectRole.MEMBER and task.status == TaskStatus.REVIEW:
            continue
        if task.project.is_client:
            grouped["client_project_tasks"].append(task)
        elif task.project.department_id and task.project.department_id == user.department_id:
            grouped["my_department_tasks"].append(task)
        else:
            grouped["other_tasks"].append(task)
    return {"user": user, **grouped}


def all_tasks(db: Session, user: User) -> List[Task]:
    return _assigned(db, user.id, tuple(TaskStatus)).all()


def client_tasks(db: Session, user: User) -> List[Task]:
    return _assigned(db, user.id, ACTIVE_STATUSES).filter(Project.is_client.is_(True)).all()


def department_tasks(db: Session, user: User, department_id: Optional[uuid.UUID]) -> List[Task]:
    return (
        _assigned(db, user.id, ACTIVE_STATUSES)
        .filter(Project.department_id == department_id, Project.is_client.is_(False))
        .all()
    )
