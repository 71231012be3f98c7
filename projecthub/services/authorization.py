"""
Authorization checks for project, task and workspace mutations.

Every check is read-only and raises a typed error when access is denied;
a check that returns has granted access.
"""
import uuid
from typing import Iterable, Optional, Sequence

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.models import (
    ProjectMember,
    ProjectRole,
    SystemRole,
    Task,
    User,
    WorkspaceMember,
    WorkspaceRole,
)


NOT_A_MEMBER = "You are not a member of this project."
CROSS_PROJECT = "Cannot modify tasks from different projects."
NOT_ASSIGNEE = "You can only modify tasks assigned to you."
NOT_A_LEAD = "Only a project lead can perform this action."
CANNOT_DELETE_PROJECT = "You do not have the required permissions to delete this project."
NOT_A_WORKSPACE_MEMBER = "You are not a member of this workspace."


def authorize_project_member(db: Session, user_id: uuid.UUID, project_id: uuid.UUID) -> ProjectRole:
    member = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
    )
    if member is None:
        raise AuthorizationError(NOT_A_MEMBER)
    return member.role


def authorize_project_lead(db: Session, user_id: uuid.UUID, project_id: uuid.UUID) -> None:
    if authorize_project_member(db, user_id, project_id) != ProjectRole.LEAD:
        raise AuthorizationError(NOT_A_LEAD)


def authorize_task_update(db: Session, user_id: uuid.UUID, tasks: Sequence) -> uuid.UUID:
    """Check that ``user_id`` may rewrite every task in ``tasks``; return their project id.

    The first task decides the project and the caller's role in it:

    * a LEAD may touch any task of that project, but only that project;
    * a MEMBER may only touch tasks assigned to them.

    Each policy is enforced with one count of the offending rows in the batch.
    """
    if not tasks:
        raise ValidationError("At least one task is required.")
    task_ids = [t.id for t in tasks]

    context = (
        db.query(Task.project_id, ProjectMember.role)
        .outerjoin(
            ProjectMember,
            and_(ProjectMember.project_id == Task.project_id, ProjectMember.user_id == user_id),
        )
        .filter(Task.id == task_ids[0])
        .first()
    )
    if context is None:
        raise NotFoundError("Task not found.")
    project_id, role = context
    if role is None:
        raise AuthorizationError(NOT_A_MEMBER)

    if role == ProjectRole.LEAD:
        violations = (
            db.query(func.count(Task.id))
            .filter(Task.id.in_(task_ids), Task.project_id != project_id)
            .scalar()
        )
        if violations:
            raise AuthorizationError(CROSS_PROJECT)
    else:
        # Unassigned tasks are not the member's to move either
        violations = (
            db.query(func.count(Task.id))
            .filter(
                Task.id.in_(task_ids),
                or_(Task.assignee_id.is_(None), Task.assignee_id != user_id),
            )
            .scalar()
        )
        if violations:
            raise AuthorizationError(NOT_ASSIGNEE)

    return project_id


def can_user_access_task(db: Session, task_id: uuid.UUID, user_id: uuid.UUID) -> Task:
    """The assignee or the reporter of a task may change its status."""
    task = db.query(Task).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError("Task not found.")
    if user_id not in (task.assignee_id, task.reporter_id):
        raise AuthorizationError("User is not authorized to access this task.")
    return task


def has_user_role(db: Session, user_id: uuid.UUID, expected_role: SystemRole) -> bool:
    role = db.query(User.role).filter(User.id == user_id).scalar()
    return role == expected_role


def authorize_project_deletion(db: Session, user_id: uuid.UUID) -> None:
    if not has_user_role(db, user_id, SystemRole.ADMIN):
        raise AuthorizationError(CANNOT_DELETE_PROJECT)


def authorize_workspace_member(
    db: Session,
    user_id: uuid.UUID,
    workspace_id: uuid.UUID,
    roles: Optional[Iterable[WorkspaceRole]] = None,
) -> WorkspaceRole:
    member = (
        db.query(WorkspaceMember)
        .filter(WorkspaceMember.workspace_id == workspace_id, WorkspaceMember.user_id == user_id)
        .first()
    )
    if member is None:
        raise AuthorizationError(NOT_A_WORKSPACE_MEMBER)
    if roles is not None and member.role not in set(roles):
        raise AuthorizationError("You do not have the required role in this workspace.")
    return member.role
