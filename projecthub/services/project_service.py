import uuid
from typing import Dict, List

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..db import transaction
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.models import (
    Project,
    ProjectMember,
    ProjectRole,
    Task,
    TaskStatus,
    WorkspaceMember,
)
from ..schemas.projects import ProjectCreate
from .authorization import (
    authorize_project_deletion,
    authorize_project_lead,
    authorize_project_member,
    authorize_workspace_member,
)


logger = structlog.get_logger(__name__)


def get_project(db: Session, project_id: uuid.UUID) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if project is None:
        raise NotFoundError("Project not found.")
    return project


def project_name_exists(db: Session, workspace_id: uuid.UUID, name: str) -> bool:
    return (
        db.query(Project.id)
        .filter(Project.workspace_id == workspace_id, Project.name == name)
        .first()
        is not None
    )


def create_project(db: Session, user_id: uuid.UUID, data: ProjectCreate) -> Project:
    """Create a project and make its creator the project lead in one transaction."""
    authorize_workspace_member(db, user_id, data.workspace_id)
    if project_name_exists(db, data.workspace_id, data.name):
        raise ConflictError("Project already exists. Please search and add tasks to it.")
    try:
        with transaction(db):
            project = Project(created_by=user_id, **data.model_dump())
            db.add(project)
            db.flush()
            db.add(ProjectMember(project_id=project.id, user_id=user_id, role=ProjectRole.LEAD))
    except IntegrityError:
        # Lost a race against a concurrent create with the same name
        raise ConflictError("Project name already exists in this workspace.")
    logger.info("project_created", project_id=str(project.id), workspace_id=str(data.workspace_id), user_id=str(user_id))
    return project


def list_projects_for_user(db: Session, user_id: uuid.UUID) -> List[Project]:
    return (
        db.query(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == user_id)
        .order_by(Project.created_at.desc())
        .all()
    )


def get_board(db: Session, user_id: uuid.UUID, project_id: uuid.UUID) -> Dict:
    """Project members plus its tasks bucketed into kanban columns by position."""
    project = get_project(db, project_id)
    authorize_project_member(db, user_id, project_id)
    members = (
        db.query(ProjectMember)
        .options(joinedload(ProjectMember.user))
        .filter(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.assigned_at)
        .all()
    )
    tasks = (
        db.query(Task)
        .options(joinedload(Task.assignee))
        .filter(Task.project_id == project_id)
        .order_by(Task.position, Task.created_at)
        .all()
    )
    columns: Dict[str, list] = {s.value: [] for s in TaskStatus}
    for task in tasks:
        columns[task.status.value].append(task)
    return {"project": project, "members": members, "columns": columns}


def add_project_member(
    db: Session, user_id: uuid.UUID, project_id: uuid.UUID, member_user_id: uuid.UUID, role: ProjectRole
) -> ProjectMember:
    project = get_project(db, project_id)
    authorize_project_lead(db, user_id, project_id)
    in_workspace = (
        db.query(WorkspaceMember.id)
        .filter(WorkspaceMember.workspace_id == project.workspace_id, WorkspaceMember.user_id == member_user_id)
        .first()
    )
    if in_workspace is None:
        raise ValidationError("User must be a member of the project's workspace.")
    existing = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == member_user_id)
        .first()
    )
    if existing:
        raise ConflictError("User is already a member of this project.")
    with transaction(db):
        member = ProjectMember(project_id=project_id, user_id=member_user_id, role=role)
        db.add(member)
    db.refresh(member)
    return member


def _get_member(db: Session, project_id: uuid.UUID, member_user_id: uuid.UUID) -> ProjectMember:
    member = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == member_user_id)
        .first()
    )
    if member is None:
        raise NotFoundError("Project member not found.")
    return member


def _ensure_other_lead(db: Session, project_id: uuid.UUID, member_user_id: uuid.UUID) -> None:
    other_leads = (
        db.query(ProjectMember.id)
        .filter(
            ProjectMember.project_id == project_id,
            ProjectMember.role == ProjectRole.LEAD,
            ProjectMember.user_id != member_user_id,
        )
        .count()
    )
    if not other_leads:
        raise ValidationError("A project must keep at least one lead.")


def change_member_role(
    db: Session, user_id: uuid.UUID, project_id: uuid.UUID, member_user_id: uuid.UUID, role: ProjectRole
) -> ProjectMember:
    get_project(db, project_id)
    authorize_project_lead(db, user_id, project_id)
    member = _get_member(db, project_id, member_user_id)
    if member.role == ProjectRole.LEAD and role != ProjectRole.LEAD:
        _ensure_other_lead(db, project_id, member_user_id)
    with transaction(db):
        member.role = role
    return member


def remove_project_member(db: Session, user_id: uuid.UUID, project_id: uuid.UUID, member_user_id: uuid.UUID) -> None:
    get_project(db, project_id)
    authorize_project_lead(db, user_id, project_id)
    member = _get_member(db, project_id, member_user_id)
    if member.role == ProjectRole.LEAD:
        _ensure_other_lead(db, project_id, member_user_id)
    with transaction(db):
        db.delete(member)


def delete_project(db: Session, user_id: uuid.UUID, project_id: uuid.UUID) -> None:
    authorize_project_deletion(db, user_id)
    project = get_project(db, project_id)
    with transaction(db):
        db.delete(project)
    logger.info("project_deleted", project_id=str(project_id), user_id=str(user_id))


def get_notes(db: Session, user_id: uuid.UUID, project_id: uuid.UUID) -> list:
    project = get_project(db, project_id)
    authorize_project_member(db, user_id, project_id)
    return project.notes or []


def update_notes(db: Session, user_id: uuid.UUID, project_id: uuid.UUID, notes: list) -> list:
    """Replace the project's notes document wholesale."""
    project = get_project(db, project_id)
    authorize_project_member(db, user_id, project_id)
    with transaction(db):
        project.notes = notes
    logger.info("project_notes_updated", project_id=str(project_id), user_id=str(user_id), blocks=len(notes))
    return project.notes
