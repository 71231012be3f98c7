import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import List

import structlog
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..config import settings
from ..db import transaction
from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..models.models import (
    Project,
    ProjectMember,
    ProjectRole,
    User,
    Workspace,
    WorkspaceInvitation,
    WorkspaceMember,
    WorkspaceRole,
    as_utc,
)
from .authorization import authorize_workspace_member


logger = structlog.get_logger(__name__)

INVITERS = (WorkspaceRole.OWNER, WorkspaceRole.ADMIN)


def create_workspace(db: Session, user_id: uuid.UUID, name: str, description: str = None) -> Workspace:
    with transaction(db):
        workspace = Workspace(name=name.strip(), description=description, owner_id=user_id)
        db.add(workspace)
        db.flush()
        db.add(WorkspaceMember(workspace_id=workspace.id, user_id=user_id, role=WorkspaceRole.OWNER))
    logger.info("workspace_created", workspace_id=str(workspace.id), user_id=str(user_id))
    return workspace


def list_workspaces_for_user(db: Session, user_id: uuid.UUID) -> List[Workspace]:
    """Owned workspaces first, then the ones the user joined."""
    workspaces = (
        db.query(Workspace)
        .outerjoin(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(or_(Workspace.owner_id == user_id, WorkspaceMember.user_id == user_id))
        .distinct()
        .all()
    )
    return sorted(workspaces, key=lambda w: (w.owner_id != user_id, w.created_at))


def list_members(db: Session, user_id: uuid.UUID, workspace_id: uuid.UUID) -> List[WorkspaceMember]:
    authorize_workspace_member(db, user_id, workspace_id)
    return (
        db.query(WorkspaceMember)
        .options(joinedload(WorkspaceMember.user))
        .filter(WorkspaceMember.workspace_id == workspace_id)
        .order_by(WorkspaceMember.joined_at)
        .all()
    )


def invite_member(db: Session, user_id: uuid.UUID, workspace_id: uuid.UUID, email: str) -> WorkspaceInvitation:
    """Create or refresh the pending invitation for ``email``.

    Invitees always join as MEMBER; owners and admins promote them afterwards.
    Delivering the link is the mailer's job, so the token never reaches the logs.
    """
    if db.query(Workspace.id).filter(Workspace.id == workspace_id).first() is None:
        raise NotFoundError("Workspace not found.")
    authorize_workspace_member(db, user_id, workspace_id, roles=INVITERS)
    email = email.lower()
    already_member = (
        db.query(WorkspaceMember.id)
        .join(User, User.id == WorkspaceMember.user_id)
        .filter(WorkspaceMember.workspace_id == workspace_id, User.email == email)
        .first()
    )
    if already_member:
        raise ConflictError("This user is already a member.")

    invitation = (
        db.query(WorkspaceInvitation)
        .filter(WorkspaceInvitation.workspace_id == workspace_id, WorkspaceInvitation.email == email)
        .first()
    )
    expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.invitation_ttl_hours)
    with transaction(db):
        if invitation is None:
            invitation = WorkspaceInvitation(workspace_id=workspace_id, email=email)
            db.add(invitation)
        invitation.token = secrets.token_hex(32)
        invitation.role = WorkspaceRole.MEMBER
        invitation.invited_by_id = user_id
        invitation.accepted = False
        invitation.expires_at = expires_at
    logger.info(
        "invitation_created",
        invitation_id=str(invitation.id),
        workspace_id=str(workspace_id),
        expires_at=expires_at.isoformat(),
    )
    return invitation


def accept_invitation(db: Session, user: User, token: str) -> uuid.UUID:
    """Join the invited workspace and every project already in it; return the workspace id."""
    invitation = db.query(WorkspaceInvitation).filter(WorkspaceInvitation.token == token).first()
    if (
        invitation is None
        or invitation.accepted
        or as_utc(invitation.expires_at) < datetime.now(timezone.utc)
    ):
        raise NotFoundError("This invitation is invalid or has expired.")
    if invitation.email != user.email.lower():
        raise AuthorizationError("This invitation is for a different email address.")
    workspace_id = invitation.workspace_id
    already_member = (
        db.query(WorkspaceMember.id)
        .filter(WorkspaceMember.workspace_id == workspace_id, WorkspaceMember.user_id == user.id)
        .first()
    )
    if already_member:
        raise ConflictError("You are already a member of this workspace.")

    with transaction(db):
        db.add(WorkspaceMember(workspace_id=workspace_id, user_id=user.id, role=invitation.role))
        invitation.accepted = True

        project_ids = [pid for (pid,) in db.query(Project.id).filter(Project.workspace_id == workspace_id)]
        existing = {
            pid
            for (pid,) in db.query(ProjectMember.project_id).filter(
                ProjectMember.user_id == user.id, ProjectMember.project_id.in_(project_ids)
            )
        }
        for project_id in project_ids:
            if project_id not in existing:
                db.add(ProjectMember(project_id=project_id, user_id=user.id, role=ProjectRole.MEMBER))
    logger.info(
        "invitation_accepted",
        workspace_id=str(workspace_id),
        user_id=str(user.id),
        projects_joined=len(project_ids) - len(existing),
    )
    return workspace_id
