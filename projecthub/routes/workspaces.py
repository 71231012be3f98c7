import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.workspaces import (
    InvitationAccept,
    InvitationCreate,
    InvitationResponse,
    WorkspaceCreate,
    WorkspaceMemberResponse,
    WorkspaceResponse,
)
from ..services import workspace_service


router = APIRouter(tags=["workspaces"])


@router.post("/workspaces", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
def create_workspace(payload: WorkspaceCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return workspace_service.create_workspace(db, me.id, payload.name, payload.description)


@router.get("/workspaces", response_model=List[WorkspaceResponse])
def list_workspaces(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return workspace_service.list_workspaces_for_user(db, me.id)


@router.get("/workspaces/{workspace_id}/members", response_model=List[WorkspaceMemberResponse])
def list_members(workspace_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return workspace_service.list_members(db, me.id, workspace_id)


@router.post(
    "/workspaces/{workspace_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
def invite(
    workspace_id: uuid.UUID,
    payload: InvitationCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return workspace_service.invite_member(db, me.id, workspace_id, payload.email)


@router.post("/invitations/accept")
def accept_invitation(payload: InvitationAccept, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    workspace_id = workspace_service.accept_invitation(db, me, payload.token)
    return {"success": True, "workspaceId": str(workspace_id)}
