import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.projects import (
    BoardResponse,
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberResponse,
    ProjectMemberRoleUpdate,
    ProjectNotes,
    ProjectResponse,
)
from ..services import project_service


router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return project_service.create_project(db, me.id, payload)


@router.get("", response_model=List[ProjectResponse])
def list_projects(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return project_service.list_projects_for_user(db, me.id)


@router.get("/{project_id}/board", response_model=BoardResponse)
def board_data(project_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return project_service.get_board(db, me.id, project_id)


@router.post("/{project_id}/members", response_model=ProjectMemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: uuid.UUID,
    payload: ProjectMemberCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return project_service.add_project_member(db, me.id, project_id, payload.user_id, payload.role)


@router.patch("/{project_id}/members/{user_id}", response_model=ProjectMemberResponse)
def change_member_role(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: ProjectMemberRoleUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return project_service.change_member_role(db, me.id, project_id, user_id, payload.role)


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    project_service.remove_project_member(db, me.id, project_id, user_id)


@router.delete("/{project_id}")
def delete_project(project_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    project_service.delete_project(db, me.id, project_id)
    return {"message": "Project deleted successfully", "id": str(project_id)}


@router.get("/{project_id}/notes", response_model=ProjectNotes)
def get_notes(project_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return {"notes": project_service.get_notes(db, me.id, project_id)}


@router.put("/{project_id}/notes", response_model=ProjectNotes)
def update_notes(
    project_id: uuid.UUID,
    payload: ProjectNotes,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return {"notes": project_service.update_notes(db, me.id, project_id, payload.notes)}
