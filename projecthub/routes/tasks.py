import uuid
from typing import Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.tasks import (
    CommentCreate,
    CommentResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
    TimeEntryCreate,
    TimeEntryCreated,
    UpdateTaskOrderRequest,
)
from ..services import task_service
from ..services.authorization import authorize_project_member
from ..services.task_ordering import reorder_tasks


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/update-order")
def update_order(
    payload: UpdateTaskOrderRequest,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    if not payload.tasks:
        return {"success": True, "message": "No tasks to update"}
    project_id = reorder_tasks(db, me.id, payload.tasks, project_id=payload.project_id)
    return {"success": True, "message": "Tasks updated successfully", "projectId": str(project_id)}


@router.get("", response_model=Dict[str, List[TaskResponse]])
def list_my_tasks(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return task_service.list_tasks_for_user(db, me.id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return task_service.create_task(db, me.id, payload)


@router.get("/{task_id}", response_model=TaskDetailResponse)
def get_task(task_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    task = task_service.get_task(db, task_id, with_details=True)
    authorize_project_member(db, me.id, task.project_id)
    return task


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return task_service.update_task(db, me.id, task_id, payload)


@router.put("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: uuid.UUID,
    payload: TaskStatusUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return task_service.update_task_status(db, me.id, task_id, payload.status)


@router.delete("/{task_id}")
def delete_task(task_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    task_service.delete_task(db, me.id, task_id)
    return {"message": "Task deleted successfully", "id": str(task_id)}


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    task_id: uuid.UUID,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return task_service.add_comment(db, me.id, task_id, payload.content)


@router.post("/{task_id}/time-entries", response_model=TimeEntryCreated, status_code=status.HTTP_201_CREATED)
def add_time_entry(
    task_id: uuid.UUID,
    payload: TimeEntryCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    entry = task_service.log_time(db, me.id, task_id, payload)
    return {"time_entry": entry, "actual_hours": task_service.get_actual_hours(db, task_id)}
