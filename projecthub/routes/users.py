import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.tasks import MyWorkResponse, WorkTaskResponse
from ..services import work_service


router = APIRouter(prefix="/users/{user_id}/my-work", tags=["my-work"])


@router.get("", response_model=MyWorkResponse)
def my_work(user_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return work_service.my_work(db, work_service.get_work_owner(db, me, user_id))


@router.get("/all-tasks", response_model=List[WorkTaskResponse])
def all_tasks(user_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return work_service.all_tasks(db, work_service.get_work_owner(db, me, user_id))


@router.get("/client-tasks", response_model=List[WorkTaskResponse])
def client_tasks(user_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return work_service.client_tasks(db, work_service.get_work_owner(db, me, user_id))


@router.get("/department-tasks", response_model=List[WorkTaskResponse])
def department_tasks(
    user_id: uuid.UUID,
    department_id: uuid.UUID = Query(...),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return work_service.department_tasks(db, work_service.get_work_owner(db, me, user_id), department_id)
