import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.calendar import CalendarEntry, CalendarEventCreate, CalendarEventResponse
from ..services import calendar_service


router = APIRouter(prefix="/projects", tags=["calendar"])


@router.post("/{project_id}/calendar", response_model=CalendarEventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    project_id: uuid.UUID,
    payload: CalendarEventCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return calendar_service.create_event(db, me.id, project_id, payload)


@router.get("/{project_id}/calendar", response_model=List[CalendarEntry])
def project_calendar(project_id: uuid.UUID, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return calendar_service.list_project_calendar(db, me.id, project_id)
