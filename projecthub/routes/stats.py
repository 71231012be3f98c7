import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..models.models import SystemRole, User
from ..schemas.stats import DashboardStats, DepartmentStats
from ..services import stats_service


router = APIRouter(tags=["stats"])


@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return stats_service.dashboard_stats(db, me.id)


@router.get("/stats/departments", response_model=List[DepartmentStats])
def departments(
    workspace_id: uuid.UUID = Query(...),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(SystemRole.ADMIN, SystemRole.MANAGER)),
):
    return stats_service.department_stats(db, workspace_id)
