import uuid

from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_workspaces: int
    total_projects: int
    total_tasks: int
    total_hours: float


class DepartmentStats(BaseModel):
    id: uuid.UUID
    name: str
    total_tasks: int
    completed_tasks: int
    overdue_tasks: int
    completion_rate: float
