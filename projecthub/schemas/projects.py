import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.models import Priority, ProjectRole, ProjectStatus
from .tasks import TaskResponse, UserSummary


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    workspace_id: uuid.UUID
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    department_id: Optional[uuid.UUID] = None
    client_name: Optional[str] = None
    internal_product: Optional[str] = None
    is_client: bool = False

    @field_validator("name", "client_name", "internal_product", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    workspace_id: uuid.UUID
    status: ProjectStatus
    priority: Priority
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    created_by: uuid.UUID
    department_id: Optional[uuid.UUID] = None
    client_name: Optional[str] = None
    internal_product: Optional[str] = None
    is_client: bool
    created_at: datetime


class ProjectMemberCreate(BaseModel):
    user_id: uuid.UUID
    role: ProjectRole = ProjectRole.MEMBER


class ProjectMemberRoleUpdate(BaseModel):
    role: ProjectRole


class ProjectMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    role: ProjectRole
    assigned_at: datetime
    user: UserSummary


class BoardResponse(BaseModel):
    project: ProjectResponse
    members: List[ProjectMemberResponse]
    columns: Dict[str, List[TaskResponse]]


class ProjectNotes(BaseModel):
    notes: List[Dict[str, Any]] = []
