import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.models import Priority, TaskStatus


class TaskOrderItem(BaseModel):
    id: uuid.UUID
    position: int = Field(ge=0)
    status: TaskStatus


class UpdateTaskOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tasks: List[TaskOrderItem]
    project_id: Optional[uuid.UUID] = Field(default=None, alias="projectId")


class TaskCreate(BaseModel):
    title: str = Field(min_length=3)
    project_id: uuid.UUID
    description: Optional[str] = None
    assignee_id: Optional[uuid.UUID] = None
    reporter_id: Optional[uuid.UUID] = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    estimated_hours: Optional[Decimal] = Field(default=None, ge=0)
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def due_after_start(self):
        if self.start_date and self.due_date and self.due_date < self.start_date:
            raise ValueError("Due date cannot be before the start date.")
        return self


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[uuid.UUID] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment cannot be empty.")
        return v


class TimeEntryCreate(BaseModel):
    hours: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    date: datetime
    description: Optional[str] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: Optional[str] = None
    avatar: Optional[str] = None


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    content: str
    created_at: datetime
    user: UserSummary


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    hours: Decimal
    date: datetime
    description: Optional[str] = None
    created_at: datetime
    user: UserSummary


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    project_id: uuid.UUID
    assignee_id: Optional[uuid.UUID] = None
    reporter_id: uuid.UUID
    status: TaskStatus
    position: int
    priority: Priority
    estimated_hours: Optional[Decimal] = None
    actual_hours: Decimal
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    assignee: Optional[UserSummary] = None


class TaskDetailResponse(TaskResponse):
    reporter: Optional[UserSummary] = None
    comments: List[CommentResponse] = []
    time_entries: List[TimeEntryResponse] = []


class TimeEntryCreated(BaseModel):
    time_entry: TimeEntryResponse
    actual_hours: Decimal


class ProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    is_client: bool
    department_id: Optional[uuid.UUID] = None


class WorkTaskResponse(TaskResponse):
    project: ProjectSummary


class MyWorkResponse(BaseModel):
    user: UserSummary
    client_project_tasks: List[WorkTaskResponse]
    my_department_tasks: List[WorkTaskResponse]
    other_tasks: List[WorkTaskResponse]
