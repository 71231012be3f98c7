import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CalendarEventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False
    color: str = Field(default="#3B82F6", max_length=20)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_time < self.start_time:
            raise ValueError("An event cannot end before it starts.")
        return self


class CalendarEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    created_by_id: uuid.UUID
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: datetime
    is_all_day: bool
    color: str
    created_at: datetime


class CalendarEntry(BaseModel):
    """One row of the merged project calendar."""

    id: str
    title: str
    start: datetime
    end: datetime
    color: str
    all_day: bool
