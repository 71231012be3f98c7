import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..models.models import SystemRole


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    id: uuid.UUID
    email: EmailStr
    name: Optional[str] = None
    avatar: Optional[str] = None
    role: SystemRole

    class Config:
        from_attributes = True
