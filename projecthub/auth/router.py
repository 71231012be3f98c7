import uuid
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..db import get_db, transaction
from ..errors import AuthenticationError, ConflictError
from ..models.models import SystemRole, User
from ..schemas.auth import LoginRequest, MeResponse, RefreshRequest, SignupRequest, TokenResponse
from .security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    get_password_hash,
    verify_password,
)


router = APIRouter(prefix="/auth", tags=["auth"])
logger = structlog.get_logger(__name__)


def _issue_tokens(user: User) -> TokenResponse:
    access = create_access_token(str(user.id), role=user.role.value)
    refresh = create_refresh_token(str(user.id))
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/signup", response_model=MeResponse, status_code=status.HTTP_201_CREATED)
def signup(req: SignupRequest, db: Session = Depends(get_db)):
    email = req.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("An account with this email already exists.")
    with transaction(db):
        user = User(
            email=email,
            name=(req.name or "").strip() or email.split("@")[0],
            password_hash=get_password_hash(req.password),
            role=SystemRole.MEMBER,
        )
        db.add(user)
    db.refresh(user)
    logger.info("user_signed_up", user_id=str(user.id))
    return user


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == req.email.lower()).first()
    if not user or not user.is_active or not verify_password(req.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    with transaction(db):
        user.last_login_at = datetime.now(timezone.utc)
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(req: RefreshRequest, db: Session = Depends(get_db)):
    payload = decode_token(req.refresh_token)
    if payload.get("type") != "refresh":
        raise AuthenticationError("Invalid refresh token")
    user = db.query(User).filter(User.id == _subject(payload)).first()
    if user is None or not user.is_active:
        raise AuthenticationError("User not active")
    return _issue_tokens(user)


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return user


def _subject(payload: dict) -> uuid.UUID:
    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError("Invalid subject")
