import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import AuthenticationError, AuthorizationError
from ..models.models import SystemRole, User


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
http_bearer = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unknown or malformed hash
        return False


def _create_token(sub: str, ttl_seconds: int, extra: Optional[dict] = None) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, role: Optional[str] = None) -> str:
    return _create_token(user_id, settings.jwt_ttl_seconds, extra={"role": role, "type": "access"})


def create_refresh_token(user_id: str) -> str:
    return _create_token(user_id, settings.refresh_ttl_seconds, extra={"type": "refresh"})


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    db: Session = Depends(get_db),
) -> User:
    if creds is None:
        raise AuthenticationError("Not authenticated")
    payload = decode_token(creds.credentials)
    if payload.get("type") == "refresh":
        raise AuthenticationError("Refresh tokens cannot be used for API access")
    try:
        user_uuid = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError("Invalid subject")
    user = db.query(User).filter(User.id == user_uuid).first()
    if user is None or not user.is_active:
        raise AuthenticationError("User not active")
    return user


def require_roles(*required_roles: SystemRole):
    """Dependency factory: the current user must hold one of the given system roles."""

    def _dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in required_roles:
            raise AuthorizationError("Forbidden")
        return user

    return _dep
