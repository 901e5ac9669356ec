"""Dependency injection for FastAPI endpoints"""

import uuid
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from remit_ledger.domain.exceptions import AuthenticationError
from remit_ledger.domain.permissions import is_allowed
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import UserRepository
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a live user, 401 otherwise"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Not authorized")

    try:
        payload = decode_token(credentials.credentials)
        user_id = uuid.UUID(str(payload["id"]))
    except (AuthenticationError, ValueError):
        raise HTTPException(status_code=401, detail="Not authorized")

    user = UserRepository(db).get(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require(action: str) -> Callable[..., User]:
    """Dependency factory: authenticated user whose role allows the action"""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not is_allowed(user.role, action):
            raise HTTPException(status_code=403, detail="Forbidden: insufficient role")
        return user

    return dependency


def parse_id(raw: str, label: str = "record") -> uuid.UUID:
    """Path ids are validated by hand so malformed ids give 400, not 422"""
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")
