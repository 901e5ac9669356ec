"""Password hashing (bcrypt) and bearer tokens (JWT)"""

import uuid
from datetime import timedelta
from typing import Any, Dict

import bcrypt
import jwt

from remit_ledger.config import settings
from remit_ledger.domain.exceptions import AuthenticationError
from remit_ledger.utils.date_utils import utcnow


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def issue_token(user_id: uuid.UUID, role: str) -> str:
    """Sign a token carrying {id, role} that expires after the configured lifetime"""
    payload = {
        "id": str(user_id),
        "role": role,
        "exp": utcnow() + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry.

    Raises:
        AuthenticationError: Token is malformed, forged, expired or lacks an id
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise AuthenticationError(f"Not authorized: {e}") from e

    if "id" not in payload:
        raise AuthenticationError("Not authorized: token has no subject")
    return payload
