from __future__ import annotations

from datetime import timedelta
from typing import Optional

import bcrypt
from fastapi import Header
from jose import JWTError, jwt

from .config import settings
from .errors import Unauthenticated
from .utils import now_utc


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def issue_token(user_id: str, email: str) -> str:
    """Sign a bearer token for ``user_id`` valid for ``TOKEN_EXPIRE_DAYS``."""
    expires = now_utc() + timedelta(days=settings.TOKEN_EXPIRE_DAYS)
    claims = {"userId": user_id, "email": email, "exp": expires}
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[str]:
    """Return the user id carried by ``token``, or ``None`` if it is invalid or expired."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    user_id = claims.get("userId")
    return str(user_id) if user_id else None


def get_current_user(authorization: Optional[str] = Header(default=None)) -> str:
    prefix = "Bearer "
    if not authorization or not authorization.startswith(prefix):
        raise Unauthenticated("Access denied. No token provided.", code="missing_token")
    user_id = verify_token(authorization[len(prefix) :].strip())
    if not user_id:
        raise Unauthenticated("Invalid or expired token.", code="invalid_token")
    return user_id
