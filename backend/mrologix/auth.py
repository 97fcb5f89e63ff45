import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from . import models

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _truncate(password: str) -> str:
    # bcrypt hard limit is 72 bytes
    return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(_truncate(password))


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(_truncate(plain), hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.auth.expire_days))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.auth.secret, algorithm=settings.auth.algorithm)


def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.auth.secret, algorithms=[settings.auth.algorithm])
    except JWTError:
        return None


def token_for(user: models.User) -> str:
    return create_access_token({"id": str(user.id), "email": user.email, "name": user.full_name})


def _extract_token(cookie_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
    if cookie_token:
        return cookie_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def _resolve_user(db: Session, token: Optional[str]) -> Optional[models.User]:
    if not token:
        return None
    payload = decode_token(token)
    if not payload or not payload.get("id"):
        return None
    try:
        user_id = UUID(str(payload["id"]))
    except ValueError:
        return None
    return db.get(models.User, user_id)


def get_current_user(
    token: Optional[str] = Cookie(default=None),
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    raw = _extract_token(token, authorization)
    if not raw:
        raise HTTPException(status_code=401, detail="Authentication required")
    user = _resolve_user(db, raw)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


def get_optional_user(
    token: Optional[str] = Cookie(default=None),
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> Optional[models.User]:
    return _resolve_user(db, _extract_token(token, authorization))
