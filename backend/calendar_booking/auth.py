# backend/calendar_booking/auth.py
"""
Admin authentication boundary.

Login checks the password against a passlib hash and issues a JWT.
Admin routes depend on get_current_admin; the booking engine itself
never sees credentials.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import Settings
from .models import AdminUsers as DBAdmin

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminIdentity:
    admin_id: str
    username: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # not a recognised hash (e.g. legacy plaintext row)
        return False


def authenticate_admin(db: Session, username: str, password: str) -> Optional[DBAdmin]:
    admin = db.query(DBAdmin).filter(DBAdmin.username == username).first()
    if not admin or not verify_password(password, admin.password_hash):
        logger.warning(f"Failed admin login for {username!r}")
        return None
    return admin


def create_admin(db: Session, username: str, password: str) -> DBAdmin:
    """Create an admin, or reset the password of an existing one."""
    admin = db.query(DBAdmin).filter(DBAdmin.username == username).first()
    if admin:
        admin.password_hash = hash_password(password)
    else:
        admin = DBAdmin(
            admin_id=str(uuid.uuid4()),
            username=username,
            password_hash=hash_password(password),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        db.add(admin)
    db.commit()
    return admin


def create_access_token(admin: DBAdmin, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": admin.admin_id,
        "admin_id": admin.admin_id,
        "username": admin.username,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> AdminIdentity:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        raise credentials_exception from None

    admin_id = payload.get("admin_id")
    username = payload.get("username")
    if not admin_id or not username:
        raise credentials_exception
    return AdminIdentity(admin_id=admin_id, username=username)


def get_current_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AdminIdentity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(credentials.credentials, request.app.state.settings)
