"""Admin authentication: password hashing, JWT issue/verify, route dependency."""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import JWT_ALGORITHM, JWT_EXPIRE_HOURS, SECRET_KEY
from database import get_db
from models import Admin

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000

security = HTTPBearer(auto_error=False)


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return ``salt$hexdigest`` for a PBKDF2-SHA256 hash of ``password``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, hashed: str) -> bool:
    salt, _, _ = hashed.partition("$")
    return hmac.compare_digest(hash_password(password, salt), hashed)


def create_token(admin: Admin, hours: int = JWT_EXPIRE_HOURS) -> str:
    payload = {
        "sub": admin.id,
        "email": admin.email,
        "role": admin.role,
        "exp": datetime.now(timezone.utc) + timedelta(hours=hours),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[Admin]:
    result = await db.execute(select(Admin).where(Admin.email == email.strip().lower()))
    admin = result.scalars().first()
    if admin is None or not verify_password(password, admin.password_hash):
        logger.warning(f"Failed admin login for {email}")
        return None
    logger.info(f"Admin {admin.email} logged in")
    return admin


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """Route dependency: the admin identified by the bearer token."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if payload.get("role") != "admin":
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action")

    admin = await db.get(Admin, payload.get("sub"))
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return admin


def admin_to_json(admin: Admin) -> dict:
    return {"id": admin.id, "email": admin.email, "name": admin.name, "role": admin.role}
