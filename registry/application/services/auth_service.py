"""Auth service: admin login, JWT token management and password hashing."""

import hmac
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from registry.config import get_settings

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_ROLE = "admin"
_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def parse_expiry(value: str) -> timedelta:
    """Turn "24h", "30m", "7d" or a plain number of seconds into a timedelta."""
    match = _DURATION.match(str(value))
    if not match:
        raise ValueError(f"Invalid JWT_EXPIRE value: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_UNITS[unit.lower()]: int(amount)})


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or parse_expiry(settings.JWT_EXPIRE))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def authenticate_admin(email: str, password: str) -> bool:
    """Constant-time comparison against the configured admin credentials."""
    email_ok = hmac.compare_digest(
        (email or "").strip().lower().encode("utf-8"),
        settings.ADMIN_EMAIL.strip().lower().encode("utf-8"),
    )
    password_ok = hmac.compare_digest(
        (password or "").encode("utf-8"),
        settings.ADMIN_PASSWORD.encode("utf-8"),
    )
    return email_ok and password_ok


def issue_admin_token(email: str) -> str:
    return create_access_token(
        data={
            "sub": email,
            "email": email,
            "role": ADMIN_ROLE,
            "timestamp": int(time.time() * 1000),
        }
    )
