"""FastAPI dependency: JWT auth for admin routes."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from registry.application.services.auth_service import ADMIN_ROLE, decode_access_token
from registry.core.exceptions import UnauthorizedException

security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Extract and validate the bearer token."""
    if credentials is None:
        raise UnauthorizedException("Access denied. No token provided.")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token")
    return payload


def require_admin(payload: dict = Depends(get_token_payload)) -> dict:
    """Require the admin role."""
    if payload.get("role") != ADMIN_ROLE:
        raise UnauthorizedException("Admin access required")
    return payload
