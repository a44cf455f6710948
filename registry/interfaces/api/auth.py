"""Auth API routes: admin login, logout, token check."""

import structlog
from fastapi import APIRouter, Depends

from registry.application.services.auth_service import (
    ADMIN_ROLE,
    authenticate_admin,
    issue_admin_token,
)
from registry.core.exceptions import UnauthorizedException
from registry.domain.schemas.auth import AdminRead, LoginRequest, TokenResponse
from registry.interfaces.api.deps import require_admin

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
@router.post("/auth/login", response_model=TokenResponse)
def login(body: LoginRequest):
    if not authenticate_admin(body.email, body.password):
        logger.warning("Admin login failed", email=body.email)
        raise UnauthorizedException("Invalid credentials")

    email = body.email.strip().lower()
    logger.info("Admin logged in", email=email)
    return TokenResponse(
        token=issue_admin_token(email),
        user=AdminRead(email=email, role=ADMIN_ROLE),
    )


@router.post("/auth/logout")
def logout():
    # Tokens are stateless; the client discards its copy
    return {"success": True, "message": "Logged out successfully"}


@router.get("/auth/verify")
def verify_token(payload: dict = Depends(require_admin)):
    return {
        "success": True,
        "message": "Token is valid",
        "user": {"email": payload.get("email"), "role": payload.get("role")},
    }
