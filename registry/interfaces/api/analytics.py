"""Analytics API routes: admin dashboard aggregates."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from registry.application.services.analytics_service import get_dashboard
from registry.domain.repositories.certificate_repository import CertificateRepository
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import get_certificate_repository, get_db

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    """All dashboard numbers in a single request."""
    return {"success": True, "data": get_dashboard(db, repo)}
