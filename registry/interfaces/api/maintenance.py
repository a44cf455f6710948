"""Maintenance API routes: bulk clears and data repair."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from registry.application.services.certificate_service import cleanup_certificates, clear_certificates
from registry.application.services.user_service import delete_all_members
from registry.domain.repositories.certificate_repository import CertificateRepository
from registry.domain.repositories.file_storage import FileStorage
from registry.domain.repositories.user_repository import UserRepository
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import (
    get_certificate_repository,
    get_db,
    get_file_storage,
    get_user_repository,
)

router = APIRouter(prefix="/api", tags=["Maintenance"])


@router.post("/clear-database")
def clear_database(
    db: Session = Depends(get_db),
    users: UserRepository = Depends(get_user_repository),
    certificates: CertificateRepository = Depends(get_certificate_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    users_deleted = delete_all_members(db, users, storage)
    certificates_deleted = clear_certificates(db, certificates)
    total = users_deleted + certificates_deleted
    return {
        "success": True,
        "message": (
            f"Successfully cleared database. Deleted {total} records "
            f"({users_deleted} users, {certificates_deleted} certificates)"
        ),
        "data": {
            "usersDeleted": users_deleted,
            "certificatesDeleted": certificates_deleted,
            "totalDeleted": total,
        },
    }


@router.post("/clear-certificates")
def clear_all_certificates(
    db: Session = Depends(get_db),
    certificates: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    deleted = clear_certificates(db, certificates)
    return {
        "success": True,
        "message": f"Successfully cleared certificates. Deleted {deleted} certificates",
        "data": {"certificatesDeleted": deleted},
    }


@router.post("/cleanup-certificates")
def cleanup(
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    count = cleanup_certificates(db)
    return {"success": True, "message": f"Successfully cleaned up {count} certificates", "count": count}
