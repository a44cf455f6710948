"""Certificate API routes: issue, revoke, restore, verify, import/export."""

from typing import Any

from fastapi import APIRouter, Body, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse, Response
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from registry.application.services import certificate_service
from registry.application.services.csv_transformer import certificates_to_csv
from registry.core.exceptions import ValidationFailed
from registry.domain.repositories.certificate_repository import CertificateRepository
from registry.domain.schemas.certificate import (
    CertificateCreate,
    CertificateRead,
    CertificateSearchRequest,
    CertificateVerifyRequest,
    CertificateVerifyResponse,
    RevokeRequest,
)
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import get_certificate_repository, get_db

router = APIRouter(prefix="/api/certificates", tags=["Certificates"])


@router.get("")
def list_certificates(
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    return [CertificateRead.model_validate(c) for c in repo.list_all()]


@router.post("")
def issue_certificate(
    body: CertificateCreate,
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    certificate, created = certificate_service.issue_certificate(db, repo, body)
    content = {
        "success": True,
        "message": "Certificate created successfully" if created else "Certificate updated successfully",
        "certificate": CertificateRead.model_validate(certificate),
    }
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=jsonable_encoder(content),
    )


@router.put("/{certificate_id}/revoke")
def revoke_certificate(
    certificate_id: int,
    body: RevokeRequest,
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    certificate = certificate_service.revoke_certificate(db, repo, certificate_id, body.reason, body.revoked_by)
    return {
        "success": True,
        "message": "Certificate revoked successfully",
        "certificate": CertificateRead.model_validate(certificate),
    }


@router.put("/{certificate_id}/restore")
def restore_certificate(
    certificate_id: int,
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    certificate = certificate_service.restore_certificate(db, repo, certificate_id)
    return {
        "success": True,
        "message": "Certificate restored successfully",
        "certificate": CertificateRead.model_validate(certificate),
    }


@router.delete("/{certificate_id}")
def delete_certificate(
    certificate_id: int,
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    deleted = certificate_service.delete_certificate(db, repo, certificate_id)
    return {"success": True, "message": "Certificate deleted successfully", "data": deleted}


@router.post("/bulk-delete")
def bulk_delete_certificates(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    deleted = certificate_service.bulk_delete_certificates(db, repo, payload)
    return {
        "success": True,
        "message": f"Successfully deleted {deleted} certificates",
        "deletedCount": deleted,
    }


@router.post("/search")
def search_certificates(
    body: CertificateSearchRequest,
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    certificates = [CertificateRead.model_validate(c) for c in repo.search(body.query, body.filters)]
    return {"certificates": certificates, "count": len(certificates), "query": body.query, "filters": body.filters}


@router.get("/export")
def export_certificates(
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    return Response(
        content=certificates_to_csv(repo.list_all()),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=narap_certificates.csv"},
    )


@router.post("/import")
def import_certificates(
    file: UploadFile = File(None),
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
    admin: dict = Depends(require_admin),
):
    if file is None or not file.filename:
        raise ValidationFailed("No file uploaded")

    result = certificate_service.import_certificates(db, repo, file.file.read(), file.filename)
    return {
        "success": True,
        "message": f"Imported {result['created']} new and updated {result['updated']} certificates",
        **result,
    }


@router.post("/verify")
def verify_certificate(
    body: CertificateVerifyRequest,
    db: Session = Depends(get_db),
    repo: CertificateRepository = Depends(get_certificate_repository),
):
    certificate = certificate_service.verify_certificate(db, repo, body.lookup)
    return {
        "success": True,
        "message": "Certificate verified successfully",
        "certificate": CertificateVerifyResponse.from_certificate(certificate),
    }
