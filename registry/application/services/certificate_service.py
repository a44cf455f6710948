"""Certificate service: issue, revoke, restore, verify and bulk operations."""

import random
import time
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from registry.application.services.activity_service import record_activity
from registry.application.services.csv_transformer import certificate_rows, read_table
from registry.application.services.limits_service import can_add_certificate
from registry.config import get_settings
from registry.core.dates import as_utc, utcnow
from registry.core.exceptions import (
    CapacityExceeded,
    ConflictError,
    EntityNotFoundException,
    ValidationFailed,
    conflict_from_integrity_error,
)
from registry.domain.models.certificate import Certificate
from registry.domain.repositories.certificate_repository import CertificateRepository
from registry.domain.schemas.certificate import CertificateCreate
from registry.domain.schemas.user import normalize_state

settings = get_settings()
logger = structlog.get_logger(__name__)

STATE_CODES = {
    "ABIA": "ABI", "ADAMAWA": "ADA", "AKWA IBOM": "AKW", "ANAMBRA": "ANA", "BAUCHI": "BAU",
    "BAYELSA": "BAY", "BENUE": "BEN", "BORNO": "BOR", "CROSS RIVER": "CRS", "DELTA": "DEL",
    "EBONYI": "EBO", "EDO": "EDO", "EKITI": "EKI", "ENUGU": "ENU", "FCT": "FCT", "GOMBE": "GOM",
    "IMO": "IMO", "JIGAWA": "JIG", "KADUNA": "KAD", "KANO": "KAN", "KATSINA": "KAT", "KEBBI": "KEB",
    "KOGI": "KOG", "KWARA": "KWA", "LAGOS": "LAG", "NASARAWA": "NAS", "NIGER": "NIG", "OGUN": "OGU",
    "ONDO": "OND", "OSUN": "OSU", "OYO": "OYO", "PLATEAU": "PLA", "RIVERS": "RIV", "SOKOTO": "SOK",
    "TARABA": "TAR", "YOBE": "YOB", "ZAMFARA": "ZAM",
}


def state_code(state: Optional[str]) -> str:
    name = normalize_state(state or "") or ""
    return STATE_CODES.get(name, name[:3])


def generate_serial_number() -> str:
    return f"{settings.SERIAL_PREFIX}-{int(time.time() * 1000)}-{random.randint(0, 9999)}"


def get_certificate_or_404(repo: CertificateRepository, certificate_id: int) -> Certificate:
    certificate = repo.get_by_id(certificate_id)
    if certificate is None:
        raise EntityNotFoundException("Certificate not found", {"id": certificate_id})
    return certificate


def issue_certificate(db: Session, repo: CertificateRepository, data: CertificateCreate) -> Tuple[Certificate, bool]:
    """Upsert by number. Returns (certificate, created)."""
    fields = data.model_dump(exclude_unset=True)
    fields["number"] = data.number

    existing = repo.get_by_number(data.number)
    if existing is not None:
        for field, value in fields.items():
            setattr(existing, field, value)
        existing.certificate_number = data.number
        record_activity(db, "certificate", "update", {"id": existing.id, "number": existing.number})
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise conflict_from_integrity_error(e, ("number",)) from e
        db.refresh(existing)
        logger.info("Certificate updated", number=existing.number)
        return existing, False

    check = can_add_certificate(db)
    if not check.allowed:
        raise CapacityExceeded(check.message, "CERTIFICATE_LIMIT_REACHED", check.current_count, check.limit)

    fields.setdefault("issue_date", None)
    certificate = Certificate(
        **fields,
        certificate_number=data.number,
        status="active",
        issued_by=settings.ISSUER_NAME,
        serial_number=generate_serial_number(),
    )
    if certificate.issue_date is None:
        certificate.issue_date = utcnow()

    db.add(certificate)
    try:
        db.flush()
        record_activity(db, "certificate", "create", {"id": certificate.id, "number": certificate.number})
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise conflict_from_integrity_error(e, ("number", "serial")) from e
    db.refresh(certificate)

    logger.info("Certificate issued", number=certificate.number, serial=certificate.serial_number)
    return certificate, True


def revoke_certificate(
    db: Session,
    repo: CertificateRepository,
    certificate_id: int,
    reason: Optional[str],
    revoked_by: Optional[str] = None,
) -> Certificate:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed("Revocation reason is required")

    certificate = get_certificate_or_404(repo, certificate_id)
    if certificate.status == "revoked":
        raise ValidationFailed("Certificate is already revoked")

    certificate.status = "revoked"
    certificate.revoked_at = utcnow()
    certificate.revoked_by = (revoked_by or "").strip() or "Admin"
    certificate.revoked_reason = reason
    record_activity(db, "certificate", "revoke", {"id": certificate.id, "reason": reason})
    db.commit()
    db.refresh(certificate)

    logger.info("Certificate revoked", number=certificate.number, revoked_by=certificate.revoked_by)
    return certificate


def restore_certificate(db: Session, repo: CertificateRepository, certificate_id: int) -> Certificate:
    """Back to active. The capacity ceiling is not re-checked."""
    certificate = get_certificate_or_404(repo, certificate_id)

    certificate.status = "active"
    certificate.revoked_at = None
    certificate.revoked_by = None
    certificate.revoked_reason = None
    record_activity(db, "certificate", "restore", {"id": certificate.id})
    db.commit()
    db.refresh(certificate)

    logger.info("Certificate restored", number=certificate.number)
    return certificate


def delete_certificate(db: Session, repo: CertificateRepository, certificate_id: int) -> Dict[str, Any]:
    certificate = get_certificate_or_404(repo, certificate_id)
    summary = {"id": certificate.id, "number": certificate.number}
    record_activity(db, "certificate", "delete", summary)
    repo.delete(certificate.id)
    logger.info("Certificate deleted", number=summary["number"])
    return summary


def _collect(item: Any, ids: List[int], numbers: List[str], kind: Optional[str] = None) -> None:
    """Sort one payload value into ids or numbers.

    `kind` is "id" or "number" when the key it came under says which it is;
    only bare list entries are ambiguous.
    """
    if isinstance(item, dict):
        for key in ("id", "_id"):
            if item.get(key) is not None:
                _collect(item[key], ids, numbers, kind="id")
        for key in ("number", "certificateNumber"):
            if item.get(key):
                _collect(item[key], ids, numbers, kind="number")
        return

    if isinstance(item, bool):
        return
    if isinstance(item, int):
        if kind != "number":
            ids.append(item)
        else:
            numbers.append(str(item))
        return
    if isinstance(item, str) and item.strip():
        value = item.strip()
        if kind == "number":
            numbers.append(value)
            return
        if value.isdigit():
            ids.append(int(value))
        if kind is None:
            # A bare string may be either key; the OR query covers both
            numbers.append(value)


def parse_bulk_delete_payload(payload: Any) -> Tuple[List[int], List[str]]:
    """Accept every request shape the admin client has ever sent."""
    ids: List[int] = []
    numbers: List[str] = []

    if isinstance(payload, list):
        for item in payload:
            _collect(item, ids, numbers)
    elif isinstance(payload, dict):
        for key in ("certificateIds", "ids"):
            for item in payload.get(key) or []:
                _collect(item, ids, numbers, kind="id")
        for key in ("numbers", "certificateNumbers"):
            for item in payload.get(key) or []:
                _collect(item, ids, numbers, kind="number")

    return sorted(set(ids)), sorted({n.upper() for n in numbers})


def bulk_delete_certificates(db: Session, repo: CertificateRepository, payload: Any) -> int:
    ids, numbers = parse_bulk_delete_payload(payload)
    if not ids and not numbers:
        raise ValidationFailed("No certificate ids or numbers provided")

    deleted = repo.delete_matching(ids, numbers)
    record_activity(db, "certificate", "bulk_delete", {"ids": ids, "numbers": numbers, "deleted": deleted})
    db.commit()

    logger.info("Certificates bulk deleted", requested=len(ids) + len(numbers), deleted=deleted)
    return deleted


def verify_certificate(db: Session, repo: CertificateRepository, number: Optional[str]) -> Certificate:
    if not number:
        raise ValidationFailed("Certificate number is required")

    certificate = repo.get_by_number(number)
    if certificate is None:
        raise EntityNotFoundException("Certificate not found", {"number": number})

    valid_until = as_utc(certificate.valid_until)
    if certificate.status == "active" and valid_until is not None and valid_until < utcnow():
        certificate.status = "expired"
        db.commit()
        db.refresh(certificate)
        logger.info("Certificate expired on verification", number=certificate.number)

    return certificate


def sync_certificates_for_state_change(db: Session, user_id: int, old_state: str, new_state: str) -> int:
    """Rewrite the /OLD/ state segment of a member's certificate numbers to /NEW/."""
    old_code, new_code = state_code(old_state), state_code(new_state)
    if not old_code or not new_code or old_code == new_code:
        return 0

    find, replace = f"/{old_code}/", f"/{new_code}/"
    updated = 0
    certificates = db.query(Certificate).filter(Certificate.user_id == user_id).all()
    for certificate in certificates:
        changed = False
        if certificate.number and find in certificate.number:
            certificate.number = certificate.number.replace(find, replace)
            changed = True
        if certificate.certificate_number and find in certificate.certificate_number:
            certificate.certificate_number = certificate.certificate_number.replace(find, replace)
            changed = True
        updated += int(changed)

    if updated:
        db.commit()
        logger.info("Certificate numbers synced to new state", user_id=user_id, old=old_code, new=new_code, updated=updated)
    return updated


def import_certificates(db: Session, repo: CertificateRepository, content: bytes, filename: str) -> Dict[str, Any]:
    """Run every spreadsheet row through the upsert path."""
    df = read_table(content, filename)
    result = {"created": 0, "updated": 0, "skipped": 0, "errors": []}

    # Header is row 1
    for row_number, row in enumerate(certificate_rows(df), start=2):
        try:
            payload = CertificateCreate.model_validate(row)
            _, created = issue_certificate(db, repo, payload)
        except ValidationError as e:
            result["skipped"] += 1
            result["errors"].append({
                "row": row_number,
                "message": "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()),
            })
            continue
        except (ValidationFailed, ConflictError, CapacityExceeded) as e:
            result["skipped"] += 1
            result["errors"].append({"row": row_number, "message": e.message})
            continue
        result["created" if created else "updated"] += 1

    record_activity(db, "certificate", "import", {k: v for k, v in result.items() if k != "errors"})
    db.commit()
    logger.info("Certificates imported", filename=filename, created=result["created"], updated=result["updated"], skipped=result["skipped"])
    return result


def clear_certificates(db: Session, repo: CertificateRepository) -> int:
    deleted = repo.delete_all()
    record_activity(db, "system", "clear_certificates", {"certificatesDeleted": deleted})
    db.commit()
    logger.warning("All certificates cleared", deleted=deleted)
    return deleted


def cleanup_certificates(db: Session) -> int:
    """Fill in the legacy certificate_number mirror wherever it is missing."""
    missing = (
        db.query(Certificate)
        .filter((Certificate.certificate_number.is_(None)) | (Certificate.certificate_number == ""))
        .all()
    )
    for certificate in missing:
        certificate.certificate_number = certificate.number
    db.commit()
    logger.info("Certificate cleanup completed", fixed=len(missing))
    return len(missing)
