"""Member service: CRUD with passport photo and signature uploads.

Blob writes and row writes are not transactional together. New blobs are
written before the row is committed and old blobs are removed only after,
so a failure part-way leaves an orphan for the reconciliation sweep rather
than a member pointing at a missing file.
"""

from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from registry.application.services.activity_service import record_activity
from registry.application.services.auth_service import hash_password
from registry.application.services.certificate_service import sync_certificates_for_state_change
from registry.core.dates import utcnow
from registry.core.exceptions import (
    ConflictError,
    EntityNotFoundException,
    ValidationFailed,
    conflict_from_integrity_error,
)
from registry.domain.models.user import User
from registry.domain.repositories.file_storage import FileStorage
from registry.domain.repositories.user_repository import UserRepository
from registry.domain.schemas.user import MemberCreate, MemberUpdate
from registry.infrastructure.storage.base import IncomingFile, public_url, validate_image_upload

logger = structlog.get_logger(__name__)

IMAGE_FIELDS = {"passportPhoto": "passport_photo", "signature": "signature"}


def get_member_or_404(repo: UserRepository, user_id: int) -> User:
    user = repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException("User not found", {"id": user_id})
    return user


def _ensure_unique(repo: UserRepository, code: Optional[str], email: Optional[str], exclude_id: Optional[int] = None) -> None:
    if code:
        other = repo.get_by_code(code)
        if other is not None and other.id != exclude_id:
            raise ConflictError("Code already exists", {"field": "code"})
    if email:
        other = repo.get_by_email(email)
        if other is not None and other.id != exclude_id:
            raise ConflictError("Email already exists", {"field": "email"})


def _save_images(storage: FileStorage, files: Dict[str, Optional[IncomingFile]]) -> Dict[str, str]:
    """Validate every image first, then write them. Returns {field_name: filename}."""
    present = {field: f for field, f in files.items() if f is not None and f.content}
    for f in present.values():
        validate_image_upload(f.filename, f.content_type, len(f.content))

    saved = {}
    for field, f in present.items():
        result = storage.save_file(f.content, f.filename, field, f.content_type)
        saved[field] = result["filename"]
    return saved


def discard_files(storage: FileStorage, files: Dict[str, Optional[str]]) -> None:
    """Best-effort blob removal; failures are logged and left for the sweep."""
    for field, filename in files.items():
        if not filename:
            continue
        try:
            storage.delete_file(filename, field)
        except Exception as e:
            logger.warning("Blob deletion failed", filename=filename, field=field, error=str(e))


def create_member(
    db: Session,
    repo: UserRepository,
    storage: FileStorage,
    data: MemberCreate,
    files: Dict[str, Optional[IncomingFile]],
) -> User:
    _ensure_unique(repo, data.code, data.email)
    saved = _save_images(storage, files)

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        code=data.code,
        position=data.position,
        state=data.state,
        zone=data.zone,
        passport_photo=saved.get("passportPhoto"),
        signature=saved.get("signature"),
        is_active=True,
        card_generated=bool(saved.get("passportPhoto") and saved.get("signature")),
    )
    db.add(user)
    try:
        db.flush()
        record_activity(db, "user", "create", {"id": user.id, "code": user.code})
        db.commit()
    except IntegrityError as e:
        db.rollback()
        discard_files(storage, saved)
        raise conflict_from_integrity_error(e, ("code", "email")) from e
    db.refresh(user)

    logger.info("Member created", code=user.code, photos=list(saved))
    return user


def update_member(
    db: Session,
    repo: UserRepository,
    storage: FileStorage,
    user_id: int,
    data: MemberUpdate,
    files: Dict[str, Optional[IncomingFile]],
) -> User:
    user = get_member_or_404(repo, user_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    _ensure_unique(repo, changes.get("code"), changes.get("email"), exclude_id=user.id)

    saved = _save_images(storage, files)
    old_state = user.state
    replaced = {}

    for field, value in changes.items():
        setattr(user, field, value)
    for field, filename in saved.items():
        attr = IMAGE_FIELDS[field]
        replaced[field] = getattr(user, attr)
        setattr(user, attr, filename)
    user.card_generated = bool(user.passport_photo and user.signature)

    record_activity(db, "user", "update", {"id": user.id, "fields": sorted(changes) + sorted(saved)})
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        discard_files(storage, saved)
        raise conflict_from_integrity_error(e, ("code", "email")) from e
    db.refresh(user)

    # Only now is it safe to drop the blobs the row no longer points at
    discard_files(storage, replaced)

    if "state" in changes and old_state != user.state:
        try:
            sync_certificates_for_state_change(db, user.id, old_state, user.state)
        except Exception as e:
            db.rollback()
            logger.warning("Certificate state sync failed", user_id=user.id, error=str(e))

    logger.info("Member updated", code=user.code, fields=sorted(changes), photos=list(saved))
    return user


def replace_member_photo(
    db: Session,
    repo: UserRepository,
    storage: FileStorage,
    code: str,
    photo: Optional[IncomingFile],
) -> User:
    if photo is None or not photo.content:
        raise ValidationFailed("No passport photo file provided")

    user = repo.get_by_code(code)
    if user is None:
        raise EntityNotFoundException("Member not found with this code", {"code": code})

    return update_member(db, repo, storage, user.id, MemberUpdate(), {"passportPhoto": photo})


def _member_files(user: User) -> Dict[str, Optional[str]]:
    return {"passportPhoto": user.passport_photo, "signature": user.signature}


def delete_member(db: Session, repo: UserRepository, storage: FileStorage, user_id: int) -> Dict[str, Any]:
    user = get_member_or_404(repo, user_id)
    summary = {"id": user.id, "name": user.name, "code": user.code}
    files = _member_files(user)

    record_activity(db, "user", "delete", {"id": user.id, "code": user.code})
    repo.delete(user.id)
    discard_files(storage, files)

    logger.info("Member deleted", code=summary["code"])
    return summary


def _delete_members(db: Session, repo: UserRepository, storage: FileStorage, users: List[User], action: str) -> int:
    # Row attributes expire once the delete commits
    files = [_member_files(user) for user in users]
    removed = repo.delete_many([user.id for user in users])
    record_activity(db, "user", action, {"deleted": len(removed)})
    db.commit()
    for member_files in files:
        discard_files(storage, member_files)
    return len(removed)


def bulk_delete_members(db: Session, repo: UserRepository, storage: FileStorage, user_ids: List[int]) -> int:
    if not user_ids:
        raise ValidationFailed("No user IDs provided")
    users = [user for user in (repo.get_by_id(user_id) for user_id in set(user_ids)) if user is not None]
    deleted = _delete_members(db, repo, storage, users, "bulk_delete")
    logger.info("Members bulk deleted", requested=len(user_ids), deleted=deleted)
    return deleted


def delete_all_members(db: Session, repo: UserRepository, storage: FileStorage) -> int:
    deleted = _delete_members(db, repo, storage, repo.list_all(), "delete_all")
    logger.warning("All members deleted", deleted=deleted)
    return deleted


def photo_url(base_url: str, filename: Optional[str], field_name: str) -> Optional[str]:
    if not filename:
        return None
    return f"{base_url.rstrip('/')}{public_url(filename, field_name)}"


def public_member(user: User, base_url: str) -> Dict[str, Any]:
    """Public card payload with absolute photo links."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "code": user.code,
        "position": user.position or "MEMBER",
        "state": user.state,
        "zone": user.zone,
        "passportPhoto": photo_url(base_url, user.passport_photo, "passportPhoto"),
        "signature": photo_url(base_url, user.signature, "signature"),
        "dateAdded": user.date_added or user.created_at,
        "isActive": user.is_active is not False,
    }


def find_active_member(repo: UserRepository, code: str) -> User:
    user = repo.get_by_code(code)
    if user is None or user.is_active is False:
        raise EntityNotFoundException(
            "Member not found with this code. Please verify the code and try again.",
            {"code": code},
        )
    return user


def verify_member(db: Session, repo: UserRepository, code: str) -> User:
    user = find_active_member(repo, code)
    user.last_verification = utcnow()
    db.commit()
    db.refresh(user)
    logger.info("Member verified", code=user.code)
    return user


def member_exists(repo: UserRepository, code: Optional[str], email: Optional[str]) -> Optional[User]:
    if not code and not email:
        raise ValidationFailed("Provide code or email")
    user = repo.get_by_code(code) if code else None
    if user is None and email:
        user = repo.get_by_email(email)
    return user
