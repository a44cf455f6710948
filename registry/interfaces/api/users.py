"""Member API routes: CRUD, photo uploads, public verification."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from registry.application.services import user_service
from registry.application.services.csv_transformer import members_to_csv
from registry.config import get_settings
from registry.domain.repositories.file_storage import FileStorage
from registry.domain.repositories.user_repository import UserRepository
from registry.domain.schemas.user import (
    BulkDeleteMembers,
    MemberCreate,
    MemberRead,
    MemberSearchRequest,
    MemberUpdate,
    MemberVerifyRequest,
)
from registry.infrastructure.storage.base import IncomingFile
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import get_db, get_file_storage, get_user_repository

router = APIRouter(prefix="/api", tags=["Members"])


def _read_upload(upload: Optional[UploadFile]) -> Optional[IncomingFile]:
    if upload is None or not upload.filename:
        return None
    return IncomingFile(upload.file.read(), upload.filename, upload.content_type)


def _build(schema, **fields):
    """Validate multipart fields the same way JSON bodies are validated."""
    try:
        return schema.model_validate({k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


def _base_url(request: Request) -> str:
    return get_settings().BACKEND_URL or str(request.base_url)


@router.get("/getUsers")
def get_users(
    repo: UserRepository = Depends(get_user_repository),
    admin: dict = Depends(require_admin),
):
    return [MemberRead.model_validate(u) for u in repo.list_all()]


@router.get("/users/members")
def get_members(repo: UserRepository = Depends(get_user_repository)):
    members = [MemberRead.model_validate(u) for u in repo.list_active()]
    return {"success": True, "members": members}


@router.get("/users/members/{user_id}")
def get_member(user_id: int, repo: UserRepository = Depends(get_user_repository)):
    return {"success": True, "member": MemberRead.model_validate(user_service.get_member_or_404(repo, user_id))}


@router.post("/addUser")
def add_user(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    code: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    zone: Optional[str] = Form(None),
    passportPhoto: Optional[UploadFile] = File(None),
    signature: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    data = _build(
        MemberCreate,
        name=name, email=email, password=password, code=code,
        position=position, state=state, zone=zone,
    )
    user = user_service.create_member(
        db, repo, storage, data,
        {"passportPhoto": _read_upload(passportPhoto), "signature": _read_upload(signature)},
    )
    return {
        "message": "User added successfully",
        "data": {
            "id": user.id,
            "name": user.name,
            "code": user.code,
            "passportPhoto": user.passport_photo,
            "signature": user.signature,
            "cardGenerated": user.card_generated,
        },
    }


@router.put("/updateUser/{user_id}")
def update_user(
    user_id: int,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    code: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    zone: Optional[str] = Form(None),
    isActive: Optional[bool] = Form(None),
    passportPhoto: Optional[UploadFile] = File(None),
    signature: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    data = _build(
        MemberUpdate,
        name=name, email=email, code=code, position=position,
        state=state, zone=zone, is_active=isActive,
    )
    user = user_service.update_member(
        db, repo, storage, user_id, data,
        {"passportPhoto": _read_upload(passportPhoto), "signature": _read_upload(signature)},
    )
    return {"message": "User updated successfully", "data": MemberRead.model_validate(user)}


@router.put("/updateMemberPhoto/{code}")
def update_member_photo(
    code: str,
    passportPhoto: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    user = user_service.replace_member_photo(db, repo, storage, code, _read_upload(passportPhoto))
    return {
        "success": True,
        "message": "Member passport photo updated successfully",
        "data": {"name": user.name, "code": user.code, "passportPhoto": user.passport_photo},
    }


@router.delete("/deleteUser/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    deleted = user_service.delete_member(db, repo, storage, user_id)
    return {"success": True, "message": "User deleted successfully", "data": deleted}


@router.delete("/deleteAllUsers")
def delete_all_users(
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    deleted = user_service.delete_all_members(db, repo, storage)
    return {"success": True, "message": f"Deleted {deleted} users", "deletedCount": deleted}


@router.post("/users/bulk-delete")
def bulk_delete_users(
    body: BulkDeleteMembers,
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    deleted = user_service.bulk_delete_members(db, repo, storage, body.user_ids)
    return {"success": True, "message": f"Deleted {deleted} users", "deletedCount": deleted}


@router.post("/users/search")
def search_users(
    body: MemberSearchRequest,
    repo: UserRepository = Depends(get_user_repository),
    admin: dict = Depends(require_admin),
):
    users = [MemberRead.model_validate(u) for u in repo.search(body.query, body.filters)]
    return {"users": users, "count": len(users), "query": body.query, "filters": body.filters}


@router.get("/users/export")
def export_users(
    repo: UserRepository = Depends(get_user_repository),
    admin: dict = Depends(require_admin),
):
    return Response(
        content=members_to_csv(repo.list_all()),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=narap_users.csv"},
    )


@router.get("/users/exists")
def user_exists(
    code: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    repo: UserRepository = Depends(get_user_repository),
    admin: dict = Depends(require_admin),
):
    user = user_service.member_exists(repo, code, email)
    if user is None:
        return {"success": True, "exists": False}
    return {"success": True, "exists": True, "id": user.id, "code": user.code, "email": user.email}


@router.post("/users/members/verify")
def verify_member(
    body: MemberVerifyRequest,
    request: Request,
    db: Session = Depends(get_db),
    repo: UserRepository = Depends(get_user_repository),
):
    user = user_service.verify_member(db, repo, body.code)
    return {
        "success": True,
        "message": "Member found successfully",
        "member": user_service.public_member(user, _base_url(request)),
    }


@router.post("/searchUser")
def search_user(
    body: MemberVerifyRequest,
    request: Request,
    repo: UserRepository = Depends(get_user_repository),
):
    user = user_service.find_active_member(repo, body.code)
    member = user_service.public_member(user, _base_url(request))
    member["createdAt"] = user.created_at
    return {"user": member}
