"""Upload API routes: serve stored member photos and signatures."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse, Response

from registry.domain.repositories.file_storage import FileStorage
from registry.interfaces.api.deps import require_admin
from registry.interfaces.deps import get_file_storage

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


def _serve(storage: FileStorage, filename: str, field_name: str) -> Response:
    stored = storage.get_file(filename, field_name)
    if stored.get("url"):
        return RedirectResponse(stored["url"], status_code=302)
    return Response(
        content=stored["content"],
        media_type=stored["content_type"],
        headers={"Cache-Control": "public, max-age=86400"},
    )


@router.get("/passports/{filename}")
def get_passport(filename: str, storage: FileStorage = Depends(get_file_storage)):
    return _serve(storage, filename, "passportPhoto")


@router.get("/signatures/{filename}")
def get_signature(filename: str, storage: FileStorage = Depends(get_file_storage)):
    return _serve(storage, filename, "signature")


@router.get("/debug/files")
def debug_files(
    field: Optional[str] = Query(None, pattern="^(passportPhoto|signature)$"),
    storage: FileStorage = Depends(get_file_storage),
    admin: dict = Depends(require_admin),
):
    return {
        "success": True,
        "storage": storage.get_storage_info(),
        "files": storage.list_files(field),
    }
