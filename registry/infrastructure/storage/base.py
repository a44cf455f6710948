"""Helpers shared by the storage backends."""

import os
import random
import time
from typing import NamedTuple, Optional

from registry.config import get_settings
from registry.core.exceptions import ValidationFailed

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}

PASSPORTS = "passports"
SIGNATURES = "signatures"


def generate_filename(field_name: str, original_name: str) -> str:
    """{field}-{epochMillis}-{random}{ext}"""
    ext = os.path.splitext(original_name or "")[1]
    return f"{field_name}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def subdir_for(field_name: Optional[str]) -> Optional[str]:
    if field_name == "passportPhoto":
        return PASSPORTS
    if field_name == "signature":
        return SIGNATURES
    return None


def field_for_subdir(subdir: str) -> str:
    return "passportPhoto" if subdir == PASSPORTS else "signature"


def public_url(filename: str, field_name: str) -> str:
    kind = PASSPORTS if field_name == "passportPhoto" else SIGNATURES
    return f"/api/uploads/{kind}/{filename}"


def timestamp_from_filename(filename: str) -> Optional[int]:
    """Epoch millis embedded by generate_filename, or None for foreign names."""
    parts = os.path.splitext(filename)[0].split("-")
    if len(parts) < 3:
        return None
    try:
        return int(parts[-2])
    except ValueError:
        return None


def validate_image_upload(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    """Reject anything that is not a small jpeg/png/gif/webp image."""
    ext = os.path.splitext(filename or "")[1].lower()
    mime = (content_type or "").lower()
    if ext not in ALLOWED_EXTENSIONS or mime not in ALLOWED_MIME_TYPES:
        raise ValidationFailed(
            "Only image files are allowed (jpeg, jpg, png, gif, webp)",
            {"filename": filename},
        )

    max_size = get_settings().MAX_UPLOAD_SIZE
    if size > max_size:
        raise ValidationFailed(
            f"File too large. Maximum size is {max_size // (1024 * 1024)}MB",
            {"filename": filename},
        )


class IncomingFile(NamedTuple):
    """An uploaded image read off the multipart request."""
    content: bytes
    filename: Optional[str]
    content_type: Optional[str]
