"""Cloudinary object storage through the official SDK.

Every blob keeps the name it was stored under in its context metadata, since
Cloudinary normalises the reported format (`.jpeg` comes back as `jpg`).
Blobs that could not be pushed to Cloudinary land in a fallback backend,
which is also consulted on reads and deletes.
"""

import io
import os
from typing import Any, Dict

import cloudinary.api
import cloudinary.uploader
import structlog
from cloudinary.exceptions import Error as CloudinaryError, NotFound

from registry.core.exceptions import StorageError
from registry.domain.repositories.file_storage import FileStorage
from registry.infrastructure.storage.base import (
    PASSPORTS,
    SIGNATURES,
    generate_filename,
    subdir_for,
)

logger = structlog.get_logger(__name__)

UPLOAD_TIMEOUT = 30
DELETE_TIMEOUT = 15
LOOKUP_TIMEOUT = 15


def listed_filename(resource: Dict[str, Any]) -> str:
    """Name a listed resource the way the member record refers to it."""
    stored = ((resource.get("context") or {}).get("custom") or {}).get("filename")
    if stored:
        return stored
    name = resource["public_id"].rsplit("/", 1)[-1]
    ext = resource.get("format")
    return f"{name}.{ext}" if ext else name


class CloudinaryStorage:
    storage_type = "cloudinary"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str,
        fallback: FileStorage,
    ):
        self.cloud_name = cloud_name
        self.folder = folder.strip("/")
        self.fallback = fallback
        # Passed per call so the SDK's global config stays untouched
        self._credentials = {"cloud_name": cloud_name, "api_key": api_key, "api_secret": api_secret}

    def _public_id(self, filename: str, field_name: str) -> str:
        return f"{self.folder}/{field_name}/{os.path.splitext(filename)[0]}"

    def save_file(self, content, original_name, field_name, content_type=None) -> Dict[str, Any]:
        filename = generate_filename(field_name, original_name)

        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(content),
                filename=filename,
                public_id=os.path.splitext(filename)[0],
                folder=f"{self.folder}/{field_name}",
                resource_type="image",
                overwrite=True,
                context={"filename": filename},
                timeout=UPLOAD_TIMEOUT,
                **self._credentials,
            )
        except CloudinaryError as e:
            logger.error(
                "Cloudinary upload failed, using fallback storage",
                filename=filename,
                fallback=self.fallback.storage_type,
                error=str(e),
            )
            return self.fallback.save_file(content, original_name, field_name, content_type)

        logger.info("File uploaded to Cloudinary", filename=filename, url=result.get("secure_url"))
        return {
            "filename": filename,
            "path": result.get("secure_url"),
            "url": result.get("secure_url"),
            "storageType": self.storage_type,
            "cloudinaryId": result.get("public_id"),
        }

    def get_file(self, filename, field_name) -> Dict[str, Any]:
        try:
            result = cloudinary.api.resource(
                self._public_id(filename, field_name),
                resource_type="image",
                timeout=LOOKUP_TIMEOUT,
                **self._credentials,
            )
            return {
                "url": result["secure_url"],
                "size": result.get("bytes"),
                "path": result["secure_url"],
                "storageType": self.storage_type,
            }
        except NotFound:
            pass
        except CloudinaryError as e:
            logger.error("Cloudinary lookup failed", filename=filename, error=str(e))

        return self.fallback.get_file(filename, field_name)

    def delete_file(self, filename, field_name) -> bool:
        try:
            result = cloudinary.uploader.destroy(
                self._public_id(filename, field_name),
                resource_type="image",
                invalidate=True,
                timeout=DELETE_TIMEOUT,
                **self._credentials,
            )
        except CloudinaryError as e:
            raise StorageError(f"Cloudinary delete failed: {e}", {"filename": filename}) from e

        if result.get("result") == "ok":
            logger.info("File deleted from Cloudinary", filename=filename)
            return True
        return self.fallback.delete_file(filename, field_name)

    def list_files(self, field_name=None) -> Dict[str, Any]:
        listing = {PASSPORTS: [], SIGNATURES: []}
        fields = [field_name] if field_name else ["passportPhoto", "signature"]

        for field in fields:
            sub = subdir_for(field)
            if sub is None:
                continue
            try:
                result = cloudinary.api.resources(
                    type="upload",
                    resource_type="image",
                    prefix=f"{self.folder}/{field}/",
                    max_results=500,
                    context=True,
                    timeout=LOOKUP_TIMEOUT,
                    **self._credentials,
                )
            except CloudinaryError as e:
                raise StorageError(f"Cloudinary listing failed: {e}", {"field": field}) from e
            listing[sub].extend(listed_filename(resource) for resource in result.get("resources", []))

        # Blobs parked in the fallback backend are part of the same namespace
        local = self.fallback.list_files(field_name)
        passports = sorted(set(listing[PASSPORTS]) | set(local["passports"]))
        signatures = sorted(set(listing[SIGNATURES]) | set(local["signatures"]))
        return {
            "passports": passports,
            "signatures": signatures,
            "total": len(passports) + len(signatures),
        }

    def get_storage_info(self) -> Dict[str, Any]:
        return {
            "storageType": self.storage_type,
            "cloudName": self.cloud_name,
            "folder": self.folder,
            "fallback": self.fallback.get_storage_info(),
        }
