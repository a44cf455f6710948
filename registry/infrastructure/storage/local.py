"""Disk-backed storage for development machines."""

import mimetypes
import os
from typing import Any, Dict, Optional

import structlog

from registry.core.exceptions import StoredFileNotFound
from registry.infrastructure.storage.base import (
    PASSPORTS,
    SIGNATURES,
    generate_filename,
    public_url,
    subdir_for,
)

logger = structlog.get_logger(__name__)


class LocalFileStorage:
    storage_type = "local"

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        for sub in (PASSPORTS, SIGNATURES):
            os.makedirs(os.path.join(self.root, sub), exist_ok=True)

    def _path(self, filename: str, field_name: Optional[str]) -> str:
        # Only the basename is honoured so a crafted name cannot escape the root
        filename = os.path.basename(filename)
        sub = subdir_for(field_name)
        return os.path.join(self.root, sub, filename) if sub else os.path.join(self.root, filename)

    def save_file(self, content, original_name, field_name, content_type=None) -> Dict[str, Any]:
        filename = generate_filename(field_name, original_name)
        path = self._path(filename, field_name)

        with open(path, "wb") as f:
            f.write(content)

        logger.info("File saved locally", filename=filename, size=len(content))
        return {
            "filename": filename,
            "path": path,
            "url": public_url(filename, field_name),
            "storageType": self.storage_type,
        }

    def get_file(self, filename, field_name) -> Dict[str, Any]:
        path = self._path(filename, field_name)
        if not os.path.isfile(path):
            available = self._list_dir(subdir_for(field_name))
            raise StoredFileNotFound(filename, available)

        with open(path, "rb") as f:
            content = f.read()

        return {
            "content": content,
            "content_type": mimetypes.guess_type(filename)[0] or "application/octet-stream",
            "size": len(content),
            "path": path,
            "storageType": self.storage_type,
        }

    def delete_file(self, filename, field_name) -> bool:
        path = self._path(filename, field_name)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        logger.info("File deleted locally", filename=filename)
        return True

    def _list_dir(self, sub: Optional[str]) -> list:
        directory = os.path.join(self.root, sub) if sub else self.root
        if not os.path.isdir(directory):
            return []
        return sorted(
            name for name in os.listdir(directory)
            if os.path.isfile(os.path.join(directory, name))
        )

    def list_files(self, field_name=None) -> Dict[str, Any]:
        wanted = subdir_for(field_name)
        passports = self._list_dir(PASSPORTS) if wanted in (None, PASSPORTS) else []
        signatures = self._list_dir(SIGNATURES) if wanted in (None, SIGNATURES) else []
        return {
            "passports": passports,
            "signatures": signatures,
            "total": len(passports) + len(signatures),
        }

    def get_storage_info(self) -> Dict[str, Any]:
        files = self.list_files()
        return {
            "storageType": self.storage_type,
            "uploadDir": self.root,
            "totalFiles": files["total"],
        }
