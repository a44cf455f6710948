"""In-process blob store for hosts with an ephemeral filesystem.

Entries live only as long as the process: a restart or a second instance
will not see them.
"""

import base64
import mimetypes
import threading
from typing import Any, Dict, Optional

import structlog

from registry.core.exceptions import StoredFileNotFound
from registry.infrastructure.storage.base import generate_filename, public_url

logger = structlog.get_logger(__name__)

# filename -> {"data": base64 str, "mime_type": str, "field_name": str}
_BLOBS: Dict[str, Dict[str, str]] = {}
_LOCK = threading.Lock()


class MemoryFileStorage:
    storage_type = "memory"

    def __init__(self, blobs: Optional[Dict[str, Dict[str, str]]] = None):
        self._blobs = _BLOBS if blobs is None else blobs
        self._lock = _LOCK if blobs is None else threading.Lock()

    def save_file(self, content, original_name, field_name, content_type=None) -> Dict[str, Any]:
        filename = generate_filename(field_name, original_name)
        mime_type = content_type or mimetypes.guess_type(original_name or "")[0] or "application/octet-stream"

        with self._lock:
            self._blobs[filename] = {
                "data": base64.b64encode(content).decode("ascii"),
                "mime_type": mime_type,
                "field_name": field_name,
            }
            total = len(self._blobs)

        logger.info("File saved to memory storage", filename=filename, size=len(content), total_files=total)
        return {
            "filename": filename,
            "path": None,
            "url": public_url(filename, field_name),
            "storageType": self.storage_type,
        }

    def get_file(self, filename, field_name) -> Dict[str, Any]:
        with self._lock:
            entry = self._blobs.get(filename)
            if entry is None:
                available = sorted(
                    name for name, blob in self._blobs.items()
                    if blob["field_name"] == field_name
                )
        if entry is None:
            raise StoredFileNotFound(filename, available)

        content = base64.b64decode(entry["data"])
        return {
            "content": content,
            "content_type": entry["mime_type"],
            "size": len(content),
            "path": None,
            "storageType": self.storage_type,
        }

    def delete_file(self, filename, field_name) -> bool:
        with self._lock:
            removed = self._blobs.pop(filename, None)
        return removed is not None

    def list_files(self, field_name=None) -> Dict[str, Any]:
        with self._lock:
            entries = list(self._blobs.items())

        passports = sorted(
            name for name, blob in entries
            if blob["field_name"] == "passportPhoto" and field_name in (None, "passportPhoto")
        )
        signatures = sorted(
            name for name, blob in entries
            if blob["field_name"] == "signature" and field_name in (None, "signature")
        )
        return {
            "passports": passports,
            "signatures": signatures,
            "total": len(passports) + len(signatures),
        }

    def get_storage_info(self) -> Dict[str, Any]:
        with self._lock:
            total = len(self._blobs)
            size = sum(len(blob["data"]) * 3 // 4 for blob in self._blobs.values())
        return {
            "storageType": self.storage_type,
            "totalFiles": total,
            "approxBytes": size,
            "persistent": False,
        }
