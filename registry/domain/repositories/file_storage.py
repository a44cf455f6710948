"""
File Storage Interface.
A keyed blob store for member photos and signatures.
"""

from typing import Any, Dict, Optional, Protocol


class FileStorage(Protocol):
    """Interface implemented by every storage backend."""

    storage_type: str

    def save_file(
        self,
        content: bytes,
        original_name: str,
        field_name: str,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Persist bytes under a generated filename.

        Returns {"filename", "path", "url", "storageType"}.
        """
        ...

    def get_file(self, filename: str, field_name: str) -> Dict[str, Any]:
        """Return {"content", "content_type"} or {"url"} for remote backends.

        Raises StoredFileNotFound when the blob is absent.
        """
        ...

    def delete_file(self, filename: str, field_name: str) -> bool:
        """Remove a blob. Returns False when it did not exist."""
        ...

    def list_files(self, field_name: Optional[str] = None) -> Dict[str, Any]:
        """Return {"passports": [...], "signatures": [...], "total": n}."""
        ...

    def get_storage_info(self) -> Dict[str, Any]:
        ...
