"""
Certificate Repository Interface.
"""

from typing import List, Optional

from registry.domain.repositories.base import BaseRepository
from registry.domain.models.certificate import Certificate
from registry.domain.schemas.certificate import CertificateFilters


class CertificateRepository(BaseRepository[Certificate]):
    """Interface for certificate-specific operations."""

    def get_by_number(self, number: str) -> Optional[Certificate]:
        """Case-insensitive exact match on the certificate number."""
        ...

    def list_all(self) -> List[Certificate]:
        """All certificates, newest first."""
        ...

    def search(self, query: Optional[str], filters: CertificateFilters, limit: int = 100) -> List[Certificate]:
        ...

    def delete_matching(self, ids: List[int], numbers: List[str]) -> int:
        """Delete every certificate whose id or number is listed, in one statement."""
        ...

    def count_by_status(self) -> dict:
        ...
