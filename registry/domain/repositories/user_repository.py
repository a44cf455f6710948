"""
Member Repository Interface.
"""

from typing import List, Optional, Set

from registry.domain.repositories.base import BaseRepository
from registry.domain.models.user import User
from registry.domain.schemas.user import MemberFilters


class UserRepository(BaseRepository[User]):
    """Interface for member-specific operations."""

    def get_by_code(self, code: str) -> Optional[User]:
        """Exact match on the uppercased member code."""
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def list_all(self) -> List[User]:
        """All members, newest first."""
        ...

    def list_active(self) -> List[User]:
        ...

    def search(self, query: Optional[str], filters: MemberFilters, limit: int = 100) -> List[User]:
        ...

    def delete_many(self, ids: List[int]) -> List[User]:
        """Delete the given members and return the removed rows."""
        ...

    def referenced_files(self) -> Set[str]:
        """Every photo and signature filename still referenced by a member."""
        ...
