"""
Base Repository Interface.
Lookup and removal shared by every aggregate; writes go through the services.
"""

from typing import Optional, Protocol, TypeVar

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    def get_by_id(self, id: int) -> Optional[T]:
        ...

    def delete(self, id: int) -> Optional[T]:
        """Delete by primary key and commit. Returns the removed row, if any."""
        ...

    def delete_all(self) -> int:
        ...
