"""
SQLAlchemy implementation of the Base Repository.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from registry.domain.repositories.base import BaseRepository
from registry.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Primary-key access shared by the member and certificate repositories."""

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.db.get(self.model, id)

    def delete(self, id: int) -> Optional[ModelType]:
        # Pending activity rows added by the caller are committed together with the delete
        obj = self.db.get(self.model, id)
        if obj is not None:
            self.db.delete(obj)
            self.db.commit()
        return obj

    def delete_all(self) -> int:
        deleted = self.db.query(self.model).delete(synchronize_session=False)
        self.db.commit()
        return deleted
