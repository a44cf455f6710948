"""
SQLAlchemy Implementation of the Member Repository.
"""

from typing import List, Optional, Set

from sqlalchemy import or_

from registry.domain.models.user import User
from registry.domain.repositories.user_repository import UserRepository
from registry.domain.schemas.user import MemberFilters
from registry.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """Member repository implementation using SQLAlchemy."""

    def get_by_code(self, code: str) -> Optional[User]:
        return self.db.query(User).filter(User.code == code.strip().upper()).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def list_all(self) -> List[User]:
        return self.db.query(User).order_by(User.date_added.desc(), User.id.desc()).all()

    def list_active(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(or_(User.is_active.is_(None), User.is_active.is_(True)))
            .order_by(User.name.asc())
            .all()
        )

    def search(self, query: Optional[str], filters: MemberFilters, limit: int = 100) -> List[User]:
        q = self.db.query(User)

        if query:
            pattern = f"%{query.strip()}%"
            q = q.filter(
                or_(
                    User.name.ilike(pattern),
                    User.code.ilike(pattern),
                    User.email.ilike(pattern),
                    User.state.ilike(pattern),
                    User.zone.ilike(pattern),
                )
            )
        if filters.state:
            q = q.filter(User.state.ilike(filters.state))
        if filters.zone:
            q = q.filter(User.zone.ilike(filters.zone))
        if filters.position:
            q = q.filter(User.position == filters.position)
        if filters.is_active is not None:
            q = q.filter(User.is_active.is_(filters.is_active))

        return q.order_by(User.date_added.desc(), User.id.desc()).limit(limit).all()

    def delete_many(self, ids: List[int]) -> List[User]:
        users = self.db.query(User).filter(User.id.in_(ids)).all()
        for user in users:
            self.db.delete(user)
        self.db.commit()
        return users

    def referenced_files(self) -> Set[str]:
        rows = self.db.query(User.passport_photo, User.signature).all()
        return {name for row in rows for name in row if name}
