"""
SQLAlchemy Implementation of the Certificate Repository.
"""

from typing import Dict, List, Optional

from sqlalchemy import func, or_

from registry.domain.models.certificate import Certificate, CERTIFICATE_STATUSES
from registry.domain.repositories.certificate_repository import CertificateRepository
from registry.domain.schemas.certificate import CertificateFilters
from registry.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyCertificateRepository(SQLAlchemyRepository[Certificate], CertificateRepository):
    """Certificate repository implementation using SQLAlchemy."""

    def get_by_number(self, number: str) -> Optional[Certificate]:
        return (
            self.db.query(Certificate)
            .filter(func.upper(Certificate.number) == number.strip().upper())
            .first()
        )

    def list_all(self) -> List[Certificate]:
        return (
            self.db.query(Certificate)
            .order_by(Certificate.created_at.desc(), Certificate.id.desc())
            .all()
        )

    def search(self, query: Optional[str], filters: CertificateFilters, limit: int = 100) -> List[Certificate]:
        q = self.db.query(Certificate)

        if query:
            pattern = f"%{query.strip()}%"
            q = q.filter(
                or_(
                    Certificate.number.ilike(pattern),
                    Certificate.recipient.ilike(pattern),
                    Certificate.email.ilike(pattern),
                    Certificate.title.ilike(pattern),
                )
            )
        if filters.status:
            q = q.filter(Certificate.status == filters.status.lower())
        if filters.type:
            q = q.filter(Certificate.type == filters.type.lower())
        if filters.date_from:
            q = q.filter(Certificate.issue_date >= filters.date_from)
        if filters.date_to:
            q = q.filter(Certificate.issue_date <= filters.date_to)

        return q.order_by(Certificate.created_at.desc(), Certificate.id.desc()).limit(limit).all()

    def delete_matching(self, ids: List[int], numbers: List[str]) -> int:
        conditions = []
        if ids:
            conditions.append(Certificate.id.in_(ids))
        if numbers:
            conditions.append(Certificate.number.in_([n.strip().upper() for n in numbers]))
        if not conditions:
            return 0

        deleted = (
            self.db.query(Certificate)
            .filter(or_(*conditions))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def count_by_status(self) -> Dict[str, int]:
        counts = {status: 0 for status in CERTIFICATE_STATUSES}
        rows = (
            self.db.query(Certificate.status, func.count(Certificate.id))
            .group_by(Certificate.status)
            .all()
        )
        for status, total in rows:
            counts[status] = total
        return counts
