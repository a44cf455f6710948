"""
API Dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from registry.domain.models.certificate import Certificate
from registry.domain.models.user import User
from registry.domain.repositories.certificate_repository import CertificateRepository
from registry.domain.repositories.user_repository import UserRepository
from registry.infrastructure.database import get_db
from registry.infrastructure.repositories.certificate_repository import SQLAlchemyCertificateRepository
from registry.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from registry.infrastructure.storage.factory import get_file_storage

__all__ = ["get_db", "get_file_storage", "get_user_repository", "get_certificate_repository"]


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get member repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_certificate_repository(db: Session = Depends(get_db)) -> CertificateRepository:
    """Get certificate repository instance."""
    return SQLAlchemyCertificateRepository(db, Certificate)
