"""Capacity ceilings: a single row in 'system_limits'."""

from sqlalchemy import Column, Integer, Boolean, DateTime
from sqlalchemy.sql import func

from registry.infrastructure.database import Base


class SystemLimits(Base):
    __tablename__ = "system_limits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_limit = Column(Integer, nullable=False, default=0)
    certificate_limit = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<SystemLimits members={self.member_limit} certificates={self.certificate_limit}>"
