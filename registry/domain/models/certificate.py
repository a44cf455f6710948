"""Certificate domain model: maps to the 'certificates' table."""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from registry.infrastructure.database import Base

CERTIFICATE_TYPES = ("membership", "training", "achievement", "recognition", "service")
CERTIFICATE_STATUSES = ("active", "revoked", "expired")


class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String(100), unique=True, nullable=False, index=True)
    certificate_number = Column(String(100), nullable=True)  # legacy mirror of number
    recipient = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    title = Column(String(300), nullable=False)
    type = Column(String(50), nullable=False, default="membership")
    description = Column(Text, nullable=True)
    issue_date = Column(DateTime(timezone=True), server_default=func.now())
    valid_until = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)

    # Revocation audit
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(String(200), nullable=True)
    revoked_reason = Column(Text, nullable=True)

    # Soft reference: deleting a member leaves its certificates in place
    user_id = Column(Integer, nullable=True, index=True)
    issued_by = Column(String(200), nullable=True)
    serial_number = Column(String(100), unique=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship(
        "User",
        primaryjoin="foreign(Certificate.user_id) == User.id",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Certificate {self.number} - {self.status}>"
