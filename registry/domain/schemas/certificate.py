"""Pydantic schemas for certificates."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from registry.domain.models.certificate import CERTIFICATE_TYPES
from registry.domain.schemas.base import CamelModel, blank_to_none, parse_date_input
from registry.domain.schemas.user import MemberSummary


class CertificateCreate(CamelModel):
    number: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    title: str = Field(min_length=1)
    email: Optional[str] = None
    type: str = "membership"
    description: Optional[str] = None
    issue_date: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    user_id: Optional[int] = None

    @field_validator("number", "recipient", "title", "email", "description", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return blank_to_none(v)

    @field_validator("number")
    @classmethod
    def upper_number(cls, v):
        return v.upper()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower() if v else v

    @field_validator("type", mode="before")
    @classmethod
    def known_type(cls, v):
        v = blank_to_none(v)
        if v is None:
            return "membership"
        v = str(v).lower()
        if v not in CERTIFICATE_TYPES:
            raise ValueError(f"Type must be one of: {', '.join(CERTIFICATE_TYPES)}")
        return v

    @field_validator("issue_date", "valid_until", mode="before")
    @classmethod
    def date_only(cls, v):
        return parse_date_input(v)

    @field_validator("user_id", mode="before")
    @classmethod
    def blank_user(cls, v):
        return blank_to_none(v)


class CertificateRead(CamelModel):
    id: int
    number: str
    certificate_number: Optional[str] = None
    recipient: str
    email: Optional[str] = None
    title: str
    type: str
    description: Optional[str] = None
    issue_date: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    status: str
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    revoked_reason: Optional[str] = None
    user_id: Optional[int] = None
    user: Optional[MemberSummary] = None
    issued_by: Optional[str] = None
    serial_number: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CertificateVerifyResponse(CamelModel):
    """What the public verification page may see: no contact or audit details."""

    id: int
    certificate_number: str
    recipient_name: str
    title: str
    type: str
    description: Optional[str] = None
    date_issued: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    status: str
    issued_by: Optional[str] = None
    revoked_at: Optional[datetime] = None
    revoked_reason: Optional[str] = None

    @classmethod
    def from_certificate(cls, certificate) -> "CertificateVerifyResponse":
        return cls(
            id=certificate.id,
            certificate_number=certificate.number,
            recipient_name=certificate.recipient,
            title=certificate.title,
            type=certificate.type,
            description=certificate.description,
            date_issued=certificate.issue_date or certificate.created_at,
            valid_until=certificate.valid_until,
            status=certificate.status,
            issued_by=certificate.issued_by,
            revoked_at=certificate.revoked_at,
            revoked_reason=certificate.revoked_reason,
        )


class RevokeRequest(CamelModel):
    reason: Optional[str] = None
    revoked_by: Optional[str] = None


class CertificateVerifyRequest(CamelModel):
    certificate_number: Optional[str] = None
    number: Optional[str] = None

    @property
    def lookup(self) -> Optional[str]:
        value = blank_to_none(self.certificate_number) or blank_to_none(self.number)
        return value.upper() if value else None


class CertificateFilters(CamelModel):
    status: Optional[str] = None
    type: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @field_validator("status", "type", mode="before")
    @classmethod
    def blank(cls, v):
        return blank_to_none(v)

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def date_only(cls, v):
        return parse_date_input(v)


class CertificateSearchRequest(CamelModel):
    query: Optional[str] = None
    filters: CertificateFilters = Field(default_factory=CertificateFilters)
