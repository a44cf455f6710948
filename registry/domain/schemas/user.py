"""Pydantic schemas for members."""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from registry.domain.models.user import POSITIONS, DEFAULT_POSITION, STATES, STATE_ALIASES
from registry.domain.schemas.base import CamelModel, blank_to_none

# Spreadsheet fillers admins type when a member has no email
PLACEHOLDER_EMAIL_RE = re.compile(r"^(nill|null|n/a|na|none|nil|-)$", re.IGNORECASE)


def normalize_state(value: Optional[str]) -> Optional[str]:
    """Upper-case a state and map known aliases ("Abuja", "F.C.T") to the canonical name.

    Unknown states are kept, upper-cased.
    """
    if not value or not value.strip():
        return value
    upper = value.strip().upper()
    compact = re.sub(r"\s+", "", upper.replace(".", ""))

    if upper in STATE_ALIASES:
        upper = STATE_ALIASES[upper]
    elif compact in STATE_ALIASES:
        upper = STATE_ALIASES[compact]

    if upper not in STATES:
        for state in STATES:
            if state.replace(" ", "") == compact:
                return state
    return upper


def _normalize_position(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    for position in POSITIONS:
        if position.upper() == value.upper():
            return position
    raise ValueError(f"Position must be one of: {', '.join(POSITIONS)}")


class MemberBase(CamelModel):
    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return blank_to_none(v)

    @field_validator("code", check_fields=False)
    @classmethod
    def upper_code(cls, v):
        return v.upper() if v else v

    @field_validator("email", check_fields=False)
    @classmethod
    def lower_email(cls, v):
        if v and PLACEHOLDER_EMAIL_RE.match(v):
            return None
        return v.lower() if v else v

    @field_validator("state", check_fields=False)
    @classmethod
    def canonical_state(cls, v):
        return normalize_state(v)


class MemberCreate(MemberBase):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    password: str = Field(min_length=1)
    code: str = Field(min_length=1)
    position: str = DEFAULT_POSITION
    state: str = Field(min_length=1)
    zone: str = Field(min_length=1)

    @field_validator("position", mode="before")
    @classmethod
    def default_position(cls, v):
        v = blank_to_none(v)
        return _normalize_position(v) if v else DEFAULT_POSITION


class MemberUpdate(MemberBase):
    name: Optional[str] = None
    email: Optional[str] = None
    code: Optional[str] = None
    position: Optional[str] = None
    state: Optional[str] = None
    zone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("position")
    @classmethod
    def known_position(cls, v):
        return _normalize_position(v)


class MemberRead(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    code: str
    position: str
    state: str
    zone: str
    passport_photo: Optional[str] = None
    signature: Optional[str] = None
    is_active: Optional[bool] = True
    card_generated: Optional[bool] = False
    last_verification: Optional[datetime] = None
    date_added: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberSummary(CamelModel):
    id: int
    name: str
    code: str
    passport_photo: Optional[str] = None
    signature: Optional[str] = None


class MemberVerifyRequest(CamelModel):
    code: str = Field(min_length=1)

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        v = blank_to_none(v)
        return v.upper() if isinstance(v, str) else v


class MemberFilters(CamelModel):
    state: Optional[str] = None
    zone: Optional[str] = None
    position: Optional[str] = None
    is_active: Optional[bool] = None


class MemberSearchRequest(CamelModel):
    query: Optional[str] = None
    filters: MemberFilters = Field(default_factory=MemberFilters)


class BulkDeleteMembers(CamelModel):
    user_ids: List[int] = Field(default_factory=list)
