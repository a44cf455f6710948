"""Pydantic schemas for the activity feed."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from registry.domain.schemas.base import CamelModel


class ActivityCreate(CamelModel):
    ts: Optional[datetime] = None
    entity: Optional[str] = None
    action: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class ActivityRead(CamelModel):
    id: int
    ts: Optional[datetime] = None
    entity: str
    action: str
    data: Optional[Dict[str, Any]] = None
