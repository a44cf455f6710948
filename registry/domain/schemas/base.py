"""Shared pydantic base: camelCase on the wire, snake_case in Python."""

from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def parse_date_input(value: Any) -> Any:
    """Accept "YYYY-MM-DD" as midnight of that day."""
    value = blank_to_none(value)
    if isinstance(value, str) and len(value) == 10:
        return f"{value}T00:00:00"
    return value

