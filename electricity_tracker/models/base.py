"""
Shared model configuration.

Stored and exported JSON uses camelCase keys (unitRate, totalKwh, ...)
while Python code works with snake_case attributes. Every persisted model
derives from StoredModel so both spellings are accepted on input and the
camelCase form is always produced on output.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoredModel(BaseModel):
    """Base class for models that are persisted or exported."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    def to_storage(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible camelCase form."""
        return self.model_dump(mode="json", by_alias=True)


def validate_iso_day(value: str) -> str:
    """Check that a string is an ISO calendar day (YYYY-MM-DD)."""
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Expected an ISO date (YYYY-MM-DD), got {value!r}")
    return value
