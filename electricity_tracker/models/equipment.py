"""
Equipment Usage Models

These models back the per-day usage calculator:
1. The equipment list (name and wattage)
2. Billing settings (unit rate and service fee percentage)
3. Daily usage history, one record per calendar date
4. The export bundle written by "export all"

DESIGN DECISION: Cost fields on a history record are derived at save time
and frozen into the record. Nothing updates them afterwards.
"""

from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from electricity_tracker.models.base import StoredModel, validate_iso_day


DEFAULT_UNIT_RATE = 7.0
DEFAULT_SERVICE_FEE = 7.0


# =============================================================================
# EQUIPMENT & SETTINGS
# =============================================================================

class Equipment(StoredModel):
    """
    A piece of household equipment.

    The id is the creation timestamp in milliseconds. Equipment is never
    edited, only added and removed.
    """

    id: int = Field(
        ...,
        description="Creation timestamp (ms), used as identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name, e.g. 'Air Conditioner'"
    )
    watts: float = Field(
        ...,
        gt=0,
        description="Rated power draw in watts"
    )


class BillingSettings(StoredModel):
    """Rates used by the per-day calculator."""

    unit_rate: float = Field(
        default=DEFAULT_UNIT_RATE,
        ge=0,
        description="Price per kWh"
    )
    service_fee: float = Field(
        default=DEFAULT_SERVICE_FEE,
        ge=0,
        description="Service fee as a percentage of the base cost"
    )


# =============================================================================
# USAGE HISTORY
# =============================================================================

class EquipmentUsage(StoredModel):
    """One equipment line inside a saved day."""

    name: str
    watts: float
    hours: float = Field(ge=0)
    cost: float = Field(
        ...,
        ge=0,
        description="Base cost of this item (no service fee)"
    )


class UsageSummary(StoredModel):
    """Totals for a saved day, rounded to presentation precision."""

    total_kwh: float = Field(ge=0)
    base_cost: float = Field(ge=0)
    service_fee: float = Field(ge=0)
    total_cost: float = Field(ge=0)


class UsageHistoryRecord(StoredModel):
    """
    A saved day of equipment usage.

    There is at most one record per date: saving a date again replaces
    the earlier record.
    """

    id: int
    date: str = Field(
        ...,
        description="ISO calendar day the usage belongs to"
    )
    equipment: list[EquipmentUsage] = Field(default_factory=list)
    summary: UsageSummary
    timestamp: str = Field(
        ...,
        description="ISO-8601 time the record was saved"
    )

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return validate_iso_day(v)


# =============================================================================
# EXPORT
# =============================================================================

class ExportBundle(StoredModel):
    """
    Everything the usage calculator persists, in one document.

    Missing (or null) sections fall back to an empty list or the default
    billing settings, so partial files can still be imported.
    """

    equipment: list[Equipment] = Field(default_factory=list)
    usage_history: list[UsageHistoryRecord] = Field(default_factory=list)
    billing_settings: BillingSettings = Field(default_factory=BillingSettings)
    export_date: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def drop_null_sections(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data
