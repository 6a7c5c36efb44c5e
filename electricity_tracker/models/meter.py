"""
Meter Reading Models

The meter tracker works from snapshots of the household meter. The user
enters a start and an end reading with their dates; usage and cost for the
interval are derived from them.
"""

from typing import Optional

from pydantic import Field, field_validator

from electricity_tracker.models.base import StoredModel, validate_iso_day
from electricity_tracker.models.equipment import BillingSettings


class MeterBillingSettings(BillingSettings):
    """Rates for the meter tracker, with a billing floor."""

    minimum_charge: float = Field(
        default=0.0,
        ge=0,
        description="Interval total never falls below this amount"
    )


class MeterReadingForm(StoredModel):
    """
    The interval currently being measured.

    Readings are optional because the user fills them in one at a time.
    """

    start_reading: Optional[float] = Field(default=None, ge=0)
    start_date: str
    current_reading: Optional[float] = Field(default=None, ge=0)
    current_date: str
    note: str = Field(default="", max_length=500)

    @field_validator("start_date", "current_date")
    @classmethod
    def validate_dates(cls, v: str) -> str:
        return validate_iso_day(v)


class MeterReadingRecord(StoredModel):
    """
    A saved meter interval.

    Usage and cost values are frozen at save time, rounded to presentation
    precision (energy 3 places, money 2 places).
    """

    id: int
    start_reading: float
    start_date: str
    current_reading: float
    current_date: str
    note: str = ""

    units_used: float = Field(ge=0)
    days_difference: int = Field(ge=1)
    average_daily_usage: float = Field(ge=0)
    base_cost: float = Field(ge=0)
    service_fee: float = Field(ge=0)
    total_cost: float = Field(ge=0)
    cost_per_day: float = Field(ge=0)
    unit_rate: float = Field(ge=0)

    created_at: str

    @field_validator("start_date", "current_date")
    @classmethod
    def validate_dates(cls, v: str) -> str:
        return validate_iso_day(v)
