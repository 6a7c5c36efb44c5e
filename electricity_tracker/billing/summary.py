"""
Monthly aggregation.

A month is selected by its "YYYY-MM" prefix: a usage record belongs to the
month its `date` starts with, a meter record to the month its
`current_date` starts with.
"""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Union

from pydantic import BaseModel, Field

from electricity_tracker.billing.calculator import round_energy, round_money
from electricity_tracker.models.equipment import UsageHistoryRecord
from electricity_tracker.models.meter import MeterReadingRecord


class MonthlySummary(BaseModel):
    """Totals for one month of usage records."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    record_count: int = Field(ge=0)
    total_kwh: float = Field(ge=0)
    total_cost: float = Field(ge=0)


class MeterMonthlySummary(MonthlySummary):
    """Totals for one month of meter intervals."""

    average_cost_per_record: float = Field(ge=0)


def month_of(day: Union[str, date, datetime]) -> str:
    """The "YYYY-MM" month of a date or ISO date string."""
    if isinstance(day, (date, datetime)):
        return day.strftime("%Y-%m")
    return day[:7]


def summarize_usage_month(
    history: Iterable[UsageHistoryRecord],
    month: str,
) -> MonthlySummary:
    """Sum the daily usage records of `month`."""
    entries = [record for record in history if record.date.startswith(month)]

    return MonthlySummary(
        month=month,
        record_count=len(entries),
        total_kwh=round_energy(sum(record.summary.total_kwh for record in entries)),
        total_cost=round_money(sum(record.summary.total_cost for record in entries)),
    )


def summarize_meter_month(
    records: Iterable[MeterReadingRecord],
    month: str,
) -> MeterMonthlySummary:
    """Sum the meter intervals ending in `month`."""
    entries = [record for record in records if record.current_date.startswith(month)]
    total_cost = sum(record.total_cost for record in entries)

    return MeterMonthlySummary(
        month=month,
        record_count=len(entries),
        total_kwh=round_energy(sum(record.units_used for record in entries)),
        total_cost=round_money(total_cost),
        average_cost_per_record=round_money(total_cost / len(entries)) if entries else 0.0,
    )
