"""
Cost calculations.

Two models share the same rate arithmetic:

    base    = kWh * unit_rate
    fee     = base * service_fee / 100
    total   = base + fee

The per-day model sums equipment (watts * hours / 1000). The meter model
takes the difference between two readings, clamps it at zero, and floors
the total at the minimum charge.

All functions return full-precision floats. Rounding (energy 3 places,
money 2 places) happens once, via `rounded()`, when a value is shown or
frozen into a record.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel

from electricity_tracker.models.equipment import (
    BillingSettings,
    Equipment,
    EquipmentUsage,
    UsageSummary,
)
from electricity_tracker.models.meter import MeterBillingSettings


ENERGY_PLACES = 3
MONEY_PLACES = 2

DayLike = Union[str, date, datetime]


def round_energy(value: float) -> float:
    return round(value, ENERGY_PLACES)


def round_money(value: float) -> float:
    return round(value, MONEY_PLACES)


def energy_kwh(watts: float, hours: float) -> float:
    """Energy used by a load of `watts` running for `hours`."""
    return watts * hours / 1000


def service_fee_amount(base_cost: float, service_fee_percent: float) -> float:
    return base_cost * service_fee_percent / 100


# =============================================================================
# PER-DAY MODEL
# =============================================================================

class DailyCost(BaseModel):
    """Cost of one day of equipment usage, full precision."""

    total_kwh: float
    base_cost: float
    service_fee: float
    total_cost: float

    def rounded(self) -> UsageSummary:
        """Presentation form, as frozen into a history record."""
        return UsageSummary(
            total_kwh=round_energy(self.total_kwh),
            base_cost=round_money(self.base_cost),
            service_fee=round_money(self.service_fee),
            total_cost=round_money(self.total_cost),
        )


def calculate_daily_cost(
    equipment: Iterable[Equipment],
    usage_hours: Mapping[int, float],
    settings: BillingSettings,
) -> DailyCost:
    """
    Cost of a day given each equipment's hours of use.

    Equipment missing from `usage_hours` counts as unused.
    """
    total_kwh = sum(
        energy_kwh(item.watts, usage_hours.get(item.id, 0.0)) for item in equipment
    )
    base_cost = total_kwh * settings.unit_rate
    fee = service_fee_amount(base_cost, settings.service_fee)

    return DailyCost(
        total_kwh=total_kwh,
        base_cost=base_cost,
        service_fee=fee,
        total_cost=base_cost + fee,
    )


def itemize_usage(
    equipment: Iterable[Equipment],
    usage_hours: Mapping[int, float],
    settings: BillingSettings,
) -> list[EquipmentUsage]:
    """Per-equipment lines for a history record (base cost only, no fee)."""
    lines = []
    for item in equipment:
        hours = usage_hours.get(item.id, 0.0)
        lines.append(EquipmentUsage(
            name=item.name,
            watts=item.watts,
            hours=hours,
            cost=round_money(energy_kwh(item.watts, hours) * settings.unit_rate),
        ))
    return lines


# =============================================================================
# METER-INTERVAL MODEL
# =============================================================================

class MeterUsage(BaseModel):
    """Usage and cost between two meter readings, full precision."""

    units_used: float
    days_difference: int
    average_daily_usage: float
    base_cost: float
    service_fee: float
    total_cost: float
    cost_per_day: float
    unit_rate: float
    is_valid: bool

    def rounded(self) -> "MeterUsage":
        """Copy with energy rounded to 3 places and money to 2."""
        return self.model_copy(update={
            "units_used": round_energy(self.units_used),
            "average_daily_usage": round_energy(self.average_daily_usage),
            "base_cost": round_money(self.base_cost),
            "service_fee": round_money(self.service_fee),
            "total_cost": round_money(self.total_cost),
            "cost_per_day": round_money(self.cost_per_day),
        })


def _as_datetime(value: DayLike) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


def days_between(start: DayLike, end: DayLike) -> int:
    """
    Whole days from `start` to `end`, rounded up, never less than 1.

    Same-day readings count as one day, so per-day figures never divide
    by zero. A reversed range also clamps to 1.
    """
    elapsed = _as_datetime(end) - _as_datetime(start)
    return max(1, math.ceil(elapsed.total_seconds() / 86400))


def calculate_meter_usage(
    start_reading: Optional[float],
    start_date: DayLike,
    end_reading: Optional[float],
    end_date: DayLike,
    settings: MeterBillingSettings,
) -> MeterUsage:
    """
    Usage and cost for a meter interval.

    Unset readings count as 0. A decreasing reading gives zero units
    (not an error) but marks the result invalid so it can't be saved.
    """
    start = start_reading or 0.0
    end = end_reading or 0.0

    units_used = max(0.0, end - start)
    days = days_between(start_date, end_date)
    average_daily_usage = units_used / days

    base_cost = units_used * settings.unit_rate
    fee = service_fee_amount(base_cost, settings.service_fee)
    total_cost = max(base_cost + fee, settings.minimum_charge)

    return MeterUsage(
        units_used=units_used,
        days_difference=days,
        average_daily_usage=average_daily_usage,
        base_cost=base_cost,
        service_fee=fee,
        total_cost=total_cost,
        cost_per_day=total_cost / days,
        unit_rate=settings.unit_rate,
        is_valid=start <= end and days > 0,
    )
