"""Cost calculation and monthly aggregation."""

from electricity_tracker.billing.calculator import (
    DailyCost,
    MeterUsage,
    calculate_daily_cost,
    calculate_meter_usage,
    days_between,
    energy_kwh,
    itemize_usage,
    round_energy,
    round_money,
)
from electricity_tracker.billing.summary import (
    MeterMonthlySummary,
    MonthlySummary,
    month_of,
    summarize_meter_month,
    summarize_usage_month,
)

__all__ = [
    "DailyCost",
    "MeterMonthlySummary",
    "MeterUsage",
    "MonthlySummary",
    "calculate_daily_cost",
    "calculate_meter_usage",
    "days_between",
    "energy_kwh",
    "itemize_usage",
    "month_of",
    "round_energy",
    "round_money",
    "summarize_meter_month",
    "summarize_usage_month",
]
