"""Meter reading validation package."""

from electricity_tracker.validation.validator import MeterReadingValidator

__all__ = ["MeterReadingValidator"]
