"""
Data Models Package

This package contains all Pydantic models used by the electricity tracker.
Everything that is persisted or exported conforms to these schemas.
"""

from electricity_tracker.models.activity import (
    ActivityEvent,
    ActivityEventType,
    ActivitySeverity,
)
from electricity_tracker.models.base import StoredModel
from electricity_tracker.models.equipment import (
    BillingSettings,
    Equipment,
    EquipmentUsage,
    ExportBundle,
    UsageHistoryRecord,
    UsageSummary,
)
from electricity_tracker.models.meter import (
    MeterBillingSettings,
    MeterReadingForm,
    MeterReadingRecord,
)
from electricity_tracker.models.results import (
    StorageOutcome,
    StorageResult,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Activity models
    "ActivityEvent",
    "ActivityEventType",
    "ActivitySeverity",
    # Equipment models
    "BillingSettings",
    "Equipment",
    "EquipmentUsage",
    "ExportBundle",
    "StoredModel",
    "UsageHistoryRecord",
    "UsageSummary",
    # Meter models
    "MeterBillingSettings",
    "MeterReadingForm",
    "MeterReadingRecord",
    # Results
    "StorageOutcome",
    "StorageResult",
    "ValidationIssue",
    "ValidationResult",
]
