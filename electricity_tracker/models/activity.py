"""
Activity Models

Every user-visible change to the trackers produces an ActivityEvent.
Events go to the structured log; persistence failures are recorded here
too since they are otherwise silent.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we record."""
    # Equipment calculator
    EQUIPMENT_ADDED = "equipment_added"
    EQUIPMENT_REMOVED = "equipment_removed"
    DAILY_USAGE_SAVED = "daily_usage_saved"
    BILLING_SETTINGS_UPDATED = "billing_settings_updated"

    # Meter tracker
    METER_READING_SAVED = "meter_reading_saved"
    METER_READING_REJECTED = "meter_reading_rejected"
    METER_READING_DELETED = "meter_reading_deleted"

    # Bulk data operations
    DATA_LOADED = "data_loaded"
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    DATA_CLEARED = "data_cleared"

    # Failures
    LOAD_FAILED = "load_failed"
    PERSISTENCE_FAILED = "persistence_failed"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single recorded activity."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'equipment', 'meter_reading')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict[str, Any]:
        """Flatten for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }
