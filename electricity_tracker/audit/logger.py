"""
Activity Logger

DESIGN DECISION: Every tracker action is logged as a structured event.
Background saves are fire-and-forget from the user's point of view, so a
failed save is only ever visible here.

The activity logger:
- Logs through structlog (JSON lines)
- Never raises, so logging can't break a tracker operation
"""

import logging
from typing import Any, Optional

import structlog

from electricity_tracker.models.activity import (
    ActivityEvent,
    ActivityEventType,
    ActivitySeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output through the standard library at `log_level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper()))


class ActivityLogger:
    """Central activity logging service for both trackers."""

    def __init__(self, logger_name: str = "electricity_tracker.activity"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at a level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == ActivitySeverity.ERROR:
            self._logger.error("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.WARNING:
            self._logger.warning("activity_event", **log_dict)
        elif event.severity == ActivitySeverity.DEBUG:
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def _record(
        self,
        event_type: ActivityEventType,
        description: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        details: Optional[dict] = None,
        severity: ActivitySeverity = ActivitySeverity.INFO,
        error_message: Optional[str] = None,
    ) -> ActivityEvent:
        event = ActivityEvent(
            event_type=event_type,
            severity=severity,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            description=description,
            details=details or {},
            error_message=error_message,
        )
        self.log(event)
        return event

    def log_equipment_added(self, equipment_id: int, name: str, watts: float) -> ActivityEvent:
        """Log new equipment."""
        return self._record(
            ActivityEventType.EQUIPMENT_ADDED,
            f"Added equipment '{name}'",
            entity_type="equipment",
            entity_id=equipment_id,
            details={"name": name, "watts": watts},
        )

    def log_equipment_removed(self, equipment_id: int) -> ActivityEvent:
        """Log equipment removal."""
        return self._record(
            ActivityEventType.EQUIPMENT_REMOVED,
            "Removed equipment",
            entity_type="equipment",
            entity_id=equipment_id,
        )

    def log_daily_usage_saved(self, day: str, total_cost: float, replaced: bool) -> ActivityEvent:
        """Log a saved day of usage."""
        return self._record(
            ActivityEventType.DAILY_USAGE_SAVED,
            f"Saved usage for {day}",
            entity_type="usage_history",
            entity_id=day,
            details={"total_cost": total_cost, "replaced_existing": replaced},
        )

    def log_settings_updated(self, entity_type: str, settings: dict) -> ActivityEvent:
        """Log a billing settings change."""
        return self._record(
            ActivityEventType.BILLING_SETTINGS_UPDATED,
            "Billing settings updated",
            entity_type=entity_type,
            details=settings,
        )

    def log_reading_saved(self, record_id: int, units_used: float, total_cost: float) -> ActivityEvent:
        """Log a saved meter interval."""
        return self._record(
            ActivityEventType.METER_READING_SAVED,
            f"Saved meter reading: {units_used} units",
            entity_type="meter_reading",
            entity_id=record_id,
            details={"units_used": units_used, "total_cost": total_cost},
        )

    def log_reading_rejected(self, issues: list[dict]) -> ActivityEvent:
        """Log a meter interval that failed validation."""
        return self._record(
            ActivityEventType.METER_READING_REJECTED,
            "Meter reading failed validation",
            entity_type="meter_reading",
            details={"issues": issues},
            severity=ActivitySeverity.WARNING,
        )

    def log_reading_deleted(self, record_id: int) -> ActivityEvent:
        """Log a deleted meter interval."""
        return self._record(
            ActivityEventType.METER_READING_DELETED,
            "Deleted meter reading",
            entity_type="meter_reading",
            entity_id=record_id,
        )

    def log_data_operation(self, event_type: ActivityEventType, description: str, **details) -> ActivityEvent:
        """Log a bulk load/export/import/clear."""
        return self._record(event_type, description, details=details)

    def log_load_failed(self, error_message: str) -> ActivityEvent:
        """Log a failed initial load."""
        return self._record(
            ActivityEventType.LOAD_FAILED,
            "Failed to load data from storage",
            severity=ActivitySeverity.ERROR,
            error_message=error_message,
        )

    def log_persistence_failed(self, what: str, error_message: Optional[str]) -> ActivityEvent:
        """Log a background save that did not make it to storage."""
        return self._record(
            ActivityEventType.PERSISTENCE_FAILED,
            f"Failed to save {what}",
            entity_type=what,
            severity=ActivitySeverity.ERROR,
            error_message=error_message,
        )
