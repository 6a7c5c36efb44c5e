"""Activity logging package."""

from electricity_tracker.audit.logger import ActivityLogger, configure_logging

__all__ = ["ActivityLogger", "configure_logging"]
