"""
Main Orchestrator for the Electricity Tracker

This module ties together all the components and holds the state of the
two features:
1. Equipment usage (equipment → hours → daily cost → history)
2. Meter readings (start/end readings → interval cost → history)

DESIGN DECISION: Every operation changes in-memory state first, then
persists the changed domain object. A failed save is logged and
otherwise ignored: state stays as the user left it and the next
successful save writes it out. Only loading reports failure to the
caller, as a retryable `load_error`.

Billing settings are plain objects owned by each tracker and passed
explicitly into the calculator functions.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

from electricity_tracker.audit import ActivityLogger, configure_logging
from electricity_tracker.billing import (
    DailyCost,
    MeterMonthlySummary,
    MeterUsage,
    MonthlySummary,
    calculate_daily_cost,
    calculate_meter_usage,
    itemize_usage,
    month_of,
    summarize_meter_month,
    summarize_usage_month,
)
from electricity_tracker.config import Settings, get_settings
from electricity_tracker.models.activity import ActivityEventType
from electricity_tracker.models.base import validate_iso_day
from electricity_tracker.models.equipment import (
    BillingSettings,
    Equipment,
    UsageHistoryRecord,
)
from electricity_tracker.models.meter import (
    MeterBillingSettings,
    MeterReadingForm,
    MeterReadingRecord,
)
from electricity_tracker.models.results import (
    StorageOutcome,
    StorageResult,
    ValidationResult,
)
from electricity_tracker.services import (
    ElectricityDataService,
    LocalStorageBackend,
    StorageBackend,
    combine_results,
    create_storage_backend,
)
from electricity_tracker.services.storage import (
    METER_BILLING_SETTINGS_KEY,
    METER_HISTORY_KEY,
)
from electricity_tracker.validation import MeterReadingValidator


# Seeded when a backend has no equipment list at all
DEFAULT_EQUIPMENT = (
    {"id": 1, "name": "Air Conditioner", "watts": 1500},
    {"id": 2, "name": "Electric Fan", "watts": 75},
    {"id": 3, "name": "Electric Pan", "watts": 1200},
)

_METER_HISTORY = TypeAdapter(list[MeterReadingRecord])
_METER_BILLING = TypeAdapter(MeterBillingSettings)


class _TrackerBase:
    """Clock, id and persistence plumbing shared by both trackers."""

    def __init__(
        self,
        activity_logger: Optional[ActivityLogger],
        clock: Callable[[], datetime],
    ):
        self._activity = activity_logger or ActivityLogger()
        self._clock = clock
        self._last_id = 0
        self.load_error: Optional[str] = None

    def _today(self) -> str:
        return self._clock().date().isoformat()

    def _next_id(self) -> int:
        """Creation timestamp in ms, bumped so ids stay unique."""
        now_ms = int(self._clock().timestamp() * 1000)
        self._last_id = max(now_ms, self._last_id + 1)
        return self._last_id

    def _observe_ids(self, ids) -> None:
        self._last_id = max([self._last_id, *ids])

    async def _persist(self, what: str, save: Awaitable[StorageResult]) -> StorageResult:
        """Await a save; failures are logged, never raised."""
        result = await save
        if not result.ok:
            self._activity.log_persistence_failed(what, result.error)
        return result


def _merge_settings(current, model, changes: dict[str, Any]):
    """Validate changes against `model`, then apply them to `current` in place."""
    changes = {key: value for key, value in changes.items() if value is not None}
    validated = model.model_validate({**current.model_dump(), **changes})
    for key in changes:
        setattr(current, key, getattr(validated, key))
    return current


class EquipmentUsageTracker(_TrackerBase):
    """
    State and operations of the equipment usage calculator.

    History keeps at most one record per date: saving a date again
    replaces the earlier record (and moves it to the end).
    """

    def __init__(
        self,
        data_service: ElectricityDataService,
        activity_logger: Optional[ActivityLogger] = None,
        history_display_limit: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(activity_logger, clock)
        self._service = data_service
        self._history_display_limit = history_display_limit

        self.equipment: list[Equipment] = []
        self.billing: BillingSettings = data_service.default_billing
        self.daily_usage: dict[int, float] = {}
        self.usage_history: list[UsageHistoryRecord] = []
        self.selected_date: str = self._today()

    @property
    def service(self) -> ElectricityDataService:
        return self._service

    async def load(self) -> bool:
        """
        Hydrate state from storage, fetching all three collections at once.

        Collections that load are applied even if another fails. Any
        failure sets `load_error`; call load() again to retry.
        """
        equipment, history, settings = await asyncio.gather(
            self._service.get_equipment(),
            self._service.get_usage_history(),
            self._service.get_billing_settings(),
        )

        if equipment.ok:
            if equipment.data is None:
                self.equipment = [Equipment(**item) for item in DEFAULT_EQUIPMENT]
            else:
                self.equipment = list(equipment.data)
            self._observe_ids(item.id for item in self.equipment)
        if history.ok:
            self.usage_history = list(history.data or [])
            self._observe_ids(record.id for record in self.usage_history)
        if settings.ok:
            self.billing = settings.data or self._service.default_billing

        failure = combine_results(
            [equipment, history, settings], "Failed to load data from database"
        )
        if failure:
            self.load_error = failure.error
            self._activity.log_load_failed(failure.error)
            return False

        self.load_error = None
        self._activity.log_data_operation(
            ActivityEventType.DATA_LOADED,
            "Equipment data loaded",
            equipment=len(self.equipment),
            history=len(self.usage_history),
        )
        return True

    # -------------------------------------------------------------------------
    # Equipment
    # -------------------------------------------------------------------------

    async def add_equipment(self, name: str, watts: float) -> Equipment:
        """
        Add equipment and save the list.

        Raises:
            ValidationError: If the name is empty or watts is not positive
        """
        item = Equipment(id=self._next_id(), name=name, watts=watts)
        self.equipment = [*self.equipment, item]

        self._activity.log_equipment_added(item.id, item.name, item.watts)
        await self._persist("equipment", self._service.save_equipment(self.equipment))
        return item

    async def remove_equipment(self, equipment_id: int) -> bool:
        """Remove equipment and its usage entry. Returns False if unknown."""
        remaining = [item for item in self.equipment if item.id != equipment_id]
        if len(remaining) == len(self.equipment):
            return False

        self.equipment = remaining
        self.daily_usage.pop(equipment_id, None)

        self._activity.log_equipment_removed(equipment_id)
        await self._persist("equipment", self._service.save_equipment(self.equipment))
        return True

    def set_usage_hours(self, equipment_id: int, hours: float) -> None:
        """
        Record today's hours for one piece of equipment.

        Raises:
            ValueError: If the equipment is unknown or hours is negative
        """
        if not any(item.id == equipment_id for item in self.equipment):
            raise ValueError(f"Unknown equipment id: {equipment_id}")
        hours = float(hours)
        if not math.isfinite(hours) or hours < 0:
            raise ValueError(f"Hours must be a non-negative number, got {hours}")
        self.daily_usage[equipment_id] = hours

    def select_date(self, day: Union[str, date]) -> str:
        """Choose the date that daily usage is saved under."""
        day = day.isoformat() if isinstance(day, date) else day
        self.selected_date = validate_iso_day(day)
        return self.selected_date

    # -------------------------------------------------------------------------
    # Costs & history
    # -------------------------------------------------------------------------

    def calculate_daily_cost(self) -> DailyCost:
        """Cost of the hours entered so far (full precision)."""
        return calculate_daily_cost(self.equipment, self.daily_usage, self.billing)

    async def save_daily_usage(self, day: Optional[Union[str, date]] = None) -> UsageHistoryRecord:
        """
        Freeze today's usage into a history record.

        Replaces any record for the same date, then clears the entered hours.
        """
        if day is not None:
            self.select_date(day)
        day = self.selected_date

        cost = self.calculate_daily_cost()
        record = UsageHistoryRecord(
            id=self._next_id(),
            date=day,
            equipment=itemize_usage(self.equipment, self.daily_usage, self.billing),
            summary=cost.rounded(),
            timestamp=self._clock().isoformat(),
        )

        replaced = any(entry.date == day for entry in self.usage_history)
        self.usage_history = [entry for entry in self.usage_history if entry.date != day]
        self.usage_history.append(record)
        self.daily_usage = {}

        self._activity.log_daily_usage_saved(day, record.summary.total_cost, replaced)
        await self._persist(
            "usage_history", self._service.save_usage_history(self.usage_history)
        )
        return record

    def recent_history(self, limit: Optional[int] = None) -> list[UsageHistoryRecord]:
        """The most recently saved records, newest first."""
        if limit is None:
            limit = self._history_display_limit
        if limit <= 0:
            return []
        return list(reversed(self.usage_history[-limit:]))

    def monthly_summary(self, month: Optional[str] = None) -> MonthlySummary:
        """Totals for `month` (defaults to the selected date's month)."""
        return summarize_usage_month(self.usage_history, month or month_of(self.selected_date))

    async def update_billing_settings(
        self,
        unit_rate: Optional[float] = None,
        service_fee: Optional[float] = None,
    ) -> BillingSettings:
        """Change rates in place and save them."""
        _merge_settings(
            self.billing, BillingSettings,
            {"unit_rate": unit_rate, "service_fee": service_fee},
        )

        self._activity.log_settings_updated("billing_settings", self.billing.to_storage())
        await self._persist(
            "billing_settings", self._service.save_billing_settings(self.billing)
        )
        return self.billing

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    async def export_data(self, directory: Union[str, Path]) -> StorageResult:
        """Write an export file into `directory`."""
        result = await self._service.export_to_file(directory)
        if result.ok:
            self._activity.log_data_operation(
                ActivityEventType.DATA_EXPORTED, "Data exported", path=str(result.data)
            )
        return result

    async def import_data(self, path: Union[str, Path]) -> StorageResult:
        """Import an export file, then reload state from storage."""
        result = await self._service.import_from_file(path)
        if not result.ok:
            return result

        self._activity.log_data_operation(
            ActivityEventType.DATA_IMPORTED, "Data imported", path=str(path)
        )
        await self.load()
        return result

    async def clear_all_data(self) -> StorageResult:
        """Delete everything from storage and reset state."""
        result = await self._service.clear_all()
        if not result.ok:
            return result

        self.equipment = []
        self.usage_history = []
        self.billing = self._service.default_billing
        self.daily_usage = {}

        self._activity.log_data_operation(ActivityEventType.DATA_CLEARED, "All data cleared")
        return result


class MeterReadingTracker(_TrackerBase):
    """
    State and operations of the meter reading tracker.

    History is append-only and newest first. Saving a reading starts the
    next interval where the saved one ended.
    """

    def __init__(
        self,
        storage: StorageBackend,
        activity_logger: Optional[ActivityLogger] = None,
        validator: Optional[MeterReadingValidator] = None,
        default_billing: Optional[MeterBillingSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(activity_logger, clock)
        self._storage = storage
        self._validator = validator or MeterReadingValidator()
        self._default_billing = default_billing or MeterBillingSettings()

        self.history: list[MeterReadingRecord] = []
        self.billing: MeterBillingSettings = self._default_billing.model_copy()
        self.form: MeterReadingForm = self._blank_form()

    def _blank_form(self, **values) -> MeterReadingForm:
        today = self._today()
        return MeterReadingForm(**{"start_date": today, "current_date": today, **values})

    async def load(self) -> bool:
        """Hydrate history and settings from storage."""
        history, settings = await asyncio.gather(
            self._storage.get(METER_HISTORY_KEY),
            self._storage.get(METER_BILLING_SETTINGS_KEY),
        )

        history = self._parse(history, _METER_HISTORY)
        settings = self._parse(settings, _METER_BILLING)

        if history.ok and history.data is not None:
            self.history = history.data
            self._observe_ids(record.id for record in self.history)
        if settings.ok and settings.data is not None:
            self.billing = settings.data

        failure = combine_results([history, settings], "Failed to load meter data")
        if failure:
            self.load_error = failure.error
            self._activity.log_load_failed(failure.error)
            return False

        self.load_error = None
        return True

    @staticmethod
    def _parse(result: StorageResult, adapter: TypeAdapter) -> StorageResult:
        if not result.ok or result.data is None:
            return result
        try:
            return StorageResult.success(adapter.validate_python(result.data))
        except ValidationError as e:
            return StorageResult.failure(
                f"Stored meter data is malformed: {e.error_count()} validation error(s)",
                StorageOutcome.SERIALIZATION_FAILED,
            )

    # -------------------------------------------------------------------------
    # Form
    # -------------------------------------------------------------------------

    def update_form(self, **changes) -> MeterReadingForm:
        """
        Edit form fields (start_reading, start_date, current_reading,
        current_date, note).

        Raises:
            ValueError: On unknown fields or invalid values
        """
        unknown = set(changes) - set(MeterReadingForm.model_fields)
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")
        self.form = MeterReadingForm.model_validate({**self.form.model_dump(), **changes})
        return self.form

    def load_reading_to_form(self, record_id: int) -> MeterReadingForm:
        """Copy a saved reading back into the form."""
        record = next((r for r in self.history if r.id == record_id), None)
        if record is None:
            raise ValueError(f"No meter reading with id {record_id}")

        self.form = MeterReadingForm(
            start_reading=record.start_reading,
            start_date=record.start_date,
            current_reading=record.current_reading,
            current_date=record.current_date,
            note=record.note or "",
        )
        return self.form

    # -------------------------------------------------------------------------
    # Readings
    # -------------------------------------------------------------------------

    def calculate_usage(self) -> MeterUsage:
        """Usage and cost of the interval in the form (full precision)."""
        return calculate_meter_usage(
            self.form.start_reading,
            self.form.start_date,
            self.form.current_reading,
            self.form.current_date,
            self.billing,
        )

    async def save_reading(self) -> tuple[Optional[MeterReadingRecord], ValidationResult]:
        """
        Save the interval in the form.

        Returns:
            (record, validation). record is None when validation failed,
            in which case the form is left unchanged.
        """
        usage = self.calculate_usage()
        validation = self._validator.validate(self.form, usage)
        if not validation.is_valid:
            self._activity.log_reading_rejected(
                [{"field": i.field, "type": i.issue_type} for i in validation.issues]
            )
            return None, validation

        frozen = usage.rounded()
        record = MeterReadingRecord(
            id=self._next_id(),
            start_reading=self.form.start_reading,
            start_date=self.form.start_date,
            current_reading=self.form.current_reading,
            current_date=self.form.current_date,
            note=self.form.note,
            created_at=self._clock().isoformat(),
            **frozen.model_dump(exclude={"is_valid"}),
        )
        self.history = [record, *self.history]

        # Next interval starts where this one ended
        self.form = self._blank_form(
            start_reading=record.current_reading,
            start_date=record.current_date,
        )

        self._activity.log_reading_saved(record.id, record.units_used, record.total_cost)
        await self._persist_history()
        return record, validation

    async def delete_reading(self, record_id: int) -> bool:
        """Delete a saved reading. Returns False if unknown."""
        remaining = [record for record in self.history if record.id != record_id]
        if len(remaining) == len(self.history):
            return False

        self.history = remaining
        self._activity.log_reading_deleted(record_id)
        await self._persist_history()
        return True

    async def _persist_history(self) -> StorageResult:
        return await self._persist(
            "meter_reading_history",
            self._storage.save(METER_HISTORY_KEY, [r.to_storage() for r in self.history]),
        )

    async def update_billing_settings(
        self,
        unit_rate: Optional[float] = None,
        service_fee: Optional[float] = None,
        minimum_charge: Optional[float] = None,
    ) -> MeterBillingSettings:
        """Change rates in place and save them."""
        _merge_settings(
            self.billing, MeterBillingSettings,
            {"unit_rate": unit_rate, "service_fee": service_fee, "minimum_charge": minimum_charge},
        )

        self._activity.log_settings_updated("meter_billing_settings", self.billing.to_storage())
        await self._persist(
            "meter_billing_settings",
            self._storage.save(METER_BILLING_SETTINGS_KEY, self.billing.to_storage()),
        )
        return self.billing

    def monthly_summary(self, month: Optional[str] = None) -> MeterMonthlySummary:
        """Totals for `month` (defaults to the current month)."""
        return summarize_meter_month(self.history, month or month_of(self._clock()))


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[EquipmentUsageTracker, MeterReadingTracker, ElectricityDataService]:
    """
    Factory function to create all application components.

    The equipment tracker uses the configured backend; the meter tracker
    always keeps its data in the local store.

    Returns:
        (equipment_tracker, meter_tracker, data_service)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage
    billing = settings.billing

    configure_logging(app_settings.log_level)
    activity_logger = ActivityLogger()

    data_service = ElectricityDataService(
        create_storage_backend(settings=storage_settings),
        default_billing=BillingSettings(
            unit_rate=billing.unit_rate,
            service_fee=billing.service_fee,
        ),
    )
    equipment_tracker = EquipmentUsageTracker(
        data_service,
        activity_logger=activity_logger,
        history_display_limit=app_settings.history_display_limit,
    )
    meter_tracker = MeterReadingTracker(
        LocalStorageBackend(storage_settings.data_dir),
        activity_logger=activity_logger,
        default_billing=MeterBillingSettings(
            unit_rate=billing.unit_rate,
            service_fee=billing.service_fee,
            minimum_charge=billing.minimum_charge,
        ),
    )

    return equipment_tracker, meter_tracker, data_service
