"""Tests for the meter reading tracker and component wiring."""

import pytest
from pydantic import ValidationError

from electricity_tracker.config import Settings, get_settings
from electricity_tracker.models import ActivityEventType, MeterBillingSettings
from electricity_tracker.orchestrator import (
    EquipmentUsageTracker,
    MeterReadingTracker,
    create_app_components,
)
from electricity_tracker.services import ElectricityDataService, LocalStorageBackend
from electricity_tracker.services.storage import METER_HISTORY_KEY


@pytest.fixture
def meter(local_backend, events, clock):
    return MeterReadingTracker(local_backend, activity_logger=events, clock=clock)


async def record_interval(tracker, start, end, start_date="2024-03-15", end_date="2024-03-15"):
    tracker.update_form(
        start_reading=start,
        start_date=start_date,
        current_reading=end,
        current_date=end_date,
    )
    record, validation = await tracker.save_reading()
    assert validation.is_valid
    return record


class TestForm:
    """Tests for editing the reading form."""

    def test_initial_form(self, meter):
        assert meter.form.start_date == "2024-03-15"
        assert meter.form.current_date == "2024-03-15"
        assert meter.form.start_reading is None

    def test_update_form(self, meter):
        form = meter.update_form(start_reading=100, note="  after trip ")
        assert form.start_reading == 100
        assert form.note == "after trip"

    def test_unknown_field(self, meter):
        with pytest.raises(ValueError, match="Unknown form fields"):
            meter.update_form(reading=5)

    def test_invalid_value(self, meter):
        """Test that a bad value leaves the form unchanged."""
        with pytest.raises(ValidationError):
            meter.update_form(start_reading=-4)
        assert meter.form.start_reading is None

    def test_live_calculation(self, meter):
        meter.update_form(start_reading=100, current_reading=150)
        usage = meter.calculate_usage()
        assert usage.units_used == 50
        assert usage.total_cost == pytest.approx(374.5)


class TestSaveReading:
    """Tests for saving intervals."""

    @pytest.mark.asyncio
    async def test_save_one_day_interval(self, meter, events):
        """Test 100 → 150 on one day at default rates."""
        record = await record_interval(meter, 100, 150)
        assert record.units_used == 50
        assert record.days_difference == 1
        assert record.base_cost == 350
        assert record.service_fee == 24.5
        assert record.total_cost == 374.5
        assert record.cost_per_day == 374.5
        assert record.unit_rate == 7
        assert record.created_at == "2024-03-15T09:30:00"
        assert ActivityEventType.METER_READING_SAVED in events.types()

    @pytest.mark.asyncio
    async def test_next_interval_starts_where_saved_ended(self, meter):
        await record_interval(meter, 100, 150, "2024-03-01", "2024-03-10")
        assert meter.form.start_reading == 150
        assert meter.form.start_date == "2024-03-10"
        assert meter.form.current_reading is None
        assert meter.form.current_date == "2024-03-15"
        assert meter.form.note == ""

    @pytest.mark.asyncio
    async def test_history_newest_first(self, meter):
        first = await record_interval(meter, 100, 150)
        second = await record_interval(meter, 150, 180)
        assert [r.id for r in meter.history] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_rejected_reading(self, meter, events, local_backend):
        """Test that an invalid interval is not saved and the form is kept."""
        meter.update_form(start_reading=150, current_reading=100)
        record, validation = await meter.save_reading()

        assert record is None
        assert not validation.is_valid
        assert meter.history == []
        assert meter.form.start_reading == 150
        assert ActivityEventType.METER_READING_REJECTED in events.types()
        assert (await local_backend.get(METER_HISTORY_KEY)).data is None

    @pytest.mark.asyncio
    async def test_missing_readings_rejected(self, meter):
        record, validation = await meter.save_reading()
        assert record is None
        assert validation.error_count == 2

    @pytest.mark.asyncio
    async def test_minimum_charge_applies(self, meter):
        await meter.update_billing_settings(minimum_charge=50)
        record = await record_interval(meter, 500, 500)
        assert record.units_used == 0
        assert record.total_cost == 50

    @pytest.mark.asyncio
    async def test_persisted_and_reloaded(self, meter, local_backend, clock):
        await record_interval(meter, 100, 150)
        await meter.update_billing_settings(unit_rate=8)

        other = MeterReadingTracker(local_backend, clock=clock)
        assert await other.load()
        assert len(other.history) == 1
        assert other.history[0].total_cost == 374.5
        assert other.billing.unit_rate == 8


class TestHistoryEditing:
    """Tests for deleting and reloading saved intervals."""

    @pytest.mark.asyncio
    async def test_delete(self, meter, local_backend, clock):
        record = await record_interval(meter, 100, 150)
        assert await meter.delete_reading(record.id)
        assert meter.history == []

        other = MeterReadingTracker(local_backend, clock=clock)
        await other.load()
        assert other.history == []

    @pytest.mark.asyncio
    async def test_delete_unknown(self, meter):
        assert not await meter.delete_reading(1)

    @pytest.mark.asyncio
    async def test_load_reading_to_form(self, meter):
        record = await record_interval(meter, 100, 150, "2024-03-01", "2024-03-10")
        form = meter.load_reading_to_form(record.id)
        assert form.start_reading == 100
        assert form.current_reading == 150
        assert form.start_date == "2024-03-01"

    def test_load_unknown_to_form(self, meter):
        with pytest.raises(ValueError):
            meter.load_reading_to_form(99)


class TestMeterSettingsAndSummary:
    """Tests for rates and monthly totals."""

    @pytest.mark.asyncio
    async def test_update_in_place(self, meter):
        settings = meter.billing
        await meter.update_billing_settings(service_fee=0, minimum_charge=20)
        assert meter.billing is settings
        assert meter.billing == MeterBillingSettings(unit_rate=7, service_fee=0, minimum_charge=20)

    @pytest.mark.asyncio
    async def test_monthly_summary_defaults_to_current_month(self, meter):
        await record_interval(meter, 100, 150, "2024-03-01", "2024-03-10")
        await record_interval(meter, 150, 200, "2024-02-01", "2024-02-20")

        summary = meter.monthly_summary()
        assert summary.month == "2024-03"
        assert summary.record_count == 1
        assert summary.total_kwh == 50
        assert meter.monthly_summary("2024-02").record_count == 1

    @pytest.mark.asyncio
    async def test_malformed_history(self, local_backend, clock):
        """Test that unreadable stored history is a load error."""
        await local_backend.save(METER_HISTORY_KEY, [{"id": "x"}])
        tracker = MeterReadingTracker(local_backend, clock=clock)
        assert not await tracker.load()
        assert tracker.load_error
        assert tracker.history == []


class TestAppComponents:
    """Tests for wiring everything from settings."""

    @pytest.fixture(autouse=True)
    def environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ELECTRICITY_STORAGE_DATA_DIR", str(tmp_path / "store"))
        monkeypatch.setenv("ELECTRICITY_BILLING_UNIT_RATE", "9")
        monkeypatch.setenv("ELECTRICITY_BILLING_MINIMUM_CHARGE", "15")
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    @pytest.mark.asyncio
    async def test_components(self, tmp_path):
        equipment_tracker, meter_tracker, service = create_app_components(Settings())

        assert isinstance(equipment_tracker, EquipmentUsageTracker)
        assert isinstance(meter_tracker, MeterReadingTracker)
        assert isinstance(service, ElectricityDataService)
        assert isinstance(service.backend, LocalStorageBackend)

        assert await equipment_tracker.load()
        assert equipment_tracker.billing.unit_rate == 9
        assert meter_tracker.billing.minimum_charge == 15

        await equipment_tracker.add_equipment("Fan", 75)
        assert (tmp_path / "store" / "electricity_equipment.json").exists()
