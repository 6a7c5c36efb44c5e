"""Tests for the cost calculators."""

from datetime import date, datetime

import pytest

from electricity_tracker.billing import (
    calculate_daily_cost,
    calculate_meter_usage,
    days_between,
    energy_kwh,
    itemize_usage,
    round_energy,
    round_money,
)
from electricity_tracker.models import BillingSettings, Equipment, MeterBillingSettings


@pytest.fixture
def equipment():
    return [
        Equipment(id=1, name="Air Conditioner", watts=1500),
        Equipment(id=2, name="Electric Fan", watts=75),
        Equipment(id=3, name="Electric Pan", watts=1200),
    ]


class TestRounding:
    """Tests for presentation rounding."""

    def test_energy_three_places(self):
        assert round_energy(1.23456) == 1.235

    def test_money_two_places(self):
        assert round_money(22.4651) == 22.47

    def test_energy_kwh(self):
        """Test watts × hours / 1000."""
        assert energy_kwh(1500, 2) == 3.0


class TestDailyCost:
    """Tests for the per-day equipment model."""

    def test_single_item_day(self, billing):
        """Test 1500 W for 2 h at 7/kWh with a 7% fee."""
        cost = calculate_daily_cost(
            [Equipment(id=1, name="AC", watts=1500)], {1: 2}, billing
        )
        assert cost.total_kwh == pytest.approx(3.0)
        assert cost.base_cost == pytest.approx(21.0)
        assert cost.service_fee == pytest.approx(1.47)
        assert cost.total_cost == pytest.approx(22.47)

    def test_unlisted_equipment_counts_as_unused(self, equipment, billing):
        """Test that equipment without hours adds nothing."""
        cost = calculate_daily_cost(equipment, {2: 8}, billing)
        assert cost.total_kwh == pytest.approx(0.6)
        assert cost.base_cost == pytest.approx(4.2)

    def test_energy_never_drops_as_hours_rise(self, equipment, billing):
        """Test that raising one item's hours never lowers total kWh."""
        previous = 0.0
        for step in range(0, 49):
            hours = step * 0.5
            cost = calculate_daily_cost(equipment, {1: hours, 2: 3, 3: 0.25}, billing)
            assert cost.total_kwh >= previous
            previous = cost.total_kwh

    def test_no_usage_is_zero(self, equipment, billing):
        """Test an empty day."""
        cost = calculate_daily_cost(equipment, {}, billing)
        assert cost.total_cost == 0

    def test_zero_fee(self, equipment):
        """Test that a zero fee leaves total equal to base."""
        cost = calculate_daily_cost(equipment, {1: 1}, BillingSettings(unit_rate=10, service_fee=0))
        assert cost.service_fee == 0
        assert cost.total_cost == pytest.approx(cost.base_cost)

    def test_full_precision_until_rounded(self, billing):
        """Test that rounding only happens in rounded()."""
        items = [Equipment(id=i, name=f"Bulb {i}", watts=7) for i in range(1, 4)]
        cost = calculate_daily_cost(items, {1: 1.3, 2: 1.3, 3: 1.3}, billing)
        assert cost.total_kwh == pytest.approx(0.0273)

        summary = cost.rounded()
        assert summary.total_kwh == 0.027
        assert summary.total_cost == round_money(cost.total_cost)

    def test_itemized_lines_exclude_fee(self, equipment, billing):
        """Test that per-item cost is base cost only."""
        lines = itemize_usage(equipment, {1: 2, 2: 8}, billing)
        assert [line.name for line in lines] == ["Air Conditioner", "Electric Fan", "Electric Pan"]
        assert lines[0].cost == 21.0
        assert lines[1].cost == 4.2
        assert lines[2].hours == 0
        assert lines[2].cost == 0


class TestDaysBetween:
    """Tests for interval length."""

    def test_same_day_is_one(self):
        """Test that a same-day interval counts as one day."""
        assert days_between("2024-03-15", "2024-03-15") == 1

    def test_whole_days(self):
        assert days_between("2024-03-01", "2024-03-15") == 14

    def test_partial_day_rounds_up(self):
        """Test that a part of a day counts as a whole day."""
        assert days_between(datetime(2024, 3, 1, 8), datetime(2024, 3, 2, 9)) == 2

    def test_reversed_range_clamps(self):
        """Test that an end before the start still gives one day."""
        assert days_between("2024-03-15", "2024-03-01") == 1

    def test_accepts_dates(self):
        assert days_between(date(2024, 2, 28), date(2024, 3, 1)) == 2


class TestMeterUsage:
    """Tests for the meter-interval model."""

    def test_single_day_interval(self, meter_billing):
        """Test 100 → 150 on one day at 7/kWh with a 7% fee."""
        usage = calculate_meter_usage(100, "2024-03-15", 150, "2024-03-15", meter_billing)
        assert usage.units_used == 50
        assert usage.days_difference == 1
        assert usage.base_cost == pytest.approx(350.0)
        assert usage.service_fee == pytest.approx(24.5)
        assert usage.total_cost == pytest.approx(374.5)
        assert usage.cost_per_day == pytest.approx(374.5)
        assert usage.unit_rate == 7
        assert usage.is_valid

    def test_per_day_figures(self, meter_billing):
        """Test averages over a multi-day interval."""
        usage = calculate_meter_usage(1000, "2024-03-01", 1140, "2024-03-15", meter_billing)
        assert usage.days_difference == 14
        assert usage.average_daily_usage == pytest.approx(10.0)
        assert usage.cost_per_day == pytest.approx(usage.total_cost / 14)

    def test_no_usage_charges_minimum(self):
        """Test that equal readings still cost the minimum charge."""
        settings = MeterBillingSettings(unit_rate=7, service_fee=7, minimum_charge=50)
        usage = calculate_meter_usage(500, "2024-03-01", 500, "2024-03-02", settings)
        assert usage.units_used == 0
        assert usage.base_cost == 0
        assert usage.total_cost == 50
        assert usage.is_valid

    def test_minimum_not_applied_above_floor(self):
        """Test that the floor only applies below the minimum."""
        settings = MeterBillingSettings(unit_rate=7, service_fee=7, minimum_charge=50)
        usage = calculate_meter_usage(100, "2024-03-01", 150, "2024-03-02", settings)
        assert usage.total_cost == pytest.approx(374.5)

    def test_decreasing_reading_clamps_and_invalidates(self, meter_billing):
        """Test that a lower current reading gives zero units but is invalid."""
        usage = calculate_meter_usage(150, "2024-03-01", 100, "2024-03-02", meter_billing)
        assert usage.units_used == 0
        assert not usage.is_valid

    def test_missing_readings_count_as_zero(self, meter_billing):
        """Test that unset readings are treated as 0."""
        usage = calculate_meter_usage(None, "2024-03-01", 20, "2024-03-02", meter_billing)
        assert usage.units_used == 20

        usage = calculate_meter_usage(None, "2024-03-01", None, "2024-03-02", meter_billing)
        assert usage.units_used == 0
        assert usage.is_valid

    def test_rounded_copy(self, meter_billing):
        """Test presentation rounding of a meter interval."""
        usage = calculate_meter_usage(0, "2024-03-01", 10, "2024-03-04", meter_billing).rounded()
        assert usage.average_daily_usage == 3.333
        assert usage.cost_per_day == 24.97
        assert usage.days_difference == 3
