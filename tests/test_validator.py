"""Tests for meter reading validation."""

from electricity_tracker.billing import calculate_meter_usage
from electricity_tracker.models import MeterBillingSettings, MeterReadingForm
from electricity_tracker.validation import MeterReadingValidator


def check(**form_values):
    form = MeterReadingForm(**{
        "start_date": "2024-03-01",
        "current_date": "2024-03-15",
        **form_values,
    })
    usage = calculate_meter_usage(
        form.start_reading,
        form.start_date,
        form.current_reading,
        form.current_date,
        MeterBillingSettings(),
    )
    return MeterReadingValidator().validate(form, usage)


class TestPresenceStage:
    """Stage 1: both readings must be entered."""

    def test_missing_both(self):
        result = check()
        assert not result.schema_valid
        assert not result.is_valid
        assert {issue.field for issue in result.issues} == {"start_reading", "current_reading"}

    def test_missing_current(self):
        result = check(start_reading=100)
        assert not result.is_valid
        assert result.error_count == 1
        assert result.issues[0].issue_type == "missing"

    def test_semantic_stage_skipped(self):
        """Test that stage 2 doesn't run when stage 1 fails."""
        result = check(start_reading=100)
        assert not result.semantic_valid
        assert all(issue.issue_type == "missing" for issue in result.issues)


class TestSemanticStage:
    """Stage 2: the interval must make sense."""

    def test_valid_interval(self):
        result = check(start_reading=100, current_reading=150)
        assert result.is_valid
        assert result.issues == []

    def test_equal_readings_valid(self):
        """Test that zero usage can be saved."""
        assert check(start_reading=100, current_reading=100).is_valid

    def test_reading_decreased(self):
        """Test that a reading going backwards blocks saving."""
        result = check(start_reading=150, current_reading=100)
        assert not result.is_valid
        assert result.schema_valid
        assert result.issues[0].issue_type == "reading_decreased"
        assert result.issues[0].suggested_fix

    def test_reversed_dates_warn_only(self):
        """Test that a current date before the start date is a warning."""
        result = check(
            start_reading=100,
            current_reading=150,
            start_date="2024-03-15",
            current_date="2024-03-01",
        )
        assert result.is_valid
        assert not result.has_errors
        assert len(result.warnings) == 1


class TestSummary:
    """Tests for the display summary."""

    def test_all_passed(self):
        result = check(start_reading=1, current_reading=2)
        assert MeterReadingValidator().get_user_friendly_summary(result) == "All checks passed."

    def test_lists_errors_and_fixes(self):
        result = check(start_reading=150, current_reading=100)
        summary = MeterReadingValidator().get_user_friendly_summary(result)
        assert "Please check the meter values:" in summary
        assert "greater than or equal to the start reading" in summary

    def test_lists_warnings(self):
        result = check(
            start_reading=1,
            current_reading=2,
            start_date="2024-03-15",
            current_date="2024-03-01",
        )
        summary = MeterReadingValidator().get_user_friendly_summary(result)
        assert "Please verify the following:" in summary
