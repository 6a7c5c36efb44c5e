"""
Two-Stage Meter Reading Validation

STAGE 1 - PRESENCE:
- Both the start and the current reading are entered

STAGE 2 - SEMANTIC:
- The current reading is not below the start reading
- The interval covers at least one day
- A current date before the start date is allowed (the interval clamps
  to one day) but is reported as a warning

Only an interval that passes both stages may be saved. A failed
validation never touches the form; the user fixes it and tries again.
"""

from datetime import date

from electricity_tracker.billing.calculator import MeterUsage
from electricity_tracker.models.meter import MeterReadingForm
from electricity_tracker.models.results import ValidationIssue, ValidationResult


class MeterReadingValidator:
    """Validates a meter reading form together with its computed usage."""

    def _validate_presence(
        self,
        form: MeterReadingForm,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: both readings must be entered.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if form.start_reading is None:
            issues.append(ValidationIssue(
                field="start_reading",
                issue_type="missing",
                message="Start reading is required",
                severity="error",
                suggested_fix="Enter the meter value at the start of the interval",
            ))

        if form.current_reading is None:
            issues.append(ValidationIssue(
                field="current_reading",
                issue_type="missing",
                message="Current reading is required",
                severity="error",
                suggested_fix="Enter the meter value shown today",
            ))

        return not issues, issues

    def _validate_semantic(
        self,
        form: MeterReadingForm,
        usage: MeterUsage,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: the interval must make sense.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if form.current_reading < form.start_reading:
            issues.append(ValidationIssue(
                field="current_reading",
                issue_type="reading_decreased",
                message=(
                    f"Current reading ({form.current_reading}) is below "
                    f"the start reading ({form.start_reading})"
                ),
                severity="error",
                suggested_fix="The current reading must be greater than or equal to the start reading",
            ))

        if usage.days_difference <= 0:
            issues.append(ValidationIssue(
                field="current_date",
                issue_type="empty_interval",
                message="The interval must cover at least one day",
                severity="error",
            ))

        if date.fromisoformat(form.current_date) < date.fromisoformat(form.start_date):
            issues.append(ValidationIssue(
                field="current_date",
                issue_type="date_reversed",
                message="Current date is before the start date; counted as one day",
                severity="warning",
                suggested_fix="Check the dates",
            ))

        is_valid = usage.is_valid and not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, form: MeterReadingForm, usage: MeterUsage) -> ValidationResult:
        """
        Run both validation stages.

        Stage 2 only runs if stage 1 passes.
        """
        all_issues = []

        presence_valid, presence_issues = self._validate_presence(form)
        all_issues.extend(presence_issues)

        semantic_valid = False
        if presence_valid:
            semantic_valid, semantic_issues = self._validate_semantic(form, usage)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=presence_valid,
            semantic_valid=semantic_valid,
            is_valid=presence_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary of a validation result for display."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please check the meter values:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
