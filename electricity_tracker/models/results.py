"""
Result Models

DESIGN DECISION: Persistence never raises to its callers. Every storage
operation returns a StorageResult and the caller checks `ok` before using
`data`. The `outcome` tag tells apart the failure categories, so an
unconfigured backend can never be mistaken for a successful no-op.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class StorageOutcome(str, Enum):
    """What happened to a storage operation."""
    OK = "ok"
    SERIALIZATION_FAILED = "serialization_failed"  # bad JSON in or out
    IO_FAILED = "io_failed"                        # local read/write error
    NETWORK_FAILED = "network_failed"              # unreachable or non-2xx
    UNAVAILABLE = "unavailable"                    # backend not configured
    UNSUPPORTED = "unsupported"                    # backend lacks the operation
    PARTIAL_FAILURE = "partial_failure"            # some branches of a batch failed


class StorageResult(BaseModel):
    """Outcome of a storage operation."""

    ok: bool
    outcome: StorageOutcome = StorageOutcome.OK
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None, message: Optional[str] = None) -> "StorageResult":
        return cls(ok=True, data=data, message=message)

    @classmethod
    def failure(
        cls,
        error: str,
        outcome: StorageOutcome = StorageOutcome.IO_FAILED,
    ) -> "StorageResult":
        return cls(ok=False, outcome=outcome, error=error)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'reading_decreased')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation of a meter interval.

    Stage 1: Presence checks (both readings entered)
    Stage 2: Semantic checks (readings don't go backwards, days > 0)
    """

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="Can the interval be saved?"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
