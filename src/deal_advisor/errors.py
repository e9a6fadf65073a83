"""
Custom exceptions and error handling for the Deal Advisor engine.

Provides:
- Typed exception hierarchy for the snapshot, preference and evaluation layers
- Error context preservation for debugging
- Partial success handling when loading snapshot rows
"""

from dataclasses import dataclass, field
from typing import Any


class DealAdvisorError(Exception):
    """Base exception for all deal advisor errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Input Errors
# =============================================================================


class ValidationError(DealAdvisorError):
    """Caller supplied an unusable argument combination."""

    pass


class SnapshotError(DealAdvisorError):
    """A snapshot row could not be turned into an entity."""

    pass


class DealNotFoundError(DealAdvisorError):
    """Single-deal evaluation requested for a deal not in the snapshot."""

    pass


# =============================================================================
# Preference / Evaluation Errors
# =============================================================================


class PreferencesError(DealAdvisorError):
    """Preferences could not be loaded or saved."""

    pass


class EvaluationError(DealAdvisorError):
    """A rule raised while evaluating a deal."""

    pass


# =============================================================================
# Partial Success Handling
# =============================================================================


@dataclass
class ItemResult:
    """Result for a single row in a batch load."""

    item_id: str | None
    success: bool
    error: DealAdvisorError | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PartialSuccessResult:
    """
    Result of a batch operation that may partially succeed.

    Snapshot loading keeps going when individual rows are malformed,
    while preserving the reason each row was skipped.
    """

    succeeded: list[ItemResult] = field(default_factory=list)
    failed: list[ItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def partial_success(self) -> bool:
        return self.success_count > 0 and self.failure_count > 0

    def add_success(
        self,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a successful item."""
        self.succeeded.append(
            ItemResult(item_id=item_id, success=True, data=data or {})
        )

    def add_failure(
        self,
        error: DealAdvisorError,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a failed item."""
        self.failed.append(
            ItemResult(item_id=item_id, success=False, error=error, data=data or {})
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'success_count': self.success_count,
            'failure_count': self.failure_count,
            'total_count': self.total_count,
            'all_succeeded': self.all_succeeded,
            'failed_ids': [r.item_id for r in self.failed if r.item_id],
            'errors': [
                {'item_id': r.item_id, 'error': str(r.error)}
                for r in self.failed
                if r.error
            ],
        }


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_row_error(
    exc: Exception,
    kind: str,
    context: dict[str, Any] | None = None,
) -> SnapshotError:
    """
    Wrap a row parsing exception in our typed error hierarchy.

    Args:
        exc: The original exception (usually a pydantic ValidationError)
        kind: Entity kind being parsed ('deal', 'lender', 'milestone')
        context: Additional context for debugging

    Returns:
        SnapshotError carrying the original error text and type
    """
    ctx = context or {}
    ctx['kind'] = kind
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__
    return SnapshotError(f"Malformed {kind} row: {exc}", context=ctx)
