"""
Engine output models: suggestions, alerts and their counts.

Suggestions are ephemeral. They are rebuilt on every evaluation pass and
identified by a deterministic id so that a caller's dismissal set keeps
working across passes.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SuggestionType(str, Enum):
    """Category of a suggestion."""

    WARNING = 'warning'
    ACTION = 'action'
    OPPORTUNITY = 'opportunity'
    REMINDER = 'reminder'


class Priority(str, Enum):
    """Urgency of a suggestion. HIGH sorts first."""

    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}


class RuleName(str, Enum):
    """Named rules; the value doubles as the suggestion id prefix."""

    STALE_LENDER = 'stale-lender'
    OVERDUE_MILESTONE = 'overdue-milestone'
    DUE_TODAY = 'due-today'
    DUE_TOMORROW = 'due-tomorrow'
    TERM_SHEET = 'term-sheet'
    STALE_DEAL = 'stale-deal'
    STUCK_LENDERS = 'stuck-lenders'
    LENDERS_WITHOUT_NOTES = 'lenders-no-notes'
    NO_MILESTONES = 'no-milestones'
    ALL_MILESTONES_DONE = 'all-milestones-done'


class ActionType(str, Enum):
    """How the UI should act on a suggestion's action label."""

    NAVIGATE = 'navigate'
    PROMPT = 'prompt'
    HIGHLIGHT = 'highlight'


def suggestion_id(rule: RuleName, deal_id: str, entity_id: str | None = None) -> str:
    """Compose the stable id `{rule}-{dealId}[-{entityId}]`."""
    if entity_id is None:
        return f'{rule.value}-{deal_id}'
    return f'{rule.value}-{deal_id}-{entity_id}'


class Suggestion(BaseModel):
    """An advisory notice derived from the current snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description='Deterministic id, stable across evaluations')
    deal_id: str
    deal_name: str
    rule: RuleName
    type: SuggestionType
    priority: Priority
    title: str
    description: str
    action_label: str | None = None
    action_type: ActionType | None = None
    action_data: dict[str, Any] = Field(default_factory=dict)


class SuggestionCounts(BaseModel):
    """Badge counts for a suggestion list."""

    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    by_type: dict[SuggestionType, int] = Field(
        default_factory=lambda: {t: 0 for t in SuggestionType}
    )


# =============================================================================
# Alert widget
# =============================================================================


class AlertKind(str, Enum):
    STALE_DEAL = 'stale-deal'
    STALE_LENDER = 'stale-lender'


class AlertSeverity(str, Enum):
    WARNING = 'warning'
    DESTRUCTIVE = 'destructive'


class Alert(BaseModel):
    """A stale deal or stale lender group shown in the alerts widget."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: AlertKind
    deal_id: str
    company: str
    description: str
    days_since_update: int
    severity: AlertSeverity
    lender_count: int | None = None
