"""
Deal, Lender and Milestone models consumed by the suggestion engine.

These are read-only snapshots of rows owned by the CRUD data layer. The
engine never mutates them. Keys may arrive in camelCase (from the web
client) or snake_case (straight from relational rows); both are accepted.

Key design decisions:
- Lender stage is free text; the engine only cares about a handful of
  well-known stage names, exposed here as constants
- Naive timestamps are interpreted as UTC
- A milestone due date given as a full timestamp is truncated to its date
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils import ensure_utc

# Lender pipeline stages the rules key off
TERM_SHEET_STAGE = 'Term Sheet'
INACTIVE_LENDER_STAGES: frozenset[str] = frozenset({'Closed', 'Pass'})
EARLY_LENDER_STAGES: frozenset[str] = frozenset({'Identified', 'Initial Outreach'})
UNWORKED_LENDER_STAGES: frozenset[str] = frozenset({'Identified', 'Closed', 'Pass'})


class DealStatus(str, Enum):
    """
    Known deal statuses.

    The data layer owns this list and may grow it, so `Deal.status` stays
    free text. Only the excluded statuses change engine behaviour.
    """

    ON_TRACK = 'on-track'
    AT_RISK = 'at-risk'
    OFF_TRACK = 'off-track'
    ACTIVE = 'active'
    ON_HOLD = 'on-hold'
    ARCHIVED = 'archived'
    CLOSED = 'closed'


EXCLUDED_STATUSES: frozenset[str] = frozenset({DealStatus.ARCHIVED.value, DealStatus.ON_HOLD.value})


class _SnapshotModel(BaseModel):
    """Shared config: immutable, camelCase or snake_case input."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra='ignore',
        coerce_numbers_to_str=True,
    )

    @field_validator('updated_at', 'completed_at', mode='after', check_fields=False)
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class Lender(_SnapshotModel):
    """A lender's association with one deal, tracked through its own sub-pipeline."""

    id: str = Field(..., description='Deal-lender association id')
    name: str = Field(..., description='Lender display name')
    stage: str = Field(default='Identified', description='Lender sub-stage (free text)')
    updated_at: datetime | None = Field(default=None, description='Last modification time')
    notes: str | None = Field(default=None, description='Free-form conversation notes')
    tracking_status: str | None = Field(
        default=None, description="Tracking status; only 'active' lenders feed the alert widget"
    )

    @property
    def is_inactive(self) -> bool:
        """Closed or passed lenders are never stale."""
        return self.stage in INACTIVE_LENDER_STAGES

    @property
    def is_early_stage(self) -> bool:
        return self.stage in EARLY_LENDER_STAGES


class Milestone(_SnapshotModel):
    """A dated task or deliverable attached to a deal."""

    id: str
    title: str
    due_date: date | None = None
    completed: bool = False
    completed_at: datetime | None = None
    deal_id: str | None = None

    @field_validator('due_date', mode='before')
    @classmethod
    def _truncate_timestamp(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        if value == '':
            return None
        return value


class Deal(_SnapshotModel):
    """
    A financing opportunity tracked through the pipeline.

    `lenders` is the deal's owned collection of lender associations;
    milestones are supplied separately, keyed by deal id.
    """

    id: str = Field(..., description='Deal primary key')
    company: str = Field(..., description='Display name of the borrower')
    status: str = Field(default=DealStatus.ON_TRACK.value, description='Lifecycle status (free text)')
    stage: str = Field(default='', description='Pipeline stage (free text)')
    updated_at: datetime | None = Field(default=None, description='Last modification time')
    value: float | None = Field(default=None, description='Monetary value of the deal')
    notes: str | None = None
    lenders: list[Lender] = Field(default_factory=list)

    @field_validator('status', mode='before')
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace('_', '-').replace(' ', '-')
        return value

    @property
    def is_excluded(self) -> bool:
        """Archived and on-hold deals are skipped by every rule."""
        return self.status in EXCLUDED_STATUSES

    def lenders_in_stage(self, stage: str) -> list[Lender]:
        return [lender for lender in self.lenders if lender.stage == stage]
