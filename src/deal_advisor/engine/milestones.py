"""Milestones widget buckets: Overdue, Due This Week, Recently Completed."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ..models.deal import Milestone
from ..models.preferences import Preferences
from ..utils import ensure_utc, utcnow

UPCOMING_WINDOW_DAYS = 7


@dataclass
class MilestoneBuckets:
    overdue: list[Milestone] = field(default_factory=list)
    due_this_week: list[Milestone] = field(default_factory=list)
    recently_completed: list[Milestone] = field(default_factory=list)

    @property
    def active_count(self) -> int:
        return len(self.overdue) + len(self.due_this_week)

    @property
    def is_empty(self) -> bool:
        return self.active_count == 0 and not self.recently_completed

    def to_dict(self) -> dict[str, Any]:
        return {
            'overdue': [m.model_dump(mode='json') for m in self.overdue],
            'due_this_week': [m.model_dump(mode='json') for m in self.due_this_week],
            'recently_completed': [m.model_dump(mode='json') for m in self.recently_completed],
        }


def bucket_milestones(
    milestones: Iterable[Milestone],
    now: datetime | None = None,
    preferences: Preferences | None = None,
) -> MilestoneBuckets:
    """
    Partition milestones for the widget.

    Open milestones due before today are overdue; those due within the
    next seven days (today included) are due this week; undated open
    milestones are left out. Completed ones are listed newest first.
    """
    prefs = preferences or Preferences()
    today = (ensure_utc(now) if now is not None else utcnow()).date()
    horizon = today + timedelta(days=UPCOMING_WINDOW_DAYS)

    buckets = MilestoneBuckets()
    completed: list[Milestone] = []
    for m in milestones:
        if m.completed:
            completed.append(m)
        elif m.due_date is None:
            continue
        elif m.due_date < today:
            buckets.overdue.append(m)
        elif m.due_date < horizon:
            buckets.due_this_week.append(m)

    # Undated completions sink to the bottom
    completed.sort(
        key=lambda m: (m.completed_at is not None, m.completed_at or datetime.min),
        reverse=True,
    )

    buckets.overdue = buckets.overdue[:prefs.overdue_milestone_limit]
    buckets.due_this_week = buckets.due_this_week[:prefs.upcoming_milestone_limit]
    buckets.recently_completed = completed[:prefs.completed_milestone_limit]
    return buckets
