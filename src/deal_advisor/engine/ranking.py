"""
Ranking, counting and display truncation for suggestion lists.

Ordering is by priority rank only (high, medium, low). Python's sort is
stable, so suggestions sharing a priority keep their emission order:
deal input order, then rule order, then lender/milestone order.
"""

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from ..models.suggestion import Priority, Suggestion, SuggestionCounts, SuggestionType

T = TypeVar('T')


def priority_rank(priority: Priority) -> int:
    return priority.rank


def rank(suggestions: Iterable[Suggestion]) -> list[Suggestion]:
    """Stable ascending sort by priority rank."""
    return sorted(suggestions, key=lambda s: s.priority.rank)


def count_suggestions(suggestions: Sequence[Suggestion]) -> SuggestionCounts:
    by_priority = {p: 0 for p in Priority}
    by_type = {t: 0 for t in SuggestionType}
    for s in suggestions:
        by_priority[s.priority] += 1
        by_type[s.type] += 1
    return SuggestionCounts(
        total=len(suggestions),
        high=by_priority[Priority.HIGH],
        medium=by_priority[Priority.MEDIUM],
        low=by_priority[Priority.LOW],
        by_type=by_type,
    )


def filter_visible(
    suggestions: Iterable[Suggestion],
    dismissed_ids: Collection[str] = (),
    type_filter: SuggestionType | None = None,
    priority_filter: Priority | None = None,
) -> list[Suggestion]:
    """Drop dismissed suggestions and apply the optional type/priority filters."""
    dismissed = set(dismissed_ids)
    return [
        s for s in suggestions
        if s.id not in dismissed
        and (type_filter is None or s.type == type_filter)
        and (priority_filter is None or s.priority == priority_filter)
    ]


@dataclass(frozen=True)
class DisplayPage:
    """The first `limit` items of a list, plus whether more were cut."""

    items: list
    total: int

    @property
    def has_more(self) -> bool:
        return self.total > len(self.items)

    @property
    def hidden_count(self) -> int:
        return self.total - len(self.items)


def truncate(items: Sequence[T], limit: int) -> DisplayPage:
    if limit < 0:
        raise ValueError(f'limit must be non-negative, got {limit}')
    return DisplayPage(items=list(items[:limit]), total=len(items))


def group_by_type(suggestions: Iterable[Suggestion]) -> dict[SuggestionType, list[Suggestion]]:
    """Bucket by type; every type is present, order inside a bucket is preserved."""
    groups: dict[SuggestionType, list[Suggestion]] = {t: [] for t in SuggestionType}
    for s in suggestions:
        groups[s.type].append(s)
    return groups
