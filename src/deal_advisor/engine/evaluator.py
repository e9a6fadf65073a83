"""
Suggestion engine: one parameterized evaluator for every suggestion view.

Evaluation pass:
1. Select deals for the scope (every deal, or the one requested)
2. Drop archived and on-hold deals
3. Run each enabled rule for the scope against each remaining deal
4. Rank by priority (stable) and count

The engine performs no I/O and mutates nothing. Calling evaluate() twice
with the same snapshot, preferences and instant yields equal results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..errors import EvaluationError, ValidationError
from ..logging import EvaluationTimer, get_logger, logging_context
from ..models.deal import Deal, Milestone
from ..models.preferences import Preferences
from ..models.suggestion import Suggestion, SuggestionCounts
from ..snapshot import DealSnapshot
from ..utils import ensure_utc, utcnow
from .ranking import count_suggestions, rank
from .rules import EvaluationScope, RuleContext, rules_for

logger = get_logger(__name__)


@dataclass
class EvaluationResult:
    """Ranked suggestions plus bookkeeping for one evaluation pass."""

    scope: EvaluationScope
    evaluated_at: datetime
    suggestions: list[Suggestion] = field(default_factory=list)
    counts: SuggestionCounts = field(default_factory=SuggestionCounts)
    deals_evaluated: int = 0
    deals_excluded: int = 0
    rules_run: list[str] = field(default_factory=list)
    timing: dict[str, Any] = field(default_factory=dict)

    @property
    def suggestion_ids(self) -> list[str]:
        return [s.id for s in self.suggestions]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'scope': self.scope.value,
            'evaluated_at': self.evaluated_at.isoformat(),
            'suggestions': [s.model_dump(mode='json') for s in self.suggestions],
            'counts': self.counts.model_dump(mode='json'),
            'deals_evaluated': self.deals_evaluated,
            'deals_excluded': self.deals_excluded,
            'rules_run': self.rules_run,
            'timing': self.timing,
        }


class SuggestionEngine:
    """
    Derives ranked suggestions from a deal snapshot.

    Usage:
        engine = SuggestionEngine(preferences)
        result = engine.evaluate(snapshot)                      # every deal
        result = engine.evaluate(snapshot, EvaluationScope.SINGLE_DEAL, deal_id='d1')
    """

    def __init__(self, preferences: Preferences | None = None):
        self.preferences = preferences or Preferences()

    def evaluate(
        self,
        snapshot: DealSnapshot,
        scope: EvaluationScope = EvaluationScope.ALL_DEALS,
        deal_id: str | None = None,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """
        Run one evaluation pass.

        Args:
            snapshot: Deals and milestones to scan
            scope: ALL_DEALS or SINGLE_DEAL
            deal_id: Required for SINGLE_DEAL
            now: Evaluation instant (defaults to current UTC time)

        Returns:
            EvaluationResult with suggestions sorted high → low

        Raises:
            ValidationError: SINGLE_DEAL without a deal_id
            DealNotFoundError: deal_id not present in the snapshot
            EvaluationError: a rule failed unexpectedly
        """
        now = ensure_utc(now) if now is not None else utcnow()
        timer = EvaluationTimer()
        log = logger.bind(scope=scope.value, deal_id=deal_id)

        if scope is EvaluationScope.SINGLE_DEAL:
            if not deal_id:
                raise ValidationError(
                    'deal_id is required for single-deal evaluation',
                    context={'scope': scope.value},
                )
            snapshot = snapshot.only(deal_id)

        result = EvaluationResult(scope=scope, evaluated_at=now)
        rules = rules_for(scope, self.preferences)
        result.rules_run = [rule.name.value for rule in rules]

        emitted: list[Suggestion] = []
        with timer.stage('rules'):
            for deal in snapshot.deals:
                if deal.is_excluded:
                    result.deals_excluded += 1
                    continue
                result.deals_evaluated += 1
                emitted.extend(
                    self._evaluate_deal(deal, snapshot.milestones_for(deal.id), rules, now)
                )

        with timer.stage('ranking'):
            result.suggestions = rank(emitted)
            result.counts = count_suggestions(result.suggestions)

        result.timing = timer.summary()
        log.debug(
            'engine.evaluate.complete',
            deals_evaluated=result.deals_evaluated,
            deals_excluded=result.deals_excluded,
            suggestions=result.counts.total,
            high=result.counts.high,
            total_ms=result.timing['total_ms'],
        )
        return result

    def _evaluate_deal(
        self,
        deal: Deal,
        milestones: tuple[Milestone, ...],
        rules,
        now: datetime,
    ) -> list[Suggestion]:
        ctx = RuleContext(
            deal=deal,
            milestones=milestones,
            preferences=self.preferences,
            now=now,
        )
        out: list[Suggestion] = []
        with logging_context(deal_id=deal.id):
            for rule in rules:
                try:
                    out.extend(rule.evaluate(ctx))
                except Exception as e:
                    logger.error('engine.rule.failed', rule=rule.name.value, error=str(e))
                    raise EvaluationError(
                        f"Rule {rule.name.value} failed on deal {deal.id}: {e}",
                        context={
                            'rule': rule.name.value,
                            'deal_id': deal.id,
                            'error_type': type(e).__name__,
                        },
                    ) from e
        return out


# =============================================================================
# Views
# =============================================================================


def suggest_for_all_deals(
    snapshot: DealSnapshot,
    preferences: Preferences | None = None,
    now: datetime | None = None,
) -> EvaluationResult:
    """Dashboard view: every active deal, shared rules only."""
    return SuggestionEngine(preferences).evaluate(snapshot, EvaluationScope.ALL_DEALS, now=now)


def suggest_for_deal(
    snapshot: DealSnapshot,
    deal_id: str,
    preferences: Preferences | None = None,
    now: datetime | None = None,
) -> EvaluationResult:
    """Deal page view: one deal, shared rules plus the contextual ones."""
    return SuggestionEngine(preferences).evaluate(
        snapshot, EvaluationScope.SINGLE_DEAL, deal_id=deal_id, now=now
    )
