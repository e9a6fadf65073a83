"""
Suggestion and alert derivation engine.

Components:
- rules: the named rules and the scope each runs in
- evaluator: SuggestionEngine, the single evaluator behind every view
- ranking: priority ordering, counts, filtering and truncation
- alerts: stale deal / stale lender widget
- milestones: overdue / due this week / recently completed widget
"""

from .alerts import derive_alerts
from .evaluator import (
    EvaluationResult,
    SuggestionEngine,
    suggest_for_all_deals,
    suggest_for_deal,
)
from .milestones import MilestoneBuckets, bucket_milestones
from .ranking import (
    DisplayPage,
    count_suggestions,
    filter_visible,
    group_by_type,
    priority_rank,
    rank,
    truncate,
)
from .rules import RULES, EvaluationScope, Rule, RuleContext, rules_for

__all__ = [
    'SuggestionEngine',
    'EvaluationResult',
    'EvaluationScope',
    'suggest_for_all_deals',
    'suggest_for_deal',
    'RULES',
    'Rule',
    'RuleContext',
    'rules_for',
    'DisplayPage',
    'count_suggestions',
    'filter_visible',
    'group_by_type',
    'priority_rank',
    'rank',
    'truncate',
    'derive_alerts',
    'MilestoneBuckets',
    'bucket_milestones',
]
