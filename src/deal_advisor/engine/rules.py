"""
Suggestion rules.

Each rule is a pure function of one deal, that deal's milestones, the
user's preferences and the evaluation instant. A rule returns zero or more
suggestions and never raises on missing data: an absent timestamp or due
date simply means the rule does not fire.

Rules are registered in RULES in emission order. Every rule declares the
scopes it runs in; the contextual single-deal view adds three rules that
only make sense when looking at one deal.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from ..models.deal import (
    UNWORKED_LENDER_STAGES,
    TERM_SHEET_STAGE,
    Deal,
    Milestone,
)
from ..models.preferences import Preferences
from ..models.suggestion import (
    ActionType,
    Priority,
    RuleName,
    Suggestion,
    SuggestionType,
    suggestion_id,
)
from ..utils import days_since, days_until


class EvaluationScope(str, Enum):
    """Which view is being computed."""

    ALL_DEALS = 'all-deals'
    SINGLE_DEAL = 'single-deal'


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at for one deal."""

    deal: Deal
    milestones: tuple[Milestone, ...]
    preferences: Preferences
    now: datetime

    @property
    def today(self) -> date:
        return self.now.date()

    def suggest(
        self,
        rule: RuleName,
        type: SuggestionType,
        priority: Priority,
        title: str,
        description: str,
        action_label: str | None = None,
        action_type: ActionType | None = None,
        entity_id: str | None = None,
        **action_data: str,
    ) -> Suggestion:
        return Suggestion(
            id=suggestion_id(rule, self.deal.id, entity_id),
            deal_id=self.deal.id,
            deal_name=self.deal.company,
            rule=rule,
            type=type,
            priority=priority,
            title=title,
            description=description,
            action_label=action_label,
            action_type=action_type,
            action_data=action_data,
        )


RuleFn = Callable[[RuleContext], list[Suggestion]]


@dataclass(frozen=True)
class Rule:
    name: RuleName
    evaluate: RuleFn
    scopes: frozenset[EvaluationScope]


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _open_milestones_due(ctx: RuleContext):
    """Yield (milestone, days until due) for incomplete milestones with a due date."""
    for milestone in ctx.milestones:
        if milestone.completed or milestone.due_date is None:
            continue
        yield milestone, days_until(milestone.due_date, ctx.today)


# =============================================================================
# Rules shared by every scope
# =============================================================================


def stale_lenders(ctx: RuleContext) -> list[Suggestion]:
    """Active lenders with no update for yellow days (medium) or red days (high)."""
    prefs = ctx.preferences
    company = ctx.deal.company
    out = []
    for lender in ctx.deal.lenders:
        if lender.is_inactive:
            continue
        days = days_since(lender.updated_at, ctx.now)
        if days is None or days < prefs.lender_update_yellow_days:
            continue
        if days >= prefs.lender_update_red_days:
            out.append(ctx.suggest(
                RuleName.STALE_LENDER,
                SuggestionType.WARNING,
                Priority.HIGH,
                title=f"{lender.name} hasn't been updated in {days} days",
                description=f'On deal "{company}"',
                action_label='Update Lender',
                action_type=ActionType.HIGHLIGHT,
                entity_id=lender.id,
                lender_id=lender.id,
            ))
        else:
            out.append(ctx.suggest(
                RuleName.STALE_LENDER,
                SuggestionType.WARNING,
                Priority.MEDIUM,
                title=f'{lender.name} needs attention',
                description=f'{days} days since last update on "{company}"',
                action_label='Review',
                action_type=ActionType.HIGHLIGHT,
                entity_id=lender.id,
                lender_id=lender.id,
            ))
    return out


def overdue_milestones(ctx: RuleContext) -> list[Suggestion]:
    """Incomplete milestones whose due date is before today."""
    out = []
    for milestone, days_left in _open_milestones_due(ctx):
        if days_left >= 0:
            continue
        overdue = -days_left
        urgent = overdue >= ctx.preferences.overdue_milestone_urgent_days
        out.append(ctx.suggest(
            RuleName.OVERDUE_MILESTONE,
            SuggestionType.WARNING,
            Priority.HIGH if urgent else Priority.MEDIUM,
            title=f'"{milestone.title}" is {overdue} {_plural(overdue, "day", "days")} overdue',
            description=f'On deal "{ctx.deal.company}"',
            action_label='Complete or Reschedule',
            action_type=ActionType.HIGHLIGHT,
            entity_id=milestone.id,
            milestone_id=milestone.id,
        ))
    return out


def milestones_due_today(ctx: RuleContext) -> list[Suggestion]:
    return [
        ctx.suggest(
            RuleName.DUE_TODAY,
            SuggestionType.REMINDER,
            Priority.HIGH,
            title=f'"{milestone.title}" is due today',
            description=f'On deal "{ctx.deal.company}"',
            action_label='Mark Complete',
            action_type=ActionType.HIGHLIGHT,
            entity_id=milestone.id,
            milestone_id=milestone.id,
        )
        for milestone, days_left in _open_milestones_due(ctx)
        if days_left == 0
    ]


def milestones_due_tomorrow(ctx: RuleContext) -> list[Suggestion]:
    return [
        ctx.suggest(
            RuleName.DUE_TOMORROW,
            SuggestionType.REMINDER,
            Priority.MEDIUM,
            title=f'"{milestone.title}" is due tomorrow',
            description=f'On deal "{ctx.deal.company}"',
            action_label='View',
            action_type=ActionType.HIGHLIGHT,
            entity_id=milestone.id,
            milestone_id=milestone.id,
        )
        for milestone, days_left in _open_milestones_due(ctx)
        if days_left == 1
    ]


def term_sheet_opportunity(ctx: RuleContext) -> list[Suggestion]:
    """One suggestion per deal with any lender at Term Sheet."""
    lenders = ctx.deal.lenders_in_stage(TERM_SHEET_STAGE)
    if not lenders:
        return []
    count = len(lenders)
    return [ctx.suggest(
        RuleName.TERM_SHEET,
        SuggestionType.OPPORTUNITY,
        Priority.HIGH,
        title=f'{count} {_plural(count, "lender", "lenders")} at Term Sheet',
        description=f'{ctx.deal.company} - {", ".join(l.name for l in lenders)}',
        action_label='Focus on closing',
        action_type=ActionType.NAVIGATE,
        tab='lenders',
    )]


def stale_deal(ctx: RuleContext) -> list[Suggestion]:
    prefs = ctx.preferences
    days = days_since(ctx.deal.updated_at, ctx.now)
    if days is None or days < prefs.stale_deal_days:
        return []
    return [ctx.suggest(
        RuleName.STALE_DEAL,
        SuggestionType.WARNING,
        Priority.HIGH if days >= prefs.stale_deal_urgent_days else Priority.MEDIUM,
        title=f'No updates in {days} days',
        description=f'"{ctx.deal.company}" needs attention',
        action_label='Review Deal',
        action_type=ActionType.PROMPT,
    )]


def stuck_lenders(ctx: RuleContext) -> list[Suggestion]:
    """Early-stage lenders idle for too long, grouped into a single suggestion."""
    prefs = ctx.preferences
    stuck = []
    for lender in ctx.deal.lenders:
        days = days_since(lender.updated_at, ctx.now)
        if lender.is_early_stage and days is not None and days >= prefs.stuck_lender_days:
            stuck.append(lender)
    if len(stuck) < prefs.stuck_lender_min_count:
        return []
    return [ctx.suggest(
        RuleName.STUCK_LENDERS,
        SuggestionType.ACTION,
        Priority.MEDIUM,
        title=f'{len(stuck)} {_plural(len(stuck), "lender", "lenders")} stuck in early stages',
        description=f'"{ctx.deal.company}" - consider follow-up or moving to pass',
        action_label='Review Lenders',
        action_type=ActionType.NAVIGATE,
        tab='lenders',
    )]


# =============================================================================
# Contextual (single-deal) rules
# =============================================================================


def lenders_without_notes(ctx: RuleContext) -> list[Suggestion]:
    lenders = [
        l for l in ctx.deal.lenders
        if not l.notes and l.stage not in UNWORKED_LENDER_STAGES
    ]
    if not lenders:
        return []
    count = len(lenders)
    names = ', '.join(l.name for l in lenders[:3])
    more = f' and {count - 3} more' if count > 3 else ''
    return [ctx.suggest(
        RuleName.LENDERS_WITHOUT_NOTES,
        SuggestionType.ACTION,
        Priority.LOW,
        title=f'{count} {_plural(count, "lender has", "lenders have")} no notes',
        description=f'Add notes to track conversations with {names}{more}.',
        action_label='Add Notes',
        action_type=ActionType.NAVIGATE,
        tab='lenders',
    )]


def no_milestones(ctx: RuleContext) -> list[Suggestion]:
    if ctx.milestones:
        return []
    return [ctx.suggest(
        RuleName.NO_MILESTONES,
        SuggestionType.ACTION,
        Priority.LOW,
        title='No milestones set for this deal',
        description='Adding milestones helps track progress and deadlines.',
        action_label='Add Milestone',
        action_type=ActionType.NAVIGATE,
        tab='deal-management',
    )]


def all_milestones_done(ctx: RuleContext) -> list[Suggestion]:
    if not ctx.milestones or not all(m.completed for m in ctx.milestones):
        return []
    return [ctx.suggest(
        RuleName.ALL_MILESTONES_DONE,
        SuggestionType.OPPORTUNITY,
        Priority.MEDIUM,
        title='All milestones completed!',
        description='Consider updating the deal stage or adding new milestones.',
        action_label='Review Deal',
        action_type=ActionType.NAVIGATE,
        tab='deal-info',
    )]


_EVERY_SCOPE = frozenset(EvaluationScope)
_SINGLE_DEAL = frozenset({EvaluationScope.SINGLE_DEAL})

RULES: tuple[Rule, ...] = (
    Rule(RuleName.STALE_LENDER, stale_lenders, _EVERY_SCOPE),
    Rule(RuleName.OVERDUE_MILESTONE, overdue_milestones, _EVERY_SCOPE),
    Rule(RuleName.DUE_TODAY, milestones_due_today, _EVERY_SCOPE),
    Rule(RuleName.DUE_TOMORROW, milestones_due_tomorrow, _EVERY_SCOPE),
    Rule(RuleName.TERM_SHEET, term_sheet_opportunity, _EVERY_SCOPE),
    Rule(RuleName.STALE_DEAL, stale_deal, _EVERY_SCOPE),
    Rule(RuleName.STUCK_LENDERS, stuck_lenders, _EVERY_SCOPE),
    Rule(RuleName.LENDERS_WITHOUT_NOTES, lenders_without_notes, _SINGLE_DEAL),
    Rule(RuleName.NO_MILESTONES, no_milestones, _SINGLE_DEAL),
    Rule(RuleName.ALL_MILESTONES_DONE, all_milestones_done, _SINGLE_DEAL),
)


def rules_for(scope: EvaluationScope, preferences: Preferences) -> list[Rule]:
    """Rules that run in `scope` and are switched on in `preferences`."""
    return [
        rule for rule in RULES
        if scope in rule.scopes and preferences.suggestions.is_enabled(rule.name)
    ]
