"""
User preferences read by the engine.

Preferences are an injected value object: the engine reads them and never
writes them. Loading and saving happens at the application boundary
(see deal_advisor.store).

Every threshold the rules use lives here, so none of the day counts or
group sizes are hardcoded in the rules themselves.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import Config
from .suggestion import RuleName


class SuggestionToggles(BaseModel):
    """One switch per rule. A disabled rule emits nothing."""

    model_config = ConfigDict(populate_by_name=True)

    stale_lenders: bool = True
    overdue_milestones: bool = True
    due_today_milestones: bool = True
    due_tomorrow_milestones: bool = True
    term_sheet_opportunities: bool = True
    stale_deals: bool = True
    stuck_lenders: bool = True
    lenders_without_notes: bool = True
    no_milestones: bool = True
    all_milestones_complete: bool = True

    def is_enabled(self, rule: RuleName) -> bool:
        return getattr(self, _TOGGLE_FOR_RULE[rule])

    def disable(self, *rules: RuleName) -> 'SuggestionToggles':
        """Copy with the given rules switched off."""
        return self.model_copy(update={_TOGGLE_FOR_RULE[r]: False for r in rules})

    def only(self, *rules: RuleName) -> 'SuggestionToggles':
        """Copy with only the given rules switched on."""
        keep = {_TOGGLE_FOR_RULE[r] for r in rules}
        return self.model_copy(
            update={name: name in keep for name in _TOGGLE_FOR_RULE.values()}
        )


_TOGGLE_FOR_RULE: dict[RuleName, str] = {
    RuleName.STALE_LENDER: 'stale_lenders',
    RuleName.OVERDUE_MILESTONE: 'overdue_milestones',
    RuleName.DUE_TODAY: 'due_today_milestones',
    RuleName.DUE_TOMORROW: 'due_tomorrow_milestones',
    RuleName.TERM_SHEET: 'term_sheet_opportunities',
    RuleName.STALE_DEAL: 'stale_deals',
    RuleName.STUCK_LENDERS: 'stuck_lenders',
    RuleName.LENDERS_WITHOUT_NOTES: 'lenders_without_notes',
    RuleName.NO_MILESTONES: 'no_milestones',
    RuleName.ALL_MILESTONES_DONE: 'all_milestones_complete',
}


class Preferences(BaseModel):
    """
    Rule toggles plus every numeric threshold used by the engine.

    Two-tier thresholds come in pairs: the lower value produces a medium
    priority nudge, the higher value escalates to high priority.
    """

    suggestions: SuggestionToggles = Field(default_factory=SuggestionToggles)

    # Stale lender: medium at yellow, high at red
    lender_update_yellow_days: int = Field(default=Config.LENDER_UPDATE_YELLOW_DAYS, ge=1)
    lender_update_red_days: int = Field(default=Config.LENDER_UPDATE_RED_DAYS, ge=1)

    # Stale deal: medium at stale, high at urgent
    stale_deal_days: int = Field(default=Config.STALE_DEAL_DAYS, ge=1)
    stale_deal_urgent_days: int = Field(default=Config.STALE_DEAL_URGENT_DAYS, ge=1)

    # Overdue milestone escalates to high after this many days
    overdue_milestone_urgent_days: int = Field(default=7, ge=1)

    # Stuck lenders: early-stage lenders idle this long, grouped once this many
    stuck_lender_days: int = Field(default=10, ge=1)
    stuck_lender_min_count: int = Field(default=2, ge=1)

    # Alerts widget
    alert_critical_days: int = Field(default=Config.ALERT_CRITICAL_DAYS, ge=1)

    # Display caps
    suggestion_display_limit: int = Field(default=3, ge=1)
    alert_display_limit: int = Field(default=8, ge=1)
    overdue_milestone_limit: int = Field(default=5, ge=1)
    upcoming_milestone_limit: int = Field(default=5, ge=1)
    completed_milestone_limit: int = Field(default=3, ge=1)

    @model_validator(mode='after')
    def _check_tiers(self) -> 'Preferences':
        if self.lender_update_red_days <= self.lender_update_yellow_days:
            raise ValueError('lender_update_red_days must be greater than lender_update_yellow_days')
        if self.stale_deal_urgent_days <= self.stale_deal_days:
            raise ValueError('stale_deal_urgent_days must be greater than stale_deal_days')
        return self
