"""
Data models for the Deal Advisor engine.

Provides the read-only entity snapshot models (Deal, Lender, Milestone),
the engine's output models (Suggestion, Alert) and the Preferences value
object that configures the rules.
"""

from .deal import (
    Deal,
    DealStatus,
    Lender,
    Milestone,
    EARLY_LENDER_STAGES,
    INACTIVE_LENDER_STAGES,
    TERM_SHEET_STAGE,
)
from .preferences import Preferences, SuggestionToggles
from .suggestion import (
    ActionType,
    Alert,
    AlertKind,
    AlertSeverity,
    Priority,
    RuleName,
    Suggestion,
    SuggestionCounts,
    SuggestionType,
    suggestion_id,
)

__all__ = [
    # Entities
    'Deal',
    'DealStatus',
    'Lender',
    'Milestone',
    'EARLY_LENDER_STAGES',
    'INACTIVE_LENDER_STAGES',
    'TERM_SHEET_STAGE',
    # Preferences
    'Preferences',
    'SuggestionToggles',
    # Output
    'ActionType',
    'Alert',
    'AlertKind',
    'AlertSeverity',
    'Priority',
    'RuleName',
    'Suggestion',
    'SuggestionCounts',
    'SuggestionType',
    'suggestion_id',
]
