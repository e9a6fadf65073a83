"""
Deal Advisor

Derives ranked suggestions and alerts (stale lenders, overdue milestones,
term sheet opportunities, stuck lenders, ...) from an in-memory snapshot
of a lending deal pipeline.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .engine import (
    EvaluationResult,
    EvaluationScope,
    SuggestionEngine,
    bucket_milestones,
    derive_alerts,
    suggest_for_all_deals,
    suggest_for_deal,
)
from .snapshot import DealSnapshot
from .store import PreferencesStore
from .models import (
    Alert,
    Deal,
    DealStatus,
    Lender,
    Milestone,
    Preferences,
    Priority,
    RuleName,
    Suggestion,
    SuggestionToggles,
    SuggestionType,
)
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    EvaluationTimer,
)
from .errors import (
    DealAdvisorError,
    DealNotFoundError,
    EvaluationError,
    PartialSuccessResult,
    PreferencesError,
    SnapshotError,
    ValidationError,
)

__all__ = [
    # Version
    '__version__',
    # Engine
    'SuggestionEngine',
    'EvaluationResult',
    'EvaluationScope',
    'suggest_for_all_deals',
    'suggest_for_deal',
    'derive_alerts',
    'bucket_milestones',
    # Snapshot / storage
    'DealSnapshot',
    'PreferencesStore',
    # Models
    'Alert',
    'Deal',
    'DealStatus',
    'Lender',
    'Milestone',
    'Preferences',
    'Priority',
    'RuleName',
    'Suggestion',
    'SuggestionToggles',
    'SuggestionType',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'EvaluationTimer',
    # Errors
    'DealAdvisorError',
    'DealNotFoundError',
    'EvaluationError',
    'PartialSuccessResult',
    'PreferencesError',
    'SnapshotError',
    'ValidationError',
]
