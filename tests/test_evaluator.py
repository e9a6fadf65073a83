"""
Tests for the SuggestionEngine evaluation pass.

Tests cover:
- Idempotence across repeated evaluations
- Archived / on-hold exclusion
- Priority ordering and stable tie order
- Stale lender two-tier boundaries
- Milestone overdue / today / tomorrow
- Term sheet, stale deal and stuck lender rules
- Disabling a rule removes only that rule's output
- Single-deal (contextual) scope and its extra rules

Run with: pytest tests/test_evaluator.py -v
"""

import pytest

from conftest import NOW, ago, on
from deal_advisor.engine import EvaluationScope, SuggestionEngine, suggest_for_all_deals, suggest_for_deal
from deal_advisor.errors import DealNotFoundError, EvaluationError, ValidationError
from deal_advisor.models import Preferences, Priority, RuleName, SuggestionType
from deal_advisor.snapshot import DealSnapshot


def _evaluate(deals, milestones=None, preferences=None, **kwargs):
    snapshot = DealSnapshot.build(deals, milestones or {})
    return SuggestionEngine(preferences).evaluate(snapshot, now=NOW, **kwargs)


def _rules(result):
    return [s.rule for s in result.suggestions]


@pytest.fixture
def busy_snapshot(make_deal, make_lender, make_milestone):
    """Two active deals and one of each excluded status, exercising every shared rule."""
    alpha = make_deal(
        id='alpha',
        company='Alpha Logistics',
        updated_at=ago(15),
        lenders=[
            make_lender(id='l1', name='First Bank', updated_at=ago(8)),
            make_lender(id='l2', name='Harbor Credit', stage='Term Sheet'),
            make_lender(id='l3', name='Slow Capital', stage='Identified', updated_at=ago(12)),
            make_lender(id='l4', name='Quiet Partners', stage='Initial Outreach', updated_at=ago(11)),
        ],
    )
    beta = make_deal(id='beta', company='Beta Foods', updated_at=ago(11))
    archived = make_deal(id='gone', status='archived', updated_at=ago(40),
                         lenders=[make_lender(updated_at=ago(40))])
    paused = make_deal(id='paused', status='on-hold', updated_at=ago(40),
                       lenders=[make_lender(stage='Term Sheet')])
    milestones = {
        'alpha': [
            make_milestone(id='m_over', title='Send CIM', due_date=on(-9)),
            make_milestone(id='m_today', title='Lender call', due_date=on(0)),
        ],
        'beta': [make_milestone(id='m_tmrw', title='Collect financials', due_date=on(1))],
        'gone': [make_milestone(due_date=on(0))],
        'paused': [make_milestone(due_date=on(-3))],
    }
    return DealSnapshot.build([alpha, archived, beta, paused], milestones)


# =============================================================================
# Invariants
# =============================================================================


class TestInvariants:
    def test_idempotent(self, busy_snapshot):
        engine = SuggestionEngine(Preferences())
        first = engine.evaluate(busy_snapshot, now=NOW)
        second = engine.evaluate(busy_snapshot, now=NOW)

        assert first.suggestions == second.suggestions
        assert [s.model_dump() for s in first.suggestions] == [
            s.model_dump() for s in second.suggestions
        ]

    def test_excluded_deals_never_referenced(self, busy_snapshot):
        result = SuggestionEngine().evaluate(busy_snapshot, now=NOW)

        referenced = {s.deal_id for s in result.suggestions}
        assert 'gone' not in referenced
        assert 'paused' not in referenced
        assert result.deals_excluded == 2
        assert result.deals_evaluated == 2

    def test_priority_ordering(self, busy_snapshot):
        result = SuggestionEngine().evaluate(busy_snapshot, now=NOW)

        ranks = [s.priority.rank for s in result.suggestions]
        assert ranks == sorted(ranks)
        assert result.suggestions[0].priority == Priority.HIGH

    def test_ties_keep_emission_order(self, busy_snapshot):
        result = SuggestionEngine().evaluate(busy_snapshot, now=NOW)

        high_ids = [s.id for s in result.suggestions if s.priority == Priority.HIGH]
        assert high_ids == [
            'stale-lender-alpha-l1',
            'stale-lender-alpha-l3',
            'stale-lender-alpha-l4',
            'overdue-milestone-alpha-m_over',
            'due-today-alpha-m_today',
            'term-sheet-alpha',
            'stale-deal-alpha',
        ]

    def test_ids_are_deterministic_compositions(self, busy_snapshot):
        result = SuggestionEngine().evaluate(busy_snapshot, now=NOW)

        assert set(result.suggestion_ids) == {
            'stale-lender-alpha-l1',
            'stale-lender-alpha-l3',
            'stale-lender-alpha-l4',
            'overdue-milestone-alpha-m_over',
            'due-today-alpha-m_today',
            'term-sheet-alpha',
            'stale-deal-alpha',
            'stuck-lenders-alpha',
            'due-tomorrow-beta-m_tmrw',
            'stale-deal-beta',
        }

    def test_counts_match_suggestions(self, busy_snapshot):
        result = SuggestionEngine().evaluate(busy_snapshot, now=NOW)

        counts = result.counts
        assert counts.total == len(result.suggestions) == 10
        assert counts.high + counts.medium + counts.low == counts.total
        assert counts.by_type[SuggestionType.OPPORTUNITY] == 1
        assert counts.by_type[SuggestionType.REMINDER] == 2

    def test_empty_snapshot(self):
        result = SuggestionEngine().evaluate(DealSnapshot(), now=NOW)

        assert result.suggestions == []
        assert result.counts.total == 0


# =============================================================================
# Stale lenders
# =============================================================================


class TestStaleLender:
    @pytest.mark.parametrize(
        'days, expected',
        [(7, Priority.HIGH), (6, Priority.MEDIUM), (5, Priority.MEDIUM), (4, None)],
    )
    def test_default_two_tier_boundaries(self, make_deal, make_lender, days, expected):
        deal = make_deal(lenders=[make_lender(updated_at=ago(days))])
        prefs = Preferences(suggestions=Preferences().suggestions.only(RuleName.STALE_LENDER))

        result = _evaluate([deal], preferences=prefs)

        if expected is None:
            assert result.suggestions == []
        else:
            assert len(result.suggestions) == 1
            assert result.suggestions[0].priority == expected
            assert result.suggestions[0].type == SuggestionType.WARNING

    def test_raised_yellow_threshold_silences_six_days(self, make_deal, make_lender):
        prefs = Preferences(lender_update_yellow_days=7, lender_update_red_days=10)
        six = make_deal(lenders=[make_lender(updated_at=ago(6))])
        seven = make_deal(lenders=[make_lender(updated_at=ago(7))])

        result = _evaluate([six, seven], preferences=prefs)
        stale = [s for s in result.suggestions if s.rule == RuleName.STALE_LENDER]

        assert [s.deal_id for s in stale] == [seven.id]
        assert stale[0].priority == Priority.MEDIUM

    def test_partial_day_truncates(self, make_deal, make_lender):
        deal = make_deal(lenders=[make_lender(updated_at=ago(6.9))])

        result = _evaluate([deal])

        assert result.suggestions[0].priority == Priority.MEDIUM
        assert result.suggestions[0].description.startswith('6 days')

    @pytest.mark.parametrize('stage', ['Closed', 'Pass'])
    def test_inactive_stages_ignored(self, make_deal, make_lender, stage):
        deal = make_deal(lenders=[make_lender(stage=stage, updated_at=ago(30))])

        assert _evaluate([deal]).suggestions == []

    def test_missing_timestamp_does_not_fire(self, make_deal, make_lender):
        deal = make_deal(lenders=[make_lender(updated_at=None)])

        assert _evaluate([deal]).suggestions == []

    def test_high_message(self, make_deal, make_lender):
        deal = make_deal(company='Acme', lenders=[make_lender(id='l9', name='First Bank', updated_at=ago(9))])

        s = _evaluate([deal]).suggestions[0]

        assert s.title == "First Bank hasn't been updated in 9 days"
        assert s.description == 'On deal "Acme"'
        assert s.action_label == 'Update Lender'
        assert s.id == f'stale-lender-{deal.id}-l9'
        assert s.action_data == {'lender_id': 'l9'}


# =============================================================================
# Milestones
# =============================================================================


class TestMilestoneRules:
    def test_due_today_enabled(self, make_deal, make_milestone):
        deal = make_deal()
        ms = make_milestone(title='Sign NDA', due_date=on(0))

        result = _evaluate([deal], {deal.id: [ms]})

        assert len(result.suggestions) == 1
        s = result.suggestions[0]
        assert s.rule == RuleName.DUE_TODAY
        assert s.type == SuggestionType.REMINDER
        assert s.priority == Priority.HIGH
        assert s.title == '"Sign NDA" is due today'

    def test_due_today_disabled(self, make_deal, make_milestone):
        deal = make_deal()
        prefs = Preferences(suggestions=Preferences().suggestions.disable(RuleName.DUE_TODAY))

        result = _evaluate([deal], {deal.id: [make_milestone(due_date=on(0))]}, preferences=prefs)

        assert result.suggestions == []

    def test_due_tomorrow_is_medium(self, make_deal, make_milestone):
        deal = make_deal()

        result = _evaluate([deal], {deal.id: [make_milestone(due_date=on(1))]})

        assert [(s.rule, s.priority) for s in result.suggestions] == [
            (RuleName.DUE_TOMORROW, Priority.MEDIUM)
        ]

    @pytest.mark.parametrize(
        'overdue, priority, title_suffix',
        [(1, Priority.MEDIUM, '1 day overdue'), (6, Priority.MEDIUM, '6 days overdue'),
         (7, Priority.HIGH, '7 days overdue')],
    )
    def test_overdue_tiers(self, make_deal, make_milestone, overdue, priority, title_suffix):
        deal = make_deal()

        result = _evaluate([deal], {deal.id: [make_milestone(due_date=on(-overdue))]})

        s = result.suggestions[0]
        assert s.rule == RuleName.OVERDUE_MILESTONE
        assert s.priority == priority
        assert s.title.endswith(title_suffix)

    def test_completed_and_undated_ignored(self, make_deal, make_milestone):
        deal = make_deal()
        milestones = [
            make_milestone(due_date=on(-3), completed=True),
            make_milestone(due_date=None),
            make_milestone(due_date=on(5)),
        ]

        assert _evaluate([deal], {deal.id: milestones}).suggestions == []


# =============================================================================
# Deal-level rules
# =============================================================================


class TestDealRules:
    def test_term_sheet_single_grouped_suggestion(self, make_deal, make_lender):
        deal = make_deal(company='Acme', lenders=[
            make_lender(name='A Bank', stage='Term Sheet'),
            make_lender(name='B Bank', stage='Term Sheet'),
        ])

        result = _evaluate([deal])

        assert len(result.suggestions) == 1
        s = result.suggestions[0]
        assert s.id == f'term-sheet-{deal.id}'
        assert s.type == SuggestionType.OPPORTUNITY
        assert s.priority == Priority.HIGH
        assert s.title == '2 lenders at Term Sheet'
        assert s.description == 'Acme - A Bank, B Bank'

    def test_term_sheet_singular_title(self, make_deal, make_lender):
        deal = make_deal(lenders=[make_lender(stage='Term Sheet')])

        assert _evaluate([deal]).suggestions[0].title == '1 lender at Term Sheet'

    @pytest.mark.parametrize(
        'days, expected',
        [(9, None), (10, Priority.MEDIUM), (13, Priority.MEDIUM), (14, Priority.HIGH)],
    )
    def test_stale_deal_tiers(self, make_deal, days, expected):
        result = _evaluate([make_deal(updated_at=ago(days))])

        if expected is None:
            assert result.suggestions == []
        else:
            assert result.suggestions[0].rule == RuleName.STALE_DEAL
            assert result.suggestions[0].priority == expected
            assert result.suggestions[0].title == f'No updates in {days} days'

    def test_stale_deal_without_timestamp(self, make_deal):
        assert _evaluate([make_deal(updated_at=None)]).suggestions == []


class TestStuckLenders:
    def _only_stuck(self):
        return Preferences(suggestions=Preferences().suggestions.only(RuleName.STUCK_LENDERS))

    def test_two_stuck_lenders_grouped_once(self, make_deal, make_lender):
        deal = make_deal(lenders=[
            make_lender(stage='Identified', updated_at=ago(10)),
            make_lender(stage='Initial Outreach', updated_at=ago(14)),
        ])

        result = _evaluate([deal], preferences=self._only_stuck())

        assert len(result.suggestions) == 1
        s = result.suggestions[0]
        assert s.id == f'stuck-lenders-{deal.id}'
        assert s.type == SuggestionType.ACTION
        assert s.priority == Priority.MEDIUM
        assert s.title == '2 lenders stuck in early stages'

    def test_single_stuck_lender_does_not_fire(self, make_deal, make_lender):
        deal = make_deal(lenders=[
            make_lender(stage='Identified', updated_at=ago(20)),
            make_lender(stage='Term Sheet', updated_at=ago(20)),
        ])

        assert _evaluate([deal], preferences=self._only_stuck()).suggestions == []

    def test_recent_early_stage_lender_not_counted(self, make_deal, make_lender):
        deal = make_deal(lenders=[
            make_lender(stage='Identified', updated_at=ago(10)),
            make_lender(stage='Identified', updated_at=ago(9)),
        ])

        assert _evaluate([deal], preferences=self._only_stuck()).suggestions == []

    def test_min_count_is_configurable(self, make_deal, make_lender):
        deal = make_deal(lenders=[make_lender(stage='Identified', updated_at=ago(10))])
        prefs = self._only_stuck().model_copy(update={'stuck_lender_min_count': 1})

        result = _evaluate([deal], preferences=prefs)

        assert result.suggestions[0].title == '1 lender stuck in early stages'


# =============================================================================
# Toggles
# =============================================================================


class TestRuleToggles:
    @pytest.mark.parametrize('rule', [
        RuleName.STALE_LENDER,
        RuleName.OVERDUE_MILESTONE,
        RuleName.DUE_TODAY,
        RuleName.DUE_TOMORROW,
        RuleName.TERM_SHEET,
        RuleName.STALE_DEAL,
        RuleName.STUCK_LENDERS,
    ])
    def test_disabling_one_rule_leaves_others_unchanged(self, busy_snapshot, rule):
        baseline = SuggestionEngine(Preferences()).evaluate(busy_snapshot, now=NOW)
        prefs = Preferences(suggestions=Preferences().suggestions.disable(rule))

        result = SuggestionEngine(prefs).evaluate(busy_snapshot, now=NOW)

        assert rule in _rules(baseline)
        assert rule not in _rules(result)
        assert result.suggestions == [s for s in baseline.suggestions if s.rule != rule]
        assert rule.value not in result.rules_run


# =============================================================================
# Single-deal scope
# =============================================================================


class TestSingleDealScope:
    def test_requires_deal_id(self, busy_snapshot):
        with pytest.raises(ValidationError):
            SuggestionEngine().evaluate(busy_snapshot, EvaluationScope.SINGLE_DEAL, now=NOW)

    def test_unknown_deal(self, busy_snapshot):
        with pytest.raises(DealNotFoundError) as exc_info:
            suggest_for_deal(busy_snapshot, 'nope', now=NOW)
        assert exc_info.value.context['deal_id'] == 'nope'

    def test_excluded_deal_yields_nothing(self, busy_snapshot):
        result = suggest_for_deal(busy_snapshot, 'paused', now=NOW)

        assert result.suggestions == []
        assert result.deals_excluded == 1

    def test_matches_all_deals_ids_for_shared_rules(self, busy_snapshot):
        everything = suggest_for_all_deals(busy_snapshot, now=NOW)
        single = suggest_for_deal(busy_snapshot, 'beta', now=NOW)

        shared = [s for s in single.suggestions if s.rule in {r for r in _rules(everything)}]
        assert [s.id for s in shared] == [s.id for s in everything.suggestions if s.deal_id == 'beta']

    def test_lenders_without_notes(self, make_deal, make_lender):
        lenders = [
            make_lender(name=f'Bank {i}', stage='Due Diligence', notes=None) for i in range(5)
        ] + [
            make_lender(name='Noted', stage='Due Diligence', notes='Spoke Tuesday'),
            make_lender(name='New', stage='Identified'),
        ]
        deal = make_deal(lenders=lenders)

        result = _evaluate([deal], {deal.id: []}, scope=EvaluationScope.SINGLE_DEAL, deal_id=deal.id)
        notes = [s for s in result.suggestions if s.rule == RuleName.LENDERS_WITHOUT_NOTES]

        assert len(notes) == 1
        assert notes[0].priority == Priority.LOW
        assert notes[0].title == '5 lenders have no notes'
        assert notes[0].description == (
            'Add notes to track conversations with Bank 0, Bank 1, Bank 2 and 2 more.'
        )

    def test_no_milestones(self, make_deal):
        deal = make_deal()

        result = suggest_for_deal(DealSnapshot.build([deal]), deal.id, now=NOW)

        assert _rules(result) == [RuleName.NO_MILESTONES]
        assert result.suggestions[0].action_data == {'tab': 'deal-management'}

    def test_all_milestones_done(self, make_deal, make_milestone):
        deal = make_deal()
        milestones = {deal.id: [make_milestone(completed=True), make_milestone(completed=True)]}

        result = suggest_for_deal(DealSnapshot.build([deal], milestones), deal.id, now=NOW)

        assert _rules(result) == [RuleName.ALL_MILESTONES_DONE]
        assert result.suggestions[0].priority == Priority.MEDIUM

    def test_contextual_rules_absent_from_all_deals(self, make_deal):
        deal = make_deal()

        result = suggest_for_all_deals(DealSnapshot.build([deal]), now=NOW)

        assert result.suggestions == []


class TestRuleFailure:
    def test_rule_exception_wrapped(self, make_deal, monkeypatch):
        from deal_advisor.engine import rules as rules_module

        def boom(ctx):
            raise RuntimeError('bad data')

        monkeypatch.setattr(
            rules_module,
            'RULES',
            (rules_module.Rule(RuleName.STALE_DEAL, boom, frozenset(EvaluationScope)),),
        )

        with pytest.raises(EvaluationError) as exc_info:
            _evaluate([make_deal(id='d1')])
        assert exc_info.value.context['rule'] == 'stale-deal'
        assert exc_info.value.context['deal_id'] == 'd1'
        assert isinstance(exc_info.value.__cause__, RuntimeError)
