"""
Entity snapshot provider.

A DealSnapshot is the immutable input to one evaluation pass: the deals
(with their lenders) plus milestones grouped by deal id. The engine never
fetches data; callers build a snapshot from whatever the data layer
already loaded.

from_rows() accepts raw relational rows (deals, deal_lenders, milestones)
and assembles them. Malformed rows are skipped, logged and reported in
the returned PartialSuccessResult instead of failing the whole load.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import DealNotFoundError, PartialSuccessResult, wrap_row_error
from .logging import get_logger
from .models.deal import Deal, Lender, Milestone

logger = get_logger(__name__)


@dataclass(frozen=True)
class DealSnapshot:
    """Deals and their milestones, as seen at one instant."""

    deals: tuple[Deal, ...] = ()
    milestones_by_deal: Mapping[str, tuple[Milestone, ...]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        deals: Iterable[Deal],
        milestones_by_deal: Mapping[str, Iterable[Milestone]] | None = None,
    ) -> 'DealSnapshot':
        """Freeze model objects into a snapshot."""
        return cls(
            deals=tuple(deals),
            milestones_by_deal={
                deal_id: tuple(items) for deal_id, items in (milestones_by_deal or {}).items()
            },
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'DealSnapshot':
        """
        Validate a JSON-shaped payload: {"deals": [...], "milestonesByDeal": {...}}.

        Unlike from_rows(), any malformed entity raises pydantic's ValidationError.
        """
        deals = [Deal.model_validate(d) for d in payload.get('deals', [])]
        raw_milestones = payload.get('milestonesByDeal', payload.get('milestones_by_deal', {}))
        milestones = {
            str(deal_id): [Milestone.model_validate(m) for m in items]
            for deal_id, items in (raw_milestones or {}).items()
        }
        return cls.build(deals, milestones)

    @classmethod
    def from_rows(
        cls,
        deal_rows: Iterable[Mapping[str, Any]],
        lender_rows: Iterable[Mapping[str, Any]] = (),
        milestone_rows: Iterable[Mapping[str, Any]] = (),
    ) -> tuple['DealSnapshot', PartialSuccessResult]:
        """
        Assemble a snapshot from flat relational rows.

        Lender and milestone rows are attached to their deal through a
        `deal_id` (or `dealId`) column. Rows pointing at unknown deals are
        kept out of the snapshot and reported as failures.

        Returns:
            (snapshot, load report)
        """
        report = PartialSuccessResult()

        lenders_by_deal: dict[str | None, list[Lender]] = {}
        for row in lender_rows:
            lender = _parse_row(Lender, 'lender', row, report, record_success=False)
            if lender is not None:
                lenders_by_deal.setdefault(_deal_ref(row), []).append(lender)

        deals: list[Deal] = []
        for row in deal_rows:
            merged = dict(row)
            deal_id = str(merged['id']) if merged.get('id') is not None else None
            attached = lenders_by_deal.get(deal_id, []) if deal_id is not None else []
            if attached:
                merged['lenders'] = [*merged.get('lenders', []), *attached]
            deal = _parse_row(Deal, 'deal', merged, report)
            if deal is None:
                continue
            deals.append(deal)
            for lender in lenders_by_deal.pop(deal_id, []):
                report.add_success(item_id=lender.id, data={'kind': 'lender'})

        # Whatever is left never found a (valid) deal row
        for deal_id, orphans in lenders_by_deal.items():
            for lender in orphans:
                report.add_failure(
                    wrap_row_error(ValueError(f'unknown deal {deal_id}'), 'lender'),
                    item_id=lender.id,
                )

        known = {deal.id for deal in deals}
        milestones: dict[str, list[Milestone]] = {}
        for row in milestone_rows:
            milestone = _parse_row(Milestone, 'milestone', row, report, record_success=False)
            if milestone is None:
                continue
            if milestone.deal_id not in known:
                report.add_failure(
                    wrap_row_error(ValueError(f'unknown deal {milestone.deal_id}'), 'milestone'),
                    item_id=milestone.id,
                )
                continue
            report.add_success(item_id=milestone.id, data={'kind': 'milestone'})
            milestones.setdefault(milestone.deal_id, []).append(milestone)

        if not report.all_succeeded:
            logger.warning(
                'snapshot.rows_skipped',
                skipped=report.failure_count,
                loaded=report.success_count,
            )

        return cls.build(deals, milestones), report

    def milestones_for(self, deal_id: str) -> tuple[Milestone, ...]:
        return tuple(self.milestones_by_deal.get(deal_id, ()))

    def get_deal(self, deal_id: str) -> Deal:
        for deal in self.deals:
            if deal.id == deal_id:
                return deal
        raise DealNotFoundError(
            f"Deal {deal_id} is not in the snapshot",
            context={'deal_id': deal_id, 'deal_count': len(self.deals)},
        )

    def only(self, deal_id: str) -> 'DealSnapshot':
        """Narrow the snapshot to a single deal."""
        deal = self.get_deal(deal_id)
        return DealSnapshot.build([deal], {deal_id: self.milestones_for(deal_id)})


# =============================================================================
# Row helpers
# =============================================================================


def _deal_ref(row: Mapping[str, Any]) -> str | None:
    value = row.get('deal_id', row.get('dealId'))
    return str(value) if value is not None else None


def _parse_row(
    model,
    kind: str,
    row: Mapping[str, Any],
    report: PartialSuccessResult,
    record_success: bool = True,
):
    item_id = str(row['id']) if row.get('id') is not None else None
    try:
        entity = model.model_validate(row)
    except PydanticValidationError as e:
        error = wrap_row_error(e, kind, context={'item_id': item_id})
        report.add_failure(error, item_id=item_id)
        logger.warning('snapshot.row_skipped', kind=kind, item_id=item_id, error=str(e))
        return None
    if record_success:
        report.add_success(item_id=item_id, data={'kind': kind})
    return entity
