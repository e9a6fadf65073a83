"""
Alerts widget: stale deals and deals with stale lenders.

Unlike suggestions, alerts are aggregated per deal (at most one stale-deal
and one stale-lender alert each) and ordered by how long ago the deal or
its most neglected lender was touched.
"""

from collections.abc import Iterable
from datetime import datetime

from ..logging import get_logger
from ..models.deal import Deal
from ..models.preferences import Preferences
from ..models.suggestion import Alert, AlertKind, AlertSeverity
from ..utils import days_since, ensure_utc, utcnow

logger = get_logger(__name__)

ACTIVE_TRACKING_STATUS = 'active'


def _severity(days: int, preferences: Preferences) -> AlertSeverity:
    if days >= preferences.alert_critical_days:
        return AlertSeverity.DESTRUCTIVE
    return AlertSeverity.WARNING


def derive_alerts(
    deals: Iterable[Deal],
    preferences: Preferences | None = None,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[Alert]:
    """
    Build the alerts list.

    Args:
        deals: Deals to scan; archived and on-hold deals are skipped
        preferences: Thresholds (stale_deal_days, lender_update_yellow_days,
            alert_critical_days, alert_display_limit)
        now: Evaluation instant (defaults to current UTC time)
        limit: Override for preferences.alert_display_limit

    Returns:
        Alerts, most stale first, capped at the display limit
    """
    prefs = preferences or Preferences()
    now = ensure_utc(now) if now is not None else utcnow()
    cap = prefs.alert_display_limit if limit is None else limit

    alerts: list[Alert] = []
    for deal in deals:
        if deal.is_excluded:
            continue

        deal_days = days_since(deal.updated_at, now)
        if deal_days is not None and deal_days >= prefs.stale_deal_days:
            alerts.append(Alert(
                id=f'deal-{deal.id}',
                kind=AlertKind.STALE_DEAL,
                deal_id=deal.id,
                company=deal.company,
                description=f'Deal not updated in {deal_days} days',
                days_since_update=deal_days,
                severity=_severity(deal_days, prefs),
            ))

        stale_count = 0
        max_days = 0
        for lender in deal.lenders:
            if lender.tracking_status != ACTIVE_TRACKING_STATUS:
                continue
            days = days_since(lender.updated_at, now)
            if days is not None and days >= prefs.lender_update_yellow_days:
                stale_count += 1
                max_days = max(max_days, days)

        if stale_count:
            noun = 'lender' if stale_count == 1 else 'lenders'
            alerts.append(Alert(
                id=f'lender-{deal.id}',
                kind=AlertKind.STALE_LENDER,
                deal_id=deal.id,
                company=deal.company,
                description=f'{stale_count} {noun} need update',
                days_since_update=max_days,
                severity=_severity(max_days, prefs),
                lender_count=stale_count,
            ))

    alerts.sort(key=lambda a: a.days_since_update, reverse=True)
    logger.debug('alerts.derived', total=len(alerts), shown=min(len(alerts), cap))
    return alerts[:cap]
