"""Suggestion, alert and milestone widget endpoints."""

from typing import Any
from uuid import uuid4

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from deal_advisor.engine import (
    EvaluationResult,
    EvaluationScope,
    SuggestionEngine,
    bucket_milestones,
    derive_alerts,
    filter_visible,
    truncate,
)
from deal_advisor.errors import DealNotFoundError, EvaluationError, ValidationError
from deal_advisor.logging import logging_context

from ..auth import verify_api_token
from ..schemas import MilestonesRequest, SnapshotRequest, SuggestionsRequest

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_token)])


def _parse(model, payload: dict[str, Any]):
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _respond(
    result: EvaluationResult,
    body: SuggestionsRequest,
    default_limit: int | None = None,
) -> dict[str, Any]:
    visible = filter_visible(
        result.suggestions,
        dismissed_ids=body.dismissed_ids,
        type_filter=body.type,
        priority_filter=body.priority,
    )
    limit = body.limit if body.limit is not None else default_limit
    page = truncate(visible, len(visible) if limit is None else limit)
    return {
        **result.to_dict(),
        "visible": [s.model_dump(mode="json") for s in page.items],
        "visible_total": page.total,
        "has_more": page.has_more,
    }


@router.post("/suggestions")
async def all_deals_suggestions(
    payload: dict[str, Any],
    request: Request,
    x_trace_id: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    """Suggestions across every active deal (dashboard widget)."""
    body = _parse(SuggestionsRequest, payload)
    preferences = request.app.state.preferences
    trace_id = x_trace_id or uuid4().hex

    with logging_context(trace_id=trace_id, user_id=x_user_id):
        log = logger.bind(deal_count=len(body.deals))
        log.info("api.suggestions.received")

        try:
            result = SuggestionEngine(preferences).evaluate(body.snapshot(), now=body.now)
        except EvaluationError as e:
            log.error("api.suggestions.failed", error=str(e))
            return JSONResponse(status_code=500, content={"error": e.message, "trace_id": trace_id})

        log.info("api.suggestions.complete", total=result.counts.total, high=result.counts.high)
        return {**_respond(result, body, preferences.suggestion_display_limit), "trace_id": trace_id}


@router.post("/deals/{deal_id}/suggestions")
async def deal_suggestions(
    deal_id: str,
    payload: dict[str, Any],
    request: Request,
    x_trace_id: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    """Contextual suggestions for a single deal page."""
    body = _parse(SuggestionsRequest, payload)
    preferences = request.app.state.preferences
    trace_id = x_trace_id or uuid4().hex

    with logging_context(trace_id=trace_id, user_id=x_user_id, deal_id=deal_id):
        try:
            result = SuggestionEngine(preferences).evaluate(
                body.snapshot(),
                EvaluationScope.SINGLE_DEAL,
                deal_id=deal_id,
                now=body.now,
            )
        except DealNotFoundError as e:
            logger.warning("api.deal_suggestions.not_found")
            raise HTTPException(status_code=404, detail=e.message)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.message)
        except EvaluationError as e:
            logger.error("api.deal_suggestions.failed", error=str(e))
            return JSONResponse(status_code=500, content={"error": e.message, "trace_id": trace_id})

        logger.info("api.deal_suggestions.complete", total=result.counts.total)
        # The deal page lists everything that is not dismissed
        return {**_respond(result, body), "trace_id": trace_id}


@router.post("/alerts")
async def alerts(payload: dict[str, Any], request: Request):
    """Stale deal / stale lender alerts widget."""
    body = _parse(SnapshotRequest, payload)
    items = derive_alerts(body.deals, request.app.state.preferences, now=body.now)
    return {"alerts": [a.model_dump(mode="json") for a in items], "count": len(items)}


@router.post("/milestones/summary")
async def milestones_summary(payload: dict[str, Any], request: Request):
    """Overdue / due this week / recently completed milestone buckets."""
    body = _parse(MilestonesRequest, payload)
    buckets = bucket_milestones(body.milestones, now=body.now, preferences=request.app.state.preferences)
    return {**buckets.to_dict(), "active_count": buckets.active_count}
