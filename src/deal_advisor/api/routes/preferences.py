"""GET/PUT /preferences: read and replace the stored suggestion preferences."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from deal_advisor.errors import PreferencesError
from deal_advisor.models.preferences import Preferences

from ..auth import verify_api_token

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_token)])


@router.get("/preferences")
async def get_preferences(request: Request):
    return request.app.state.preferences.model_dump(mode="json")


@router.put("/preferences")
async def put_preferences(payload: dict[str, Any], request: Request):
    """Validate, persist, then swap in the new preferences."""
    try:
        preferences = Preferences.model_validate(payload)
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        request.app.state.store.save(preferences)
    except PreferencesError as e:
        logger.error("api.preferences.save_failed", error=str(e))
        return JSONResponse(status_code=500, content={"error": e.message})

    request.app.state.preferences = preferences
    logger.info("api.preferences.updated")
    return preferences.model_dump(mode="json")
