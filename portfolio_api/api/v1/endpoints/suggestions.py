"""
Rewording suggestions for contact form drafts.
"""

import asyncio

from fastapi import APIRouter, HTTPException, status

from portfolio_api.schemas.suggestions import SuggestionRequest, SuggestionResponse
from portfolio_api.services.suggestion_service import (
    SuggestionError,
    suggestion_service,
)

router = APIRouter()


@router.post("", response_model=SuggestionResponse)
async def suggest_rewordings(payload: SuggestionRequest) -> SuggestionResponse:
    """
    Suggest alternative wordings for a draft message.

    Returns:
        SuggestionResponse with up to three rewordings
    """
    try:
        suggestions = await asyncio.to_thread(
            suggestion_service.suggest, payload.message, payload.context
        )
    except SuggestionError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Suggestion service unavailable.",
        )
    return SuggestionResponse(suggestions=suggestions)
