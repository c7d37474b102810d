"""
Schemas for the message rewording endpoint.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SuggestionRequest(BaseModel):
    """A draft message to reword."""

    message: str = Field(
        ..., min_length=1, max_length=1000, description="The original message"
    )
    context: Optional[str] = Field(
        None, max_length=1000, description="Additional context about the message"
    )


class SuggestionResponse(BaseModel):
    suggestions: List[str] = Field(..., description="Alternative rewordings")
