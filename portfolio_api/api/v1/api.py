"""
API router that includes all endpoint routers.
"""

from fastapi import APIRouter

from portfolio_api.api.v1.endpoints import contact, suggestions

api_router = APIRouter()

api_router.include_router(contact.router, prefix="/contact", tags=["contact"])
api_router.include_router(
    suggestions.router, prefix="/suggestions", tags=["suggestions"]
)
