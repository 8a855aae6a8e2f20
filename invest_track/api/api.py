"""
API router aggregation.

The top-level ``main.py`` mounts this router at ``settings.API_PREFIX``
(``/api``).
"""

from fastapi import APIRouter

from invest_track.api.endpoints import auth, investments

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(investments.router, prefix="/investments", tags=["Investments"])
