"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- auth.py: /api/v1/auth/* endpoints (registration, login)
- resources.py: /api/v1/resources/* endpoints (metadata, summaries, listings)
- ratings.py: /api/v1/ratings/* endpoints (submit, helpful, report, moderation)

Each router is imported and registered in main.py.
"""

from app.routers.auth import router as auth_router
from app.routers.ratings import router as ratings_router
from app.routers.resources import router as resources_router

__all__ = [
    "auth_router",
    "resources_router",
    "ratings_router",
]
