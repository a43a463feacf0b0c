"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields that can be updated (all optional)
- XxxResponse: Fields returned in API responses
"""

from app.schemas.rating import (
    RatingCreate,
    RatingListResponse,
    RatingResponse,
    RatingSubmissionResponse,
    RatingSummaryResponse,
    ReportCreate,
    ResourceRatingStats,
)
from app.schemas.resource import ResourceCreate, ResourceResponse, ResourceUpdate
from app.schemas.user import (
    TokenResponse,
    UserCreate,
    UserPublicResponse,
    UserResponse,
)

__all__ = [
    # User schemas
    "UserCreate",
    "UserResponse",
    "UserPublicResponse",
    "TokenResponse",
    # Resource schemas
    "ResourceCreate",
    "ResourceUpdate",
    "ResourceResponse",
    # Rating schemas
    "RatingCreate",
    "ReportCreate",
    "RatingResponse",
    "RatingSummaryResponse",
    "RatingSubmissionResponse",
    "RatingListResponse",
    "ResourceRatingStats",
]
