"""
Rating Pydantic Schemas

Schemas:
- RatingCreate: Submit (or resubmit) a rating for a resource
- ReportCreate: Report a rating to moderators
- RatingResponse: Rating data for API responses
- RatingSummaryResponse: Average and count for a resource
- RatingSubmissionResponse: Result of POST /ratings
- RatingListResponse: Paginated list of ratings
- ResourceRatingStats: Summary plus distribution

Validation here catches malformed payloads with a 422 before the rating
engine runs; the engine re-checks value and feedback on its own.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.rating import FEEDBACK_MAX_LENGTH, REPORT_REASON_MAX_LENGTH
from app.schemas.user import UserPublicResponse


class RatingCreate(BaseModel):
    """
    Schema for submitting a rating.

    Submitting again for the same resource updates the earlier rating.

    Example request body:
    {
        "resource_id": 12,
        "value": 4,
        "feedback": "Clear notes, a few typos in chapter 3."
    }
    """

    resource_id: int = Field(..., ge=1, description="Resource being rated")
    value: int = Field(
        ...,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
    )
    feedback: str | None = Field(
        default=None,
        max_length=FEEDBACK_MAX_LENGTH,
        description="Optional feedback for the author",
    )

    @field_validator("feedback")
    @classmethod
    def strip_feedback(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None


class ReportCreate(BaseModel):
    """Report a rating. An empty reason is stored as "Inappropriate content"."""

    reason: str | None = Field(
        default=None,
        max_length=REPORT_REASON_MAX_LENGTH,
        examples=["Spam", "Offensive language"],
    )


class RatingResponse(BaseModel):
    """
    Schema for rating responses.

    Includes the rater's public profile and moderation state.
    """

    id: int = Field(..., description="Unique rating identifier")
    resource_id: int
    user_id: int
    value: int = Field(..., ge=1, le=5)
    feedback: str = ""
    helpful_count: int = Field(default=0, description="Number of helpful votes")
    report_count: int = Field(default=0, description="Number of distinct reports")
    state: str = Field(..., description="active or hidden")
    is_active: bool
    created_at: datetime
    updated_at: datetime

    user: UserPublicResponse

    model_config = ConfigDict(from_attributes=True)


class RatingSummaryResponse(BaseModel):
    """Derived rating summary for one resource."""

    resource_id: int
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average of active ratings, one decimal (0 means no ratings)",
    )
    total_ratings: int = Field(..., ge=0)

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {"resource_id": 12, "average_rating": 4.3, "total_ratings": 17}
        },
    )


class RatingSubmissionResponse(BaseModel):
    """Response body for POST /ratings."""

    message: str
    rating: RatingResponse
    summary: RatingSummaryResponse


class RatingListResponse(BaseModel):
    """Paginated rating list."""

    items: list[RatingResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class ResourceRatingStats(RatingSummaryResponse):
    """Summary plus the count of active ratings per star value."""

    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)",
    )
