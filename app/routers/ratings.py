"""
Ratings Router

Endpoints:
- POST /ratings - Add or update your rating for a resource (authenticated)
- GET /ratings/hidden - Moderation queue of auto-hidden ratings (superuser)
- POST /ratings/recalculate - Rebuild every resource summary (superuser)
- GET /ratings/{rating_id} - Get a rating
- POST /ratings/{rating_id}/helpful - Toggle your helpful vote (authenticated)
- POST /ratings/{rating_id}/report - Report a rating (authenticated)

Business Rules:
- One rating per user per resource; submitting again updates it (200, not 201)
- Authors cannot rate their own resources
- Helpful is a toggle: a second call removes the vote
- Three distinct reports hide a rating for good
- Hidden ratings answer 404 to everyone but moderators, for votes and
  reports as well as reads

The handlers are thin: app.services.ratings does the locking, recompute and
commit, and domain errors become HTTP errors in app.main.
"""

import logging
import math

from fastapi import APIRouter, HTTPException, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession, OptionalUser, Pagination, SuperUser
from app.models.rating import Rating, RatingState
from app.models.user import User
from app.schemas.rating import (
    RatingCreate,
    RatingListResponse,
    RatingResponse,
    RatingSubmissionResponse,
    RatingSummaryResponse,
    ReportCreate,
)
from app.services import ratings as rating_service
from app.services.rate_limiter import limiter
from app.services.rating_store import RatingStore

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(
    prefix="/ratings",
    tags=["Ratings"],
    responses={
        404: {"description": "Rating or resource not found"},
    },
)


@router.post(
    "",
    response_model=RatingSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Rate a resource",
    description="Create your rating for a resource, or update it if you already rated it.",
    responses={
        200: {"description": "Existing rating updated"},
        400: {"description": "Self-rating or invalid value"},
    },
)
@limiter.limit(settings.rate_limit_write)
def submit_rating(
    request: Request,
    response: Response,
    rating_data: RatingCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> RatingSubmissionResponse:
    """
    Add or update a rating.

    Returns:
        The stored rating and the resource's refreshed summary
    """
    submission = rating_service.submit_rating(
        db,
        rating_data.resource_id,
        current_user,
        rating_data.value,
        rating_data.feedback,
    )

    if not submission.created:
        response.status_code = status.HTTP_200_OK

    return RatingSubmissionResponse(
        message=(
            "Rating added successfully"
            if submission.created
            else "Rating updated successfully"
        ),
        rating=RatingResponse.model_validate(submission.rating),
        summary=RatingSummaryResponse.model_validate(submission.summary),
    )


# =============================================================================
# Moderation (must come before /ratings/{rating_id} for route matching)
# =============================================================================


@router.get(
    "/hidden",
    response_model=RatingListResponse,
    summary="List hidden ratings",
    description="Ratings auto-hidden after too many reports. Superuser only.",
)
@limiter.limit(settings.rate_limit_default)
def list_hidden_ratings(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    current_user: SuperUser,
) -> RatingListResponse:
    """List hidden ratings, most recently hidden first."""
    condition = Rating.state == RatingState.HIDDEN.value

    total = db.execute(select(func.count(Rating.id)).where(condition)).scalar() or 0
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        select(Rating)
        .options(selectinload(Rating.user), selectinload(Rating.reports))
        .where(condition)
        .order_by(Rating.hidden_at.desc(), Rating.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    ratings = db.execute(stmt).scalars().all()

    return RatingListResponse(
        items=[RatingResponse.model_validate(r) for r in ratings],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.post(
    "/recalculate",
    summary="Recalculate all rating summaries",
    description="Rebuild average and count for every resource. Superuser only.",
)
@limiter.limit(settings.rate_limit_write)
def recalculate_ratings(
    request: Request,
    db: DbSession,
    current_user: SuperUser,
) -> dict:
    updated = rating_service.recalculate_all(db)
    logger.info(f"Summaries recalculated by user {current_user.id}")
    return {"resources_updated": updated}


# =============================================================================
# Individual Rating Endpoints
# =============================================================================


def get_visible_rating(db: Session, rating_id: int, current_user: User | None) -> Rating:
    """Get a rating, or 404 if it is hidden and the user is not a moderator."""
    rating = RatingStore(db).get_rating(rating_id)

    if not rating.is_active and (current_user is None or not current_user.is_superuser):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Rating with id {rating_id} not found",
        )
    return rating


@router.get(
    "/{rating_id}",
    response_model=RatingResponse,
    summary="Get a rating",
)
@limiter.limit(settings.rate_limit_default)
def get_rating(
    request: Request,
    rating_id: int,
    db: DbSession,
    current_user: OptionalUser,
) -> RatingResponse:
    """
    Get a single rating.

    Hidden ratings are only visible to moderators; everyone else gets 404.
    """
    rating = get_visible_rating(db, rating_id, current_user)
    return RatingResponse.model_validate(rating)


@router.post(
    "/{rating_id}/helpful",
    response_model=RatingResponse,
    summary="Toggle helpful vote",
    description="Mark a rating as helpful, or remove your mark if already set.",
)
@limiter.limit(settings.rate_limit_write)
def toggle_helpful(
    request: Request,
    rating_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> RatingResponse:
    get_visible_rating(db, rating_id, current_user)
    rating = rating_service.toggle_helpful(db, rating_id, current_user)
    return RatingResponse.model_validate(rating)


@router.post(
    "/{rating_id}/report",
    response_model=RatingResponse,
    summary="Report a rating",
    description="Flag a rating for moderation. Reporting twice has no extra effect.",
)
@limiter.limit(settings.rate_limit_write)
def report_rating(
    request: Request,
    rating_id: int,
    db: DbSession,
    current_user: ActiveUser,
    report: ReportCreate | None = None,
) -> RatingResponse:
    get_visible_rating(db, rating_id, current_user)
    reason = report.reason if report is not None else None
    rating = rating_service.report_rating(db, rating_id, current_user, reason)
    return RatingResponse.model_validate(rating)
