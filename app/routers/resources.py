"""
Resources Router

Endpoints:
- POST /resources - Register a resource (authenticated)
- GET /resources/{resource_id} - Resource metadata with rating summary
- PATCH /resources/{resource_id} - Update resource metadata (author only)
- DELETE /resources/{resource_id} - Soft-delete a resource (author only)
- GET /resources/{resource_id}/rating - Rating statistics and distribution
- GET /resources/{resource_id}/ratings - Ratings for a resource

Only metadata is handled here: uploading and streaming files is somebody
else's job. The rating summary shown on each resource is maintained by
app.services.ratings and is read-only through this API.
"""

import logging
import math

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession, OptionalUser, Pagination
from app.models.rating import Rating, RatingState
from app.models.resource import Resource
from app.schemas.rating import RatingListResponse, RatingResponse, ResourceRatingStats
from app.schemas.resource import ResourceCreate, ResourceResponse, ResourceUpdate
from app.services import ratings as rating_service
from app.services.rate_limiter import limiter
from app.services.rating_store import RatingStore

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(
    prefix="/resources",
    tags=["Resources"],
    responses={
        404: {"description": "Resource not found"},
    },
)


@router.post(
    "",
    response_model=ResourceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a resource",
)
@limiter.limit(settings.rate_limit_write)
def create_resource(
    request: Request,
    resource_data: ResourceCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> ResourceResponse:
    """Create a resource owned by the current user, with an empty rating summary."""
    resource = Resource(**resource_data.model_dump(), author_id=current_user.id)

    db.add(resource)
    db.commit()
    db.refresh(resource)

    logger.info(f"Resource {resource.id} created by user {current_user.id}")

    return ResourceResponse.model_validate(resource)


@router.get(
    "/{resource_id}",
    response_model=ResourceResponse,
    summary="Get a resource",
)
@limiter.limit(settings.rate_limit_default)
def get_resource(
    request: Request,
    resource_id: int,
    db: DbSession,
) -> ResourceResponse:
    """Get a resource with its current average rating and rating count."""
    resource = RatingStore(db).get_resource(resource_id)
    return ResourceResponse.model_validate(resource)


@router.patch(
    "/{resource_id}",
    response_model=ResourceResponse,
    summary="Update a resource",
    description="Update resource metadata. Only the author can update.",
)
@limiter.limit(settings.rate_limit_write)
def update_resource(
    request: Request,
    resource_id: int,
    resource_data: ResourceUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> ResourceResponse:
    """
    Update a resource.

    Only provided fields are updated.

    Raises:
        NotFound: 404 if resource not found
        HTTPException: 403 if the user is not the author
    """
    resource = RatingStore(db).get_resource(resource_id)

    if resource.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own resources",
        )

    update_data = resource_data.model_dump(exclude_unset=True, exclude_none=True)
    resource = rating_service.update_resource(db, resource_id, update_data)

    return ResourceResponse.model_validate(resource)


@router.delete(
    "/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a resource",
    description="Soft-delete a resource. Only the author can delete.",
)
@limiter.limit(settings.rate_limit_write)
def delete_resource(
    request: Request,
    resource_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    """
    Soft-delete a resource.

    The resource and its ratings stay in the database, but the resource is
    no longer shown and cannot be rated.

    Raises:
        NotFound: 404 if resource not found
        HTTPException: 403 if the user is not the author
    """
    resource = RatingStore(db).get_resource(resource_id)

    if resource.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own resources",
        )

    rating_service.deactivate_resource(db, resource_id)
    logger.info(f"Resource {resource_id} deleted by user {current_user.id}")


@router.get(
    "/{resource_id}/rating",
    response_model=ResourceRatingStats,
    summary="Get resource rating statistics",
)
@limiter.limit(settings.rate_limit_default)
def get_resource_rating_stats(
    request: Request,
    resource_id: int,
    db: DbSession,
) -> ResourceRatingStats:
    """
    Get rating statistics for a resource.

    Returns:
        - Average rating and total count (the stored summary)
        - Rating distribution over active ratings (count of each value 1-5)
    """
    resource = RatingStore(db).get_resource(resource_id)

    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    dist_stmt = (
        select(Rating.value, func.count(Rating.id))
        .where(
            Rating.resource_id == resource_id,
            Rating.state == RatingState.ACTIVE.value,
        )
        .group_by(Rating.value)
    )
    for value, count in db.execute(dist_stmt).all():
        distribution[value] = count

    return ResourceRatingStats(
        resource_id=resource.id,
        average_rating=float(resource.average_rating),
        total_ratings=resource.total_ratings,
        rating_distribution=distribution,
    )


@router.get(
    "/{resource_id}/ratings",
    response_model=RatingListResponse,
    summary="List ratings for a resource",
    description="Active ratings, newest first. Moderators may include hidden ratings.",
)
@limiter.limit(settings.rate_limit_default)
def list_resource_ratings(
    request: Request,
    resource_id: int,
    db: DbSession,
    pagination: Pagination,
    current_user: OptionalUser,
    include_hidden: bool = Query(default=False, description="Moderators only"),
) -> RatingListResponse:
    """
    List ratings for a resource.

    Raises:
        NotFound: 404 if resource not found
        HTTPException: 403 if include_hidden is requested by a non-moderator
    """
    RatingStore(db).get_resource(resource_id)

    if include_hidden and (current_user is None or not current_user.is_superuser):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only moderators can view hidden ratings",
        )

    conditions = [Rating.resource_id == resource_id]
    if not include_hidden:
        conditions.append(Rating.state == RatingState.ACTIVE.value)

    total = db.execute(select(func.count(Rating.id)).where(*conditions)).scalar() or 0
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        select(Rating)
        .options(selectinload(Rating.user), selectinload(Rating.reports))
        .where(*conditions)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
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
