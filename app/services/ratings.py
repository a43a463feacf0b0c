"""
Ratings Service

Maintains each resource's rating summary and runs the rating operations the
API exposes.

Summary fields on Resource:
- average_rating: Mean of all ACTIVE rating values, one decimal, 0 if none
- total_ratings: Number of ACTIVE ratings

The summary is always recomputed from the full rating set, never patched
incrementally, so it cannot drift from the Rating rows. Recomputation
happens after every rating submission and after a report hides a rating;
helpful votes don't touch value or state, so they skip it.

Every write operation runs as:

    lock(key) -> store write -> recompute -> commit -> unlock

and retries from scratch when the optimistic version check on the resource
detects a writer in another process.

Resource edits and soft deletes take the same lock and go through the same
version check.
"""

import logging
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.config import get_settings
from app.exceptions import ConcurrentModification, NotFound
from app.models.rating import Rating
from app.models.resource import Resource
from app.models.user import User
from app.services.locks import rating_key, rating_locks, resource_key
from app.services.rating_store import RatingStore

logger = logging.getLogger(__name__)
settings = get_settings()

T = TypeVar("T")

ONE_DECIMAL = Decimal("0.1")


# =============================================================================
# Aggregation
# =============================================================================


@dataclass(frozen=True)
class ResourceRatingSummary:
    """Derived rating statistics for one resource."""

    resource_id: int
    average_rating: Decimal
    total_ratings: int


def flush_resource(db: Session, resource_id: int) -> None:
    """Flush pending writes, turning a resource version mismatch into ConcurrentModification."""
    try:
        db.flush()
    except StaleDataError as exc:
        raise ConcurrentModification(
            details={"resource_id": resource_id},
        ) from exc


def summarize(values: Iterable[int]) -> tuple[Decimal, int]:
    """
    Average and count of rating values.

    The mean is rounded half-up to one decimal (3.25 -> 3.3), the way
    ratings are displayed. Decimal keeps x.x5 means exact, where float
    rounding would not.

    >>> summarize([5, 3, 4])
    (Decimal('4.0'), 3)
    >>> summarize([])
    (Decimal('0.0'), 0)
    """
    values = list(values)
    if not values:
        return Decimal("0.0"), 0

    mean = Decimal(sum(values)) / Decimal(len(values))
    return mean.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP), len(values)


class AggregationEngine:
    """
    Recomputes and persists a resource's rating summary.

    Depends on RatingStore for the current rating set. Like the store, it
    only flushes; the surrounding operation commits.
    """

    def __init__(self, store: RatingStore) -> None:
        self.store = store
        self.db = store.db

    def recompute_summary(self, resource_id: int) -> ResourceRatingSummary:
        """
        Recompute average_rating and total_ratings from the active ratings.

        Idempotent. The resource row is re-read BEFORE the ratings, so any
        writer that commits in between also bumps the version and makes our
        flush fail instead of storing an average that misses its rating.

        Raises:
            NotFound: Unknown resource
            ConcurrentModification: The resource version changed under us
        """
        resource = self.db.get(Resource, resource_id, populate_existing=True)
        if resource is None:
            raise NotFound(f"Resource with id {resource_id} not found")

        ratings = self.store.find_by_resource(resource_id)
        average, total = summarize(r.value for r in ratings if r.is_active)

        resource.average_rating = average
        resource.total_ratings = total
        resource.summarized_at = datetime.now(UTC)

        flush_resource(self.db, resource_id)

        logger.debug(
            f"Recomputed summary for resource {resource_id}: "
            f"average={average} total={total}"
        )
        return ResourceRatingSummary(
            resource_id=resource_id,
            average_rating=average,
            total_ratings=total,
        )


# =============================================================================
# Critical sections
# =============================================================================


def run_locked(db: Session, key: Hashable, operation: Callable[[], T]) -> T:
    """
    Run `operation` and commit, holding the lock for `key`.

    On ConcurrentModification the transaction is rolled back and the whole
    operation re-run, up to settings.rating_max_retries attempts. Any other
    error rolls back and propagates, so nothing is left half-written.
    """
    attempts = settings.rating_max_retries
    for attempt in range(1, attempts + 1):
        with rating_locks.hold(key):
            try:
                result = operation()
                db.commit()
                return result
            except ConcurrentModification:
                db.rollback()
                if attempt == attempts:
                    logger.error(f"Giving up on {key} after {attempts} conflicting attempts")
                    raise
                logger.warning(f"Write conflict on {key}, retrying ({attempt}/{attempts})")
            except Exception:
                db.rollback()
                raise

    raise AssertionError("unreachable")  # pragma: no cover


# =============================================================================
# Operations
# =============================================================================


@dataclass
class RatingSubmission:
    """Result of submit_rating: the stored rating and the fresh summary."""

    rating: Rating
    created: bool
    summary: ResourceRatingSummary


def _award_reputation(db: Session, rater_id: int, author_id: int, value: int, created: bool) -> None:
    """
    Reputation for rating activity.

    The rater earns points for the first rating of a resource only; the
    author earns points for every submission, more for ratings above 3.
    """
    if created:
        db.execute(
            update(User)
            .where(User.id == rater_id)
            .values(reputation=User.reputation + settings.reputation_rating_given)
        )

    points = (
        settings.reputation_high_rating_received
        if value > 3
        else settings.reputation_low_rating_received
    )
    db.execute(
        update(User)
        .where(User.id == author_id)
        .values(reputation=User.reputation + points)
    )


def submit_rating(
    db: Session,
    resource_id: int,
    user: User,
    value: int,
    feedback: str | None = None,
) -> RatingSubmission:
    """
    Add or update a user's rating and refresh the resource summary.

    Serialized per resource: two users rating the same resource at once
    both end up counted.

    Raises:
        NotFound: Unknown or inactive resource
        InvalidValue: Value outside 1-5 or feedback too long
        SelfRatingForbidden: User is the resource author
        ConcurrentModification: Conflicts persisted through every retry
    """
    user_id = user.id

    def attempt() -> RatingSubmission:
        store = RatingStore(db)
        resource = store.get_resource(resource_id, refresh=True)
        rating, created = store.upsert_rating(user_id, resource, value, feedback)
        _award_reputation(db, user_id, resource.author_id, value, created)
        summary = AggregationEngine(store).recompute_summary(resource_id)
        return RatingSubmission(rating=rating, created=created, summary=summary)

    submission = run_locked(db, resource_key(resource_id), attempt)

    logger.info(
        f"Rating {'created' if submission.created else 'updated'}: "
        f"user={user_id} resource={resource_id} value={value}"
    )
    return submission


def toggle_helpful(db: Session, rating_id: int, user: User) -> Rating:
    """
    Toggle the user's helpful vote on a rating.

    Serialized per rating. No summary recompute: votes don't affect it.

    Raises:
        NotFound: Unknown rating
    """
    user_id = user.id
    return run_locked(
        db,
        rating_key(rating_id),
        lambda: RatingStore(db).toggle_helpful(rating_id, user_id),
    )


def report_rating(
    db: Session,
    rating_id: int,
    user: User,
    reason: str | None = None,
) -> Rating:
    """
    Report a rating; hide it and refresh the summary at the threshold.

    Takes the owning resource's lock (not the rating's) because the report
    that hides a rating has to recompute that resource's summary.

    Raises:
        NotFound: Unknown rating
    """
    user_id = user.id
    # resource_id never changes after creation, so reading it unlocked is safe
    resource_id = RatingStore(db).get_rating(rating_id).resource_id

    def attempt() -> Rating:
        store = RatingStore(db)
        rating, became_hidden = store.report_rating(rating_id, user_id, reason)
        if became_hidden:
            logger.warning(
                f"Rating {rating_id} on resource {resource_id} hidden after "
                f"{len(rating.reports)} reports"
            )
            AggregationEngine(store).recompute_summary(resource_id)
        return rating

    return run_locked(db, resource_key(resource_id), attempt)


def recompute_resource(db: Session, resource_id: int) -> ResourceRatingSummary:
    """Recompute and commit one resource's summary."""
    return run_locked(
        db,
        resource_key(resource_id),
        lambda: AggregationEngine(RatingStore(db)).recompute_summary(resource_id),
    )


def recalculate_all(db: Session) -> int:
    """
    Recalculate rating summaries for all resources.

    Useful for data migrations or fixing inconsistencies.

    Returns:
        Number of resources updated
    """
    resource_ids = db.execute(select(Resource.id)).scalars().all()

    for resource_id in resource_ids:
        recompute_resource(db, resource_id)

    logger.info(f"Recalculated rating summaries for {len(resource_ids)} resources")
    return len(resource_ids)


# =============================================================================
# Resource lifecycle
# =============================================================================


def update_resource(db: Session, resource_id: int, changes: dict) -> Resource:
    """
    Apply metadata changes to a resource.

    Runs under the resource lock and bumps the resource version, so a rating
    submission racing it from another process conflicts and retries.

    Raises:
        NotFound: Unknown or inactive resource
    """

    def attempt() -> Resource:
        resource = RatingStore(db).get_resource(resource_id, refresh=True)
        for field, value in changes.items():
            setattr(resource, field, value)
        flush_resource(db, resource_id)
        return resource

    resource = run_locked(db, resource_key(resource_id), attempt)
    logger.info(f"Resource {resource_id} updated: fields={sorted(changes)}")
    return resource


def deactivate_resource(db: Session, resource_id: int) -> Resource:
    """
    Soft-delete a resource.

    Its ratings stay in place but new submissions are refused with NotFound.

    Raises:
        NotFound: Unknown or already inactive resource
    """

    def attempt() -> Resource:
        resource = RatingStore(db).get_resource(resource_id, refresh=True)
        resource.is_active = False
        flush_resource(db, resource_id)
        return resource

    resource = run_locked(db, resource_key(resource_id), attempt)
    logger.info(f"Resource {resource_id} deactivated")
    return resource
