"""
Trip reviews.

A reviewee's rating is recomputed from all of their reviews (sum / count)
each time a new one lands, with the reviewee row locked so concurrent
submissions cannot interleave their recomputes.
"""

import logging
from typing import Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction, IntegrityError
from django.db.models import Count, Sum

from common.exceptions import DomainValidationError, InvalidStateError
from trips.models import Trip, Review
from .exceptions import DuplicateReviewError, NotTripParticipantError
from .lifecycle import get_trip, _notify

User = get_user_model()
logger = logging.getLogger(__name__)


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise DomainValidationError("Rating must be an integer between 1 and 5")
    if not 1 <= rating <= 5:
        raise DomainValidationError("Rating must be between 1 and 5")
    return rating


@transaction.atomic
def submit_review(trip_id, reviewer, reviewee_id, rating: int, comment: Optional[str] = None) -> Review:
    """
    Review the other participant of a completed trip.

    Raises:
        DomainValidationError: bad rating, self-review, or reviewee not on the trip
        DuplicateReviewError: reviewer already reviewed this trip
        InvalidStateError: trip not completed
        NotTripParticipantError: reviewer not on the trip
    """
    rating = _validate_rating(rating)
    trip = get_trip(trip_id)

    if trip.status != Trip.COMPLETED:
        raise InvalidStateError("Only completed trips can be reviewed", error_code="trip_not_completed")
    if not trip.is_participant(reviewer):
        raise NotTripParticipantError()
    if int(reviewee_id) == reviewer.pk:
        raise DomainValidationError("You cannot review yourself")
    if int(reviewee_id) not in (trip.client_id, trip.partner_id):
        raise DomainValidationError("The reviewee was not part of this trip")

    if Review.objects.filter(trip=trip, reviewer=reviewer).exists():
        raise DuplicateReviewError()

    try:
        with transaction.atomic():
            review = Review.objects.create(
                trip=trip,
                reviewer=reviewer,
                reviewee_id=reviewee_id,
                rating=rating,
                comment=comment or "",
            )
    except IntegrityError:
        raise DuplicateReviewError()

    reviewee = User.objects.select_for_update().get(pk=reviewee_id)
    totals = Review.objects.filter(reviewee=reviewee).aggregate(total=Sum("rating"), count=Count("id"))
    reviewee.rating = totals["total"] / totals["count"]
    reviewee.save(update_fields=["rating"])

    _notify(
        reviewee.id,
        "New Trip Rating",
        f"You received a {rating}-star rating for your recent trip.",
        trip.pk,
    )
    logger.info("Review %s: trip %s, %s -> %s (%s/5)", review.id, trip.pk, reviewer.id, reviewee.id, rating)
    return review


def list_user_reviews(user_id, limit: Optional[int] = None) -> List[Review]:
    """Reviews received by a user, newest first."""
    qs = Review.objects.filter(reviewee_id=user_id).select_related("reviewer")
    if limit:
        qs = qs[:limit]
    return list(qs)


def list_trip_reviews(trip_id) -> List[Review]:
    return list(Review.objects.filter(trip_id=trip_id).select_related("reviewer", "reviewee"))


def get_user_review_stats(user_id) -> Dict[str, object]:
    distribution = {star: 0 for star in range(1, 6)}
    for row in Review.objects.filter(reviewee_id=user_id).values("rating").annotate(n=Count("id")):
        distribution[row["rating"]] = row["n"]

    total = sum(distribution.values())
    average = sum(star * n for star, n in distribution.items()) / total if total else 0
    return {
        "average_rating": average,
        "total_reviews": total,
        "rating_distribution": distribution,
    }
