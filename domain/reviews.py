"""
Reviews and the provider rating derived from them.

A provider's ``rating`` is always the mean of its reviews' ratings (two
decimals) and ``review_count`` their number. Both are recomputed inside the
same transaction as every review insert, update and delete.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from domain.errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from domain.validation import validate_review_input
from models import db
from models.booking import Booking
from models.enums import BookingStatus
from models.provider import Provider
from models.review import Review

logger = logging.getLogger(__name__)


def recompute_provider_rating(provider_id: int) -> Optional[Provider]:
    """Refresh rating/review_count from the reviews table. Does not commit."""
    provider = db.session.get(Provider, provider_id)
    if provider is None:
        return None

    db.session.flush()
    count, total = (
        db.session.query(func.count(Review.id), func.sum(Review.rating))
        .filter(Review.provider_id == provider_id)
        .one()
    )
    if not count:
        provider.rating = Decimal("0.00")
        provider.review_count = 0
    else:
        mean = Decimal(str(total)) / count
        provider.rating = mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        provider.review_count = count
    return provider


def get_review_for_booking(booking_id: int) -> Optional[Review]:
    return Review.query.filter_by(booking_id=booking_id).first()


def create_review(customer_id: int, data: dict) -> Review:
    fields = validate_review_input(data)

    booking = db.session.get(Booking, fields["booking_id"])
    if booking is None:
        raise NotFoundError("Booking not found")
    if booking.customer_id != customer_id:
        raise PermissionDenied("Only the booking's customer can review it")
    if booking.status != BookingStatus.COMPLETED.value:
        raise ValidationError("Only completed bookings can be reviewed")
    if get_review_for_booking(booking.id) is not None:
        raise ConflictError("Review already exists for this booking")

    review = Review(
        booking_id=booking.id,
        customer_id=customer_id,
        provider_id=booking.provider_id,
        rating=fields["rating"],
        comment=fields.get("comment"),
    )
    db.session.add(review)
    try:
        recompute_provider_rating(booking.provider_id)
        db.session.commit()
    except IntegrityError:
        # uq_reviews_booking: another request won the race
        db.session.rollback()
        raise ConflictError("Review already exists for this booking")

    logger.info("review %s created for provider %s", review.id, review.provider_id)
    return review


def _owned(review_id: int, customer_id: int) -> Review:
    review = Review.query.filter_by(id=review_id, customer_id=customer_id).first()
    if review is None:
        raise NotFoundError("Review not found")
    return review


def update_review(review_id: int, customer_id: int, data: dict) -> Review:
    review = _owned(review_id, customer_id)
    fields = validate_review_input(data, partial=True)
    for key, value in fields.items():
        setattr(review, key, value)
    recompute_provider_rating(review.provider_id)
    db.session.commit()
    return review


def delete_review(review_id: int, customer_id: int) -> None:
    review = _owned(review_id, customer_id)
    provider_id = review.provider_id
    db.session.delete(review)
    recompute_provider_rating(provider_id)
    db.session.commit()


def list_for_provider(provider_id: int) -> List[Review]:
    return (
        Review.query
        .filter_by(provider_id=provider_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


def list_for_customer(customer_id: int) -> List[Review]:
    return (
        Review.query
        .filter_by(customer_id=customer_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


def serialize_review(r: Review) -> dict:
    return {
        "id": r.id,
        "booking_id": r.booking_id,
        "customer_id": r.customer_id,
        "provider_id": r.provider_id,
        "rating": str(r.rating),
        "comment": r.comment,
        "created_at": r.created_at.isoformat(),
        "customer": {
            "first_name": r.customer.first_name,
            "last_name": r.customer.last_name,
        } if r.customer else None,
    }
