"""
Booking lifecycle: create, read, status transitions, cancel and delete.

Status moves along

    pending -> confirmed -> in_progress -> completed
    (pending | confirmed | in_progress) -> cancelled

``completed`` and ``cancelled`` are terminal. ``update_status`` checks the
table below unless ``ENFORCE_BOOKING_TRANSITIONS`` is switched off.

Notifications are sent after the booking change is committed. A failing
notification is logged and dropped; it never undoes or fails the booking
operation.
"""
import logging
from datetime import datetime
from typing import FrozenSet, List, Optional

from flask import current_app

from domain import notifications
from domain.catalog import get_add_ons, get_service
from domain.draft import BookingDraft
from domain.errors import InvalidStatusTransition, NotFoundError, ValidationError
from domain.reviews import recompute_provider_rating
from domain.validation import validate_booking_input, validate_status
from models import db
from models.booking import Booking
from models.chat import ChatMessage, ChatRoom
from models.enums import BookingStatus
from models.provider import Provider
from models.review import Review
from models.service import Service
from models.user import User
from models.vehicle import Vehicle

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def allowed_next_statuses(status) -> FrozenSet[BookingStatus]:
    return ALLOWED_TRANSITIONS[BookingStatus(status)]


def _check_references(customer_id: int, fields: dict) -> None:
    errors = []

    provider = db.session.get(Provider, fields["provider_id"])
    if provider is None or not provider.is_active:
        errors.append("Provider not found")

    service = db.session.get(Service, fields["service_id"])
    if service is None or not service.is_active:
        errors.append("Service not found")
    elif service.provider_id != fields["provider_id"]:
        errors.append("Service is not offered by this provider")

    vehicle = db.session.get(Vehicle, fields["vehicle_id"])
    if vehicle is None or vehicle.user_id != customer_id:
        errors.append("Vehicle not found")

    if errors:
        raise ValidationError("Invalid booking", details=errors)


def create_booking(customer_id: int, data: dict) -> Booking:
    fields = validate_booking_input(data)
    _check_references(customer_id, fields)

    booking = Booking(
        customer_id=customer_id,
        status=BookingStatus.PENDING.value,
        **fields,
    )
    db.session.add(booking)
    db.session.commit()
    logger.info("booking %s created by customer %s", booking.id, customer_id)

    try:
        customer = db.session.get(User, customer_id)
        if customer is not None:
            notifications.notify_provider_new_booking(booking.provider_id, booking.id, customer.full_name or customer.email)
    except Exception:
        db.session.rollback()
        logger.exception("failed to notify provider about booking %s", booking.id)

    return booking


def get_booking(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def update_status(booking_id: int, new_status) -> Booking:
    status = validate_status(new_status)
    booking = get_booking(booking_id)
    current = BookingStatus(booking.status)

    if current_app.config.get("ENFORCE_BOOKING_TRANSITIONS", True):
        if status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransition(current.value, status.value)

    booking.status = status.value
    booking.updated_at = datetime.utcnow()
    if status is BookingStatus.CANCELLED:
        booking.cancelled_at = booking.updated_at
    db.session.commit()
    logger.info("booking %s moved %s -> %s", booking.id, current.value, status.value)

    try:
        _notify_status(booking, status)
    except Exception:
        db.session.rollback()
        logger.exception("failed to notify customer about booking %s", booking.id)

    return booking


def _notify_status(booking: Booking, status: BookingStatus) -> None:
    provider = db.session.get(Provider, booking.provider_id)
    if provider is None:
        return
    if status is BookingStatus.CONFIRMED:
        notifications.notify_customer_booking_confirmed(
            booking.customer_id, booking.id, provider.business_name, booking.scheduled_date
        )
    else:
        notifications.notify_booking_status_change(
            booking.customer_id, booking.id, status.value, provider.business_name
        )


def cancel_booking(booking_id: int) -> Booking:
    return update_status(booking_id, BookingStatus.CANCELLED)


def delete_booking(booking_id: int) -> None:
    """Hard delete, together with the booking's review and chat history."""
    booking = get_booking(booking_id)
    provider_id = booking.provider_id

    room_ids = [r.id for r in ChatRoom.query.filter_by(booking_id=booking_id).all()]
    if room_ids:
        ChatMessage.query.filter(ChatMessage.chat_room_id.in_(room_ids)).delete(synchronize_session=False)
        ChatRoom.query.filter(ChatRoom.id.in_(room_ids)).delete(synchronize_session=False)
    had_review = Review.query.filter_by(booking_id=booking_id).delete(synchronize_session=False)

    db.session.delete(booking)
    if had_review:
        recompute_provider_rating(provider_id)
    db.session.commit()
    logger.info("booking %s deleted (%d chat rooms, %d reviews)", booking_id, len(room_ids), had_review)


def list_for_customer(customer_id: int) -> List[Booking]:
    return (
        Booking.query
        .filter_by(customer_id=customer_id)
        .order_by(Booking.scheduled_date.desc(), Booking.id.desc())
        .all()
    )


def list_for_provider(provider_id: int) -> List[Booking]:
    return (
        Booking.query
        .filter_by(provider_id=provider_id)
        .order_by(Booking.scheduled_date.desc(), Booking.id.desc())
        .all()
    )


def submit_draft(customer_id: int, draft: BookingDraft, notes: Optional[str] = None) -> Booking:
    """Create a booking from a completed wizard draft, then clear the draft."""
    missing = draft.missing_selections()
    if missing:
        raise ValidationError("Booking draft is incomplete", details=[f"{name} is required" for name in missing])

    selected = draft.to_dict()
    provider_id = selected["provider_id"]
    # prices come from the store, not from whatever the draft carried
    draft.service = get_service(selected["service_id"])
    add_ons = get_add_ons(provider_id, selected["add_on_ids"])
    draft.set_add_ons(add_ons)
    pricing = draft.refresh_pricing(current_app.config.get("PRICING_CURRENCY", "USD"))

    scheduled = draft.scheduled_datetime()
    location = draft.location or {}
    payload = {
        "provider_id": provider_id,
        "service_id": selected["service_id"],
        "vehicle_id": selected["vehicle_id"],
        "scheduled_date": scheduled.isoformat(),
        "scheduled_time": draft.time,
        "location": location.get("address"),
        "latitude": location.get("latitude"),
        "longitude": location.get("longitude"),
        "total_price": str(pricing.total),
        "estimated_duration": 60 + sum(getattr(a, "duration_minutes", 0) or 0 for a in add_ons),
        "notes": notes,
    }
    booking = create_booking(customer_id, payload)
    draft.reset()
    return booking


def serialize_booking(b: Booking, viewer: str = "customer") -> dict:
    out = {
        "id": b.id,
        "customer_id": b.customer_id,
        "provider_id": b.provider_id,
        "service_id": b.service_id,
        "vehicle_id": b.vehicle_id,
        "scheduled_date": b.scheduled_date.isoformat(),
        "scheduled_time": b.scheduled_time,
        "location": b.location,
        "latitude": b.latitude,
        "longitude": b.longitude,
        "status": b.status,
        "total_price": str(b.total_price),
        "estimated_duration": b.estimated_duration,
        "notes": b.notes,
        "created_at": b.created_at.isoformat(),
        "updated_at": b.updated_at.isoformat(),
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
        "allowed_next_statuses": sorted(s.value for s in allowed_next_statuses(b.status)),
        "service": {
            "id": b.service.id,
            "name": b.service.name,
            "description": b.service.description,
            "duration": b.service.duration,
        } if b.service else None,
        "vehicle": {
            "id": b.vehicle.id,
            "make": b.vehicle.make,
            "model": b.vehicle.model,
            "year": b.vehicle.year,
        } if b.vehicle else None,
    }
    if viewer == "provider":
        out["customer"] = {
            "id": b.customer.id,
            "first_name": b.customer.first_name,
            "last_name": b.customer.last_name,
            "phone_number": b.customer.phone_number,
        } if b.customer else None
    else:
        out["provider"] = {
            "id": b.provider.id,
            "business_name": b.provider.business_name,
            "rating": str(b.provider.rating),
        } if b.provider else None
    return out
