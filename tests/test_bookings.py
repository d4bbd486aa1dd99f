from decimal import Decimal

import pytest

from conftest import future_slot
from domain import bookings, notifications
from domain.draft import BookingDraft
from domain.errors import InvalidStatusTransition, NotFoundError, ValidationError
from models import db
from models.booking import Booking
from models.enums import BookingStatus
from models.notification import Notification


def test_create_then_get_returns_pending_booking(customer, provider, booking_payload):
    created = bookings.create_booking(customer.id, booking_payload())
    fetched = bookings.get_booking(created.id)

    assert fetched.id == created.id
    assert fetched.status == BookingStatus.PENDING.value
    assert fetched.customer_id == customer.id
    assert fetched.provider_id == provider.id
    assert fetched.total_price == Decimal("49.99")


def test_create_notifies_provider(provider_user, make_booking):
    booking = make_booking()

    note = Notification.query.filter_by(user_id=provider_user.id).one()
    assert note.title == "New Booking Request"
    assert note.data == {"booking_id": booking.id}


def test_past_dates_are_rejected(customer, booking_payload):
    with pytest.raises(ValidationError) as exc:
        bookings.create_booking(customer.id, booking_payload(scheduled_date="2001-01-01T10:00:00Z"))
    assert "Scheduled date must not be in the past" in exc.value.details


def test_short_location_and_bad_price_are_rejected(customer, booking_payload):
    with pytest.raises(ValidationError) as exc:
        bookings.create_booking(customer.id, booking_payload(location="abc", total_price="-3"))
    assert len(exc.value.details) == 2
    assert Booking.query.count() == 0


def test_vehicle_must_belong_to_customer(make_user, booking_payload):
    stranger = make_user()
    with pytest.raises(ValidationError) as exc:
        bookings.create_booking(stranger.id, booking_payload())
    assert exc.value.details == ["Vehicle not found"]


def test_get_unknown_booking(app):
    with pytest.raises(NotFoundError):
        bookings.get_booking(9999)


def test_happy_path_transitions(make_booking):
    booking = make_booking()
    for status in ("confirmed", "in_progress", "completed"):
        booking = bookings.update_status(booking.id, status)
        assert booking.status == status
    assert bookings.allowed_next_statuses(booking.status) == frozenset()


@pytest.mark.parametrize("start,target", [
    ("pending", "completed"),
    ("pending", "in_progress"),
    ("confirmed", "pending"),
    ("completed", "cancelled"),
    ("cancelled", "confirmed"),
])
def test_disallowed_transitions_raise(make_booking, start, target):
    booking = make_booking(status=start)

    with pytest.raises(InvalidStatusTransition):
        bookings.update_status(booking.id, target)
    assert bookings.get_booking(booking.id).status == start


def test_transition_table_can_be_switched_off(app, make_booking):
    app.config["ENFORCE_BOOKING_TRANSITIONS"] = False
    booking = make_booking()

    assert bookings.update_status(booking.id, "completed").status == "completed"


def test_unknown_status_is_a_validation_error(make_booking):
    booking = make_booking()
    with pytest.raises(ValidationError):
        bookings.update_status(booking.id, "teleported")


def test_cancel_sets_cancelled_at(make_booking):
    booking = bookings.cancel_booking(make_booking(status="confirmed").id)
    assert booking.status == "cancelled"
    assert booking.cancelled_at is not None


def test_status_change_notifies_customer(customer, make_booking):
    booking = make_booking()
    bookings.update_status(booking.id, "confirmed")
    bookings.update_status(booking.id, "in_progress")

    titles = [n.title for n in notifications.list_notifications(customer.id)]
    assert titles == ["Service Started", "Booking Confirmed!"]


def test_notification_failure_does_not_undo_status_change(monkeypatch, make_booking):
    booking = make_booking()

    def boom(*args, **kwargs):
        raise RuntimeError("push service down")

    monkeypatch.setattr(notifications, "notify_customer_booking_confirmed", boom)

    updated = bookings.update_status(booking.id, "confirmed")

    assert updated.status == "confirmed"
    db.session.expire_all()
    assert db.session.get(Booking, booking.id).status == "confirmed"


def test_notification_failure_does_not_fail_creation(monkeypatch, customer, booking_payload):
    def boom(*args, **kwargs):
        raise RuntimeError("push service down")

    monkeypatch.setattr(notifications, "notify_provider_new_booking", boom)

    booking = bookings.create_booking(customer.id, booking_payload())

    assert bookings.get_booking(booking.id).status == "pending"


def test_lists_are_scoped(customer, provider, make_user, make_booking):
    first = make_booking(scheduled_date=future_slot(days=1).isoformat())
    second = make_booking(scheduled_date=future_slot(days=3).isoformat())

    assert [b.id for b in bookings.list_for_customer(customer.id)] == [second.id, first.id]
    assert [b.id for b in bookings.list_for_provider(provider.id)] == [second.id, first.id]
    assert bookings.list_for_customer(make_user().id) == []


def test_delete_booking(make_booking):
    booking = make_booking()
    bookings.delete_booking(booking.id)
    with pytest.raises(NotFoundError):
        bookings.get_booking(booking.id)


def test_submit_draft_prices_from_catalog_and_resets(customer, provider, service, add_ons, vehicle):
    draft = BookingDraft()
    draft.vehicle = vehicle
    draft.provider = provider
    # stale client-side price must not reach the booking
    draft.service = {"id": service.id, "price": "1.00"}
    draft.set_add_ons([{"id": a.id, "price": "0.01"} for a in add_ons])
    draft.date = future_slot().date()
    draft.time = "11:30 AM"
    draft.location = {"address": "500 Park Ave, New York", "latitude": 40.76, "longitude": -73.97}

    booking = bookings.submit_draft(customer.id, draft, notes="Gate code 42")

    assert booking.total_price == Decimal("65.49")
    assert booking.estimated_duration == 75
    assert booking.scheduled_date.hour == 11 and booking.scheduled_date.minute == 30
    assert booking.notes == "Gate code 42"
    assert draft.missing_selections() == ["vehicle", "service", "provider", "date", "time", "location"]


def test_submit_incomplete_draft(customer):
    draft = BookingDraft()
    draft.time = "9:00 AM"
    with pytest.raises(ValidationError) as exc:
        bookings.submit_draft(customer.id, draft)
    assert "vehicle is required" in exc.value.details


def test_serialize_for_each_viewer(make_booking):
    booking = make_booking()

    as_customer = bookings.serialize_booking(booking)
    as_provider = bookings.serialize_booking(booking, viewer="provider")

    assert as_customer["provider"]["business_name"] == "Shine Mobile Detailing"
    assert as_customer["allowed_next_statuses"] == ["cancelled", "confirmed"]
    assert as_provider["customer"]["first_name"] == "Sam"
    assert "provider" not in as_provider


def test_delete_reviewed_booking_removes_review_and_chat(customer, provider, make_booking):
    from domain import chat, reviews
    from models.chat import ChatMessage, ChatRoom
    from models.provider import Provider
    from models.review import Review

    kept = make_booking(status="completed")
    reviews.create_review(customer.id, {"booking_id": kept.id, "rating": 3})
    doomed = make_booking(status="completed")
    reviews.create_review(customer.id, {"booking_id": doomed.id, "rating": 5})
    room = chat.get_or_create_room(doomed.id)
    chat.send_message(room.id, customer.id, "customer", "thanks again")

    bookings.delete_booking(doomed.id)
    db.session.expire_all()

    assert Review.query.filter_by(booking_id=doomed.id).count() == 0
    assert ChatRoom.query.filter_by(booking_id=doomed.id).count() == 0
    assert ChatMessage.query.count() == 0
    p = db.session.get(Provider, provider.id)
    assert (p.rating, p.review_count) == (Decimal("3.00"), 1)
