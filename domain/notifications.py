"""
Notification records shown in the in-app notifications list.

The ``notify_*`` helpers are called by the booking operations as best-effort
side effects; callers wrap them and never let their failures escape.
"""
import logging
from datetime import datetime
from typing import List, Optional

from domain.errors import NotFoundError
from models import db
from models.notification import Notification
from models.provider import Provider

logger = logging.getLogger(__name__)

NOTIFICATION_PAGE_SIZE = 50

STATUS_TEMPLATES = {
    "in_progress": ("Service Started", "{provider} has started working on your vehicle."),
    "completed": ("Service Completed", "{provider} has completed your service. Please leave a review!"),
    "cancelled": ("Booking Cancelled", "Your booking with {provider} has been cancelled."),
}


def create_notification(user_id: int, type: str, title: str, message: str, data: Optional[dict] = None) -> Notification:
    row = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data or {},
        is_read=False,
    )
    db.session.add(row)
    db.session.commit()
    logger.info("notification %s sent to user %s", type, user_id)
    return row


def notify_provider_new_booking(provider_id: int, booking_id: int, customer_name: str) -> Optional[Notification]:
    provider = db.session.get(Provider, provider_id)
    if provider is None:
        return None
    return create_notification(
        provider.user_id,
        "BOOKING_REQUEST",
        "New Booking Request",
        f"{customer_name} has requested a booking. Tap to review.",
        {"booking_id": booking_id},
    )


def notify_customer_booking_confirmed(customer_id: int, booking_id: int, provider_name: str, scheduled_date: datetime) -> Notification:
    return create_notification(
        customer_id,
        "BOOKING_CONFIRMED",
        "Booking Confirmed!",
        f"{provider_name} has confirmed your booking for {scheduled_date.strftime('%b %d, %Y')}.",
        {"booking_id": booking_id},
    )


def notify_booking_status_change(customer_id: int, booking_id: int, status: str, provider_name: str) -> Optional[Notification]:
    template = STATUS_TEMPLATES.get(status)
    if template is None:
        return None
    title, message = template
    return create_notification(
        customer_id,
        f"BOOKING_{status.upper()}",
        title,
        message.format(provider=provider_name),
        {"booking_id": booking_id},
    )


def list_notifications(user_id: int) -> List[Notification]:
    return (
        Notification.query
        .filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATION_PAGE_SIZE)
        .all()
    )


def unread_count(user_id: int) -> int:
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()


def _owned(notification_id: int, user_id: int) -> Notification:
    row = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if row is None:
        raise NotFoundError("Notification not found")
    return row


def mark_read(notification_id: int, user_id: int) -> Notification:
    row = _owned(notification_id, user_id)
    row.is_read = True
    db.session.commit()
    return row


def mark_all_read(user_id: int) -> int:
    count = (
        Notification.query
        .filter_by(user_id=user_id, is_read=False)
        .update({"is_read": True}, synchronize_session=False)
    )
    db.session.commit()
    return count


def delete_notification(notification_id: int, user_id: int) -> None:
    row = _owned(notification_id, user_id)
    db.session.delete(row)
    db.session.commit()


def serialize_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "data": n.data or {},
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat(),
    }
