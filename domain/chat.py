"""
Booking chat: one room per booking, append-only messages, read tracking and
a push feed for newly committed messages.

Rooms are created lazily the first time a booking's chat is opened. The
``uq_chat_rooms_booking`` constraint decides concurrent creations; the loser
rolls back and returns the winner's room.

``ChatFeed`` is the push path. Inserted messages are captured by an ORM
``after_insert`` hook and handed to subscribers only once the surrounding
transaction commits. Polling (``list_messages(after_id=...)``) may deliver
the same message again; message ids increase monotonically and are the
de-duplication key for consumers using both paths.
"""
import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Callable, List, Optional

from flask import current_app, has_app_context
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as OrmSession, object_session

from domain.errors import NotFoundError, PermissionDenied, ValidationError
from models import db
from models.booking import Booking
from models.chat import ChatMessage, ChatRoom
from models.enums import SenderRole
from models.provider import Provider

logger = logging.getLogger(__name__)

_PENDING_KEY = "chat_feed_pending"


class ChatFeed:
    """Per-application registry of room subscribers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners = defaultdict(list)

    def subscribe(self, room_id: int, callback: Callable[[dict], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners[room_id].append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._listeners.get(room_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)
                if not callbacks:
                    self._listeners.pop(room_id, None)

        return unsubscribe

    def subscriber_count(self, room_id: int) -> int:
        with self._lock:
            return len(self._listeners.get(room_id, []))

    def publish(self, message: dict) -> None:
        with self._lock:
            callbacks = list(self._listeners.get(message["chat_room_id"], []))
        for callback in callbacks:
            try:
                callback(message)
            except Exception:
                logger.exception("chat subscriber failed for room %s", message["chat_room_id"])


def init_chat_feed(app) -> ChatFeed:
    feed = ChatFeed()
    app.extensions["chat_feed"] = feed
    return feed


def _feed() -> ChatFeed:
    return current_app.extensions["chat_feed"]


@event.listens_for(ChatMessage, "after_insert")
def _capture_insert(mapper, connection, target):
    session = object_session(target)
    if session is not None:
        # snapshot now: SQL cannot be emitted from after_commit
        session.info.setdefault(_PENDING_KEY, []).append(serialize_message(target))


@event.listens_for(OrmSession, "after_commit")
def _publish_committed(session):
    pending = session.info.pop(_PENDING_KEY, None)
    if not pending or not has_app_context():
        return
    feed = current_app.extensions.get("chat_feed")
    if feed is None:
        return
    for message in pending:
        feed.publish(message)


@event.listens_for(OrmSession, "after_soft_rollback")
def _drop_rolled_back(session, previous_transaction):
    session.info.pop(_PENDING_KEY, None)


def subscribe(room_id: int, callback: Callable[[dict], None]) -> Callable[[], None]:
    """Call ``callback`` once per message committed to the room. Returns an unsubscribe function."""
    return _feed().subscribe(room_id, callback)


# ---------- rooms ----------

def get_room(room_id: int) -> ChatRoom:
    room = db.session.get(ChatRoom, room_id)
    if room is None:
        raise NotFoundError("Chat room not found")
    return room


def get_or_create_room(booking_id: int) -> ChatRoom:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")

    room = ChatRoom.query.filter_by(booking_id=booking_id).first()
    if room is not None:
        return room

    room = ChatRoom(
        booking_id=booking.id,
        customer_id=booking.customer_id,
        provider_id=booking.provider_id,
        is_active=True,
    )
    db.session.add(room)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        room = ChatRoom.query.filter_by(booking_id=booking_id).first()
        if room is None:
            raise
        return room

    logger.info("chat room %s opened for booking %s", room.id, booking_id)
    return room


def participant_role(room: ChatRoom, user_id: int) -> Optional[SenderRole]:
    if room.customer_id == user_id:
        return SenderRole.CUSTOMER
    provider = db.session.get(Provider, room.provider_id)
    if provider is not None and provider.user_id == user_id:
        return SenderRole.PROVIDER
    return None


def require_participant(room: ChatRoom, user_id: int) -> SenderRole:
    role = participant_role(room, user_id)
    if role is None:
        raise PermissionDenied("Not a participant of this chat")
    return role


def unread_count(room_id: int, user_id: int) -> int:
    return (
        ChatMessage.query
        .filter(
            ChatMessage.chat_room_id == room_id,
            ChatMessage.is_read.is_(False),
            ChatMessage.sender_id != user_id,
        )
        .count()
    )


def last_message(room_id: int) -> Optional[ChatMessage]:
    return (
        ChatMessage.query
        .filter_by(chat_room_id=room_id)
        .order_by(ChatMessage.id.desc())
        .first()
    )


def list_rooms(user_id: int, is_provider: bool) -> List[dict]:
    q = ChatRoom.query
    if is_provider:
        provider = Provider.query.filter_by(user_id=user_id).first()
        if provider is None:
            return []
        q = q.filter(ChatRoom.provider_id == provider.id)
    else:
        q = q.filter(ChatRoom.customer_id == user_id)

    rooms = q.order_by(ChatRoom.updated_at.desc(), ChatRoom.id.desc()).all()
    out = []
    for room in rooms:
        last = last_message(room.id)
        item = serialize_room(room)
        item["last_message"] = serialize_message(last) if last else None
        item["unread_count"] = unread_count(room.id, user_id)
        out.append(item)
    return out


# ---------- messages ----------

def list_messages(room_id: int, after_id: Optional[int] = None, limit: Optional[int] = None) -> List[ChatMessage]:
    """Room history oldest first; ``after_id`` returns only newer messages (polling)."""
    q = ChatMessage.query.filter_by(chat_room_id=room_id)
    if after_id is not None:
        q = q.filter(ChatMessage.id > after_id)
    q = q.order_by(ChatMessage.id.asc())
    if limit:
        q = q.limit(limit)
    return q.all()


def send_message(room_id: int, sender_id: int, sender_role, body: str, images: Optional[list] = None) -> ChatMessage:
    try:
        role = SenderRole(sender_role)
    except ValueError:
        raise ValidationError("sender_role must be customer or provider")

    text = body.strip() if isinstance(body, str) else ""
    images = [i for i in (images or []) if isinstance(i, str) and i.strip()]
    if not text and not images:
        raise ValidationError("Message is empty")

    room = get_room(room_id)
    message = ChatMessage(
        chat_room_id=room.id,
        sender_id=sender_id,
        sender_role=role.value,
        message=text,
        images=images,
        is_read=False,
    )
    db.session.add(message)
    room.updated_at = datetime.utcnow()
    db.session.commit()
    return message


def mark_read(room_id: int, user_id: int) -> int:
    """Flag every unread message in the room not sent by ``user_id``."""
    count = (
        ChatMessage.query
        .filter(
            ChatMessage.chat_room_id == room_id,
            ChatMessage.sender_id != user_id,
            ChatMessage.is_read.is_(False),
        )
        .update({"is_read": True}, synchronize_session=False)
    )
    db.session.commit()
    return count


def serialize_room(room: ChatRoom) -> dict:
    return {
        "id": room.id,
        "booking_id": room.booking_id,
        "customer_id": room.customer_id,
        "provider_id": room.provider_id,
        "is_active": room.is_active,
        "created_at": room.created_at.isoformat(),
        "updated_at": room.updated_at.isoformat(),
    }


def serialize_message(m: ChatMessage) -> dict:
    return {
        "id": m.id,
        "chat_room_id": m.chat_room_id,
        "sender_id": m.sender_id,
        "sender_role": m.sender_role,
        "message": m.message,
        "images": list(m.images or []),
        "is_read": bool(m.is_read),
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }
