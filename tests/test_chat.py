import pytest

from domain import chat
from domain.chat import ChatFeed
from domain.errors import PermissionDenied, ValidationError
from models import db
from models.chat import ChatMessage, ChatRoom


@pytest.fixture
def room(make_booking):
    return chat.get_or_create_room(make_booking().id)


def test_one_room_per_booking(make_booking):
    booking = make_booking()
    first = chat.get_or_create_room(booking.id)
    second = chat.get_or_create_room(booking.id)

    assert first.id == second.id
    assert ChatRoom.query.filter_by(booking_id=booking.id).count() == 1


def test_participants(room, customer, provider_user, make_user):
    assert chat.participant_role(room, customer.id).value == "customer"
    assert chat.participant_role(room, provider_user.id).value == "provider"
    with pytest.raises(PermissionDenied):
        chat.require_participant(room, make_user().id)


def test_unread_count_until_marked_read(room, customer, provider_user):
    for text in ("Running 5 minutes late", "Parked out front", "Blue sedan"):
        chat.send_message(room.id, customer.id, "customer", text)
    chat.send_message(room.id, provider_user.id, "provider", "See you soon")

    assert chat.unread_count(room.id, provider_user.id) == 3
    assert chat.unread_count(room.id, customer.id) == 1

    assert chat.mark_read(room.id, provider_user.id) == 3
    assert chat.unread_count(room.id, customer.id) == 1
    assert chat.unread_count(room.id, provider_user.id) == 0


def test_mark_read_leaves_own_messages_alone(room, customer, provider_user):
    chat.send_message(room.id, provider_user.id, "provider", "On my way")
    chat.mark_read(room.id, provider_user.id)

    assert chat.unread_count(room.id, customer.id) == 1


def test_polling_after_id(room, customer):
    first = chat.send_message(room.id, customer.id, "customer", "one")
    second = chat.send_message(room.id, customer.id, "customer", "two")
    third = chat.send_message(room.id, customer.id, "customer", "three")

    assert [m.id for m in chat.list_messages(room.id)] == [first.id, second.id, third.id]
    assert [m.id for m in chat.list_messages(room.id, after_id=first.id)] == [second.id, third.id]
    assert [m.id for m in chat.list_messages(room.id, after_id=third.id)] == []


def test_empty_message_is_rejected(room, customer):
    with pytest.raises(ValidationError):
        chat.send_message(room.id, customer.id, "customer", "   ")


def test_image_only_message_is_allowed(room, customer):
    message = chat.send_message(room.id, customer.id, "customer", "", images=["https://cdn.example.com/scratch.jpg"])
    assert message.images == ["https://cdn.example.com/scratch.jpg"]


def test_list_rooms_carries_last_message_and_unread(room, customer, provider_user):
    chat.send_message(room.id, customer.id, "customer", "hello")

    [as_provider] = chat.list_rooms(provider_user.id, is_provider=True)
    [as_customer] = chat.list_rooms(customer.id, is_provider=False)

    assert as_provider["last_message"]["message"] == "hello"
    assert as_provider["unread_count"] == 1
    assert as_customer["unread_count"] == 0


def test_subscriber_receives_committed_messages(room, customer):
    received = []
    unsubscribe = chat.subscribe(room.id, received.append)

    message = chat.send_message(room.id, customer.id, "customer", "hi")
    assert [m["id"] for m in received] == [message.id]

    unsubscribe()
    chat.send_message(room.id, customer.id, "customer", "anyone?")
    assert len(received) == 1


def test_rolled_back_message_is_not_pushed(room, customer):
    received = []
    chat.subscribe(room.id, received.append)

    db.session.add(ChatMessage(chat_room_id=room.id, sender_id=customer.id, sender_role="customer", message="draft"))
    db.session.flush()
    db.session.rollback()

    kept = chat.send_message(room.id, customer.id, "customer", "final")
    assert [m["id"] for m in received] == [kept.id]


def test_failing_subscriber_does_not_break_others():
    feed = ChatFeed()
    received = []

    def broken(message):
        raise RuntimeError("socket closed")

    feed.subscribe(1, broken)
    feed.subscribe(1, received.append)
    feed.publish({"id": 10, "chat_room_id": 1})

    assert received == [{"id": 10, "chat_room_id": 1}]


def test_unsubscribe_is_idempotent():
    feed = ChatFeed()
    unsubscribe = feed.subscribe(3, lambda m: None)
    assert feed.subscriber_count(3) == 1

    unsubscribe()
    unsubscribe()
    assert feed.subscriber_count(3) == 0
