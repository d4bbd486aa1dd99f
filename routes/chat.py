from flask import Blueprint, request, jsonify, current_app, g

from domain import bookings, chat
from security.rbac import PROVIDER, has_role
from utils.audit import log_event
from utils.auth_context import login_required, current_provider

chat_bp = Blueprint("chat", __name__)


def _room_for_participant(room_id: int):
    room = chat.get_room(room_id)
    role = chat.require_participant(room, g.user.id)
    return room, role


@chat_bp.get("/chat/rooms")
@login_required
def list_rooms():
    as_provider = request.args.get("as") == "provider" or (
        request.args.get("as") is None and has_role(PROVIDER)
    )
    return jsonify(chat.list_rooms(g.user.id, as_provider)), 200


@chat_bp.post("/bookings/<int:booking_id>/chat")
@login_required
def open_room(booking_id: int):
    booking = bookings.get_booking(booking_id)
    provider = current_provider()
    is_party = booking.customer_id == g.user.id or (provider is not None and provider.id == booking.provider_id)
    if not is_party:
        return jsonify(error="Booking not found"), 404

    room = chat.get_or_create_room(booking_id)
    return jsonify(chat.serialize_room(room)), 200


@chat_bp.get("/chat/rooms/<int:room_id>/messages")
@login_required
def list_messages(room_id: int):
    room, _ = _room_for_participant(room_id)
    after_id = request.args.get("after_id", type=int)
    limit = current_app.config.get("CHAT_POLL_MAX_MESSAGES", 200) if after_id is not None else None
    rows = chat.list_messages(room.id, after_id=after_id, limit=limit)
    return jsonify([chat.serialize_message(m) for m in rows]), 200


@chat_bp.post("/chat/rooms/<int:room_id>/messages")
@login_required
def send_message(room_id: int):
    room, role = _room_for_participant(room_id)
    data = request.get_json(silent=True) or {}

    message = chat.send_message(room.id, g.user.id, role, data.get("message"), data.get("images"))
    log_event("CHAT_MESSAGE_SEND", user_id=g.user.id, entity="chat_room", entity_id=room.id, metadata={"message_id": message.id})
    return jsonify(chat.serialize_message(message)), 201


@chat_bp.post("/chat/rooms/<int:room_id>/read")
@login_required
def mark_read(room_id: int):
    room, _ = _room_for_participant(room_id)
    count = chat.mark_read(room.id, g.user.id)
    return jsonify(marked=count), 200
