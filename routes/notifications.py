from flask import Blueprint, jsonify, g

from domain import notifications
from utils.auth_context import login_required

notification_bp = Blueprint("notifications", __name__, url_prefix="/notifications")


@notification_bp.get("")
@login_required
def list_notifications():
    rows = notifications.list_notifications(g.user.id)
    return jsonify([notifications.serialize_notification(n) for n in rows]), 200


@notification_bp.get("/unread-count")
@login_required
def unread_count():
    return jsonify(count=notifications.unread_count(g.user.id)), 200


@notification_bp.post("/<int:notification_id>/read")
@login_required
def mark_read(notification_id: int):
    notifications.mark_read(notification_id, g.user.id)
    return jsonify(message="Marked as read"), 200


@notification_bp.post("/read-all")
@login_required
def mark_all_read():
    return jsonify(marked=notifications.mark_all_read(g.user.id)), 200


@notification_bp.delete("/<int:notification_id>")
@login_required
def delete_notification(notification_id: int):
    notifications.delete_notification(notification_id, g.user.id)
    return jsonify(message="Notification deleted"), 200
