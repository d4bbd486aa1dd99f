from datetime import datetime
from models.db import db

class ChatRoom(db.Model):
    __tablename__ = "chat_rooms"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    provider_id = db.Column(db.Integer, db.ForeignKey("provider_profiles.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    # touched on every message so room lists sort by last activity
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    booking = db.relationship("Booking")
    provider = db.relationship("Provider")
    customer = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("booking_id", name="uq_chat_rooms_booking"),
    )


class ChatMessage(db.Model):
    __tablename__ = "chat_messages"

    id = db.Column(db.Integer, primary_key=True)
    chat_room_id = db.Column(db.Integer, db.ForeignKey("chat_rooms.id"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    sender_role = db.Column(db.String(10), nullable=False)  # customer, provider
    message = db.Column(db.Text, nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    is_read = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    sender = db.relationship("User")
