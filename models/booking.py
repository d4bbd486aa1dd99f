from datetime import datetime
from models.db import db
from models.enums import BookingStatus

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    provider_id = db.Column(db.Integer, db.ForeignKey("provider_profiles.id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id"), nullable=False, index=True)

    scheduled_date = db.Column(db.DateTime, nullable=False, index=True)
    scheduled_time = db.Column(db.String(10), nullable=True)  # display slot, e.g. "9:30 AM"

    location = db.Column(db.Text, nullable=False)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    # status values: pending, confirmed, in_progress, completed, cancelled

    # fixed at creation time, never recomputed
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    estimated_duration = db.Column(db.Integer, nullable=False, default=60)  # minutes
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    customer = db.relationship("User", foreign_keys=[customer_id])
    provider = db.relationship("Provider", foreign_keys=[provider_id])
    service = db.relationship("Service", foreign_keys=[service_id])
    vehicle = db.relationship("Vehicle", foreign_keys=[vehicle_id])
