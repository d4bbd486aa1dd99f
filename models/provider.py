from datetime import datetime
from decimal import Decimal
from models.db import db

class Provider(db.Model):
    __tablename__ = "provider_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)

    business_name = db.Column(db.String(255), nullable=False)
    bio = db.Column(db.Text, nullable=True)
    service_area = db.Column(db.Text, nullable=False)
    address = db.Column(db.Text, nullable=True)
    phone_number = db.Column(db.String(30), nullable=True)

    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    service_radius = db.Column(db.Integer, nullable=False, default=5000)  # meters

    # Maintained by domain.reviews.recompute_provider_rating only
    rating = db.Column(db.Numeric(3, 2), nullable=False, default=Decimal("0.00"))
    review_count = db.Column(db.Integer, nullable=False, default=0)

    verified = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("provider_profile", uselist=False))
