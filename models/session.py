from datetime import datetime, timedelta
from typing import Optional

from models.db import db

class Session(db.Model):
    """A server-side login. Clients hold the raw token; rows hold its SHA-256."""
    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    revoked = db.Column(db.Boolean, default=False, nullable=False)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    def expiry_reason(self, now: datetime, idle_seconds: int) -> Optional[str]:
        """Why the session can no longer be used at ``now``, or None while live."""
        if self.revoked:
            return "revoked"
        if self.expires_at <= now:
            return "expired"
        if (self.last_seen_at or self.created_at) + timedelta(seconds=idle_seconds) <= now:
            return "idle"
        return None

    def touch(self, now: datetime) -> None:
        self.last_seen_at = now
