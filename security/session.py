import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from flask import request, current_app, g

from models import db
from models.session import Session

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

def _hash_token(token: str) -> str:
    # tokens are random, a plain digest is enough
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def create_session(user_id: int) -> str:
    """Store a session row keyed by the token hash and return the raw token."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    ))
    db.session.commit()
    return raw_token

def token_from_request() -> Tuple[Optional[str], bool]:
    """
    Returns (raw_token, via_cookie). The mobile app sends the token as a
    bearer header; browsers carry it in the session cookie.
    """
    header = request.headers.get("Authorization") or ""
    if header.startswith(BEARER_PREFIX):
        token = header[len(BEARER_PREFIX):].strip()
        if token:
            return token, False

    token = request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "foamly_session"))
    return token or None, bool(token)

def get_session_from_request() -> Optional[Session]:
    raw_token, via_cookie = token_from_request()
    g.auth_via_cookie = via_cookie
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if sess is None:
        return None

    now = datetime.utcnow()
    reason = sess.expiry_reason(now, current_app.config.get("IDLE_TIMEOUT_SECONDS", 30 * 60))
    if reason:
        logger.debug("session %s for user %s rejected: %s", sess.id, sess.user_id, reason)
        return None

    sess.touch(now)
    db.session.commit()
    return sess

def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    revoked = (
        Session.query
        .filter_by(token_hash=_hash_token(raw_token), revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return bool(revoked)

def revoke_all_sessions(user_id: int) -> int:
    """Revoke every live session of a user (login rotates sessions)."""
    count = (
        Session.query
        .filter_by(user_id=user_id, revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return count
