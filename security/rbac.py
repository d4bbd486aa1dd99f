import logging
from functools import wraps
from flask import g, jsonify, request

logger = logging.getLogger(__name__)

CUSTOMER = "CUSTOMER"
PROVIDER = "PROVIDER"
ADMIN = "ADMIN"

def role_names(user) -> set:
    return {r.name for r in user.roles} if user is not None else set()

def has_role(role_name: str) -> bool:
    """True when the logged-in user holds ``role_name``."""
    return role_name in role_names(getattr(g, "user", None))

def require_roles(*allowed: str):
    """
    @require_roles(PROVIDER) on a view. ADMIN passes every check.
    """
    wanted = set(allowed)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            held = role_names(user)
            if ADMIN not in held and not held & wanted:
                logger.info("user %s denied %s %s (needs %s)", user.id, request.method, request.path, sorted(wanted))
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
