import secrets
from flask import request, jsonify, current_app, g

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Reachable before a session (and its CSRF cookie) exists
CSRF_EXEMPT_PATHS = frozenset({
    "/auth/login",
    "/auth/register",
    "/auth/register/provider",
    "/health",
})

def issue_csrf_token(resp):
    """Attach a fresh double-submit token; the client echoes it in X-CSRF-Token."""
    resp.set_cookie(
        CSRF_COOKIE,
        secrets.token_urlsafe(32),
        httponly=False,  # the client must read it back
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp

def _tokens_match() -> bool:
    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    return bool(cookie_token and header_token) and secrets.compare_digest(cookie_token, header_token)

def require_csrf():
    if not _tokens_match():
        return jsonify(error="CSRF validation failed"), 403
    return None

def csrf_protect():
    """
    before_request hook. Bearer-token clients never carry ambient
    credentials, so only cookie-authenticated writes are checked.
    """
    if request.method not in UNSAFE_METHODS or request.path in CSRF_EXEMPT_PATHS:
        return None
    if getattr(g, "user", None) is None or not getattr(g, "auth_via_cookie", False):
        return None
    return require_csrf()
