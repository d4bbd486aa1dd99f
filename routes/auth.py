from flask import Blueprint, request, jsonify, current_app, g

from domain.catalog import create_provider, serialize_provider
from domain.validation import validate_provider_input
from models import db
from models.user import User, Role
from security.csrf import issue_csrf_token
from security.password import hash_password, verify_password
from security.rbac import CUSTOMER, PROVIDER
from security.session import create_session, revoke_session, revoke_all_sessions, token_from_request
from utils.audit import log_event
from utils.auth_context import login_required, current_provider


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _registration_errors(data: dict) -> list:
    errors = []
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    min_len = current_app.config.get("PASSWORD_MIN_LEN", 8)

    if not _is_valid_email(email):
        errors.append("Invalid email address")
    if not isinstance(password, str) or len(password) < min_len:
        errors.append(f"Password must be at least {min_len} characters")
    for key, label in (("first_name", "First name"), ("last_name", "Last name")):
        if len((data.get(key) or "").strip()) < 2:
            errors.append(f"{label} must be at least 2 characters")
    if len((data.get("phone_number") or "").strip()) < 10:
        errors.append("Phone number must be at least 10 digits")
    return errors


def _create_user(data: dict, role_name: str) -> User:
    user = User(
        email=data["email"].strip().lower(),
        password_hash=hash_password(data["password"]),
        first_name=data["first_name"].strip(),
        last_name=data["last_name"].strip(),
        phone_number=data["phone_number"].strip(),
    )
    db.session.add(user)
    db.session.flush()

    role = Role.query.filter_by(name=role_name).first()
    if role:
        user.roles.append(role)
    return user


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    errors = _registration_errors(data)
    if errors:
        return jsonify(error="Invalid registration", details=errors), 400

    email = data["email"].strip().lower()
    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    user = _create_user(data, CUSTOMER)
    db.session.commit()
    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": CUSTOMER})

    return jsonify(id=user.id, message="Registered successfully"), 201


@auth_bp.post("/register/provider")
def register_provider():
    data = request.get_json(silent=True) or {}
    errors = _registration_errors(data)
    if errors:
        return jsonify(error="Invalid registration", details=errors), 400
    # raises ValidationError before the user row exists
    validate_provider_input(data)

    email = data["email"].strip().lower()
    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    user = _create_user(data, PROVIDER)
    db.session.commit()
    provider = create_provider(user.id, data)

    log_event("REGISTER_SUCCESS", user_id=user.id, entity="provider", entity_id=provider.id, metadata={"role": PROVIDER})
    return jsonify(id=user.id, provider=serialize_provider(provider), message="Registered successfully"), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    # Rotate: revoke any existing sessions for this user
    revoked_count = revoke_all_sessions(user.id)

    raw_token = create_session(user.id)
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "foamly_session")
    max_age = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    # token in the body is for mobile clients using the bearer header
    resp = jsonify(message="Login OK", token=raw_token)
    resp.set_cookie(
        cookie_name,
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=max_age,
        path="/",
    )
    resp = issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    provider = current_provider()
    return jsonify(
        id=g.user.id,
        email=g.user.email,
        roles=[r.name for r in g.user.roles],
        first_name=g.user.first_name,
        last_name=g.user.last_name,
        phone_number=g.user.phone_number,
        provider_id=provider.id if provider else None,
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "foamly_session")
    raw_token, _ = token_from_request()

    revoke_session(raw_token)
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name, path="/")
    return resp, 200
