from datetime import date

from flask import Blueprint, request, jsonify, g

from domain import catalog, reviews, schedule
from domain.availability import available_time_slots
from domain.validation import parse_datetime
from security.rbac import require_roles, PROVIDER
from utils.audit import log_event
from utils.auth_context import login_required, current_provider

provider_bp = Blueprint("providers", __name__, url_prefix="/providers")


@provider_bp.get("")
@login_required
def list_providers():
    return jsonify([catalog.serialize_provider(p) for p in catalog.list_providers()]), 200


@provider_bp.get("/search")
@login_required
def search_providers():
    area = request.args.get("area") or ""
    return jsonify([catalog.serialize_provider(p) for p in catalog.search_providers(area)]), 200


@provider_bp.get("/nearby")
@login_required
def nearby_providers():
    lat = request.args.get("lat", type=float)
    lng = request.args.get("lng", type=float)
    radius = request.args.get("radius", type=float)
    if lat is None or lng is None:
        return jsonify(error="lat and lng are required"), 400
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        return jsonify(error="Invalid coordinates"), 400
    if radius is not None and radius <= 0:
        return jsonify(error="radius must be positive"), 400

    ranked = catalog.nearby_providers((lat, lng), radius)
    return jsonify([catalog.serialize_provider(r.entity, r.distance) for r in ranked]), 200


@provider_bp.get("/<int:provider_id>")
@login_required
def get_provider(provider_id: int):
    return jsonify(catalog.serialize_provider(catalog.get_provider(provider_id))), 200


@provider_bp.patch("/me")
@require_roles(PROVIDER)
def update_my_profile():
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    data = request.get_json(silent=True) or {}
    provider = catalog.update_provider(provider.id, data)
    log_event("PROVIDER_PROFILE_UPDATE", user_id=g.user.id, entity="provider", entity_id=provider.id)
    return jsonify(catalog.serialize_provider(provider)), 200


@provider_bp.get("/<int:provider_id>/services")
@login_required
def provider_services(provider_id: int):
    catalog.get_provider(provider_id)
    mine = current_provider()
    include_inactive = mine is not None and mine.id == provider_id
    rows = catalog.list_services_for_provider(provider_id, include_inactive=include_inactive)
    return jsonify([catalog.serialize_service(s) for s in rows]), 200


@provider_bp.get("/<int:provider_id>/add-ons")
@login_required
def provider_add_ons(provider_id: int):
    catalog.get_provider(provider_id)
    return jsonify([catalog.serialize_add_on(a) for a in catalog.list_add_ons(provider_id)]), 200


@provider_bp.get("/<int:provider_id>/reviews")
@login_required
def provider_reviews(provider_id: int):
    catalog.get_provider(provider_id)
    return jsonify([reviews.serialize_review(r) for r in reviews.list_for_provider(provider_id)]), 200


@provider_bp.get("/<int:provider_id>/time-slots")
@login_required
def provider_time_slots(provider_id: int):
    catalog.get_provider(provider_id)
    date_str = request.args.get("date")
    try:
        day = date.fromisoformat(date_str)
    except (TypeError, ValueError):
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400
    return jsonify(date=day.isoformat(), slots=available_time_slots(provider_id, day)), 200


@provider_bp.get("/<int:provider_id>/availability")
@login_required
def provider_availability(provider_id: int):
    catalog.get_provider(provider_id)
    return jsonify([schedule.serialize_availability(w) for w in schedule.list_availability(provider_id)]), 200


@provider_bp.put("/me/availability")
@require_roles(PROVIDER)
def set_my_availability():
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    data = request.get_json(silent=True)
    if not isinstance(data, list):
        return jsonify(error="Expected a list of availability windows"), 400

    windows = schedule.replace_availability(provider.id, data)
    log_event("PROVIDER_AVAILABILITY_SET", user_id=g.user.id, entity="provider", entity_id=provider.id)
    return jsonify([schedule.serialize_availability(w) for w in windows]), 200


@provider_bp.delete("/me/availability/<int:window_id>")
@require_roles(PROVIDER)
def delete_my_availability(window_id: int):
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    schedule.delete_availability(window_id, provider.id)
    log_event("PROVIDER_AVAILABILITY_DELETE", user_id=g.user.id, entity="provider_availability", entity_id=window_id)
    return jsonify(message="Deleted"), 200


@provider_bp.get("/me/blocked-times")
@require_roles(PROVIDER)
def my_blocked_times():
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    try:
        start = parse_datetime(request.args["start"]) if request.args.get("start") else None
        end = parse_datetime(request.args["end"]) if request.args.get("end") else None
    except ValueError:
        return jsonify(error="Invalid start or end"), 400

    rows = schedule.list_blocked_times(provider.id, start, end)
    return jsonify([schedule.serialize_blocked_time(b) for b in rows]), 200


@provider_bp.post("/me/blocked-times")
@require_roles(PROVIDER)
def create_my_blocked_time():
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    data = request.get_json(silent=True) or {}
    blocked = schedule.create_blocked_time(provider.id, data)
    log_event("PROVIDER_TIME_BLOCKED", user_id=g.user.id, entity="provider_blocked_time", entity_id=blocked.id)
    return jsonify(schedule.serialize_blocked_time(blocked)), 201


@provider_bp.delete("/me/blocked-times/<int:blocked_id>")
@require_roles(PROVIDER)
def delete_my_blocked_time(blocked_id: int):
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    schedule.delete_blocked_time(blocked_id, provider.id)
    log_event("PROVIDER_TIME_UNBLOCKED", user_id=g.user.id, entity="provider_blocked_time", entity_id=blocked_id)
    return jsonify(message="Deleted"), 200
