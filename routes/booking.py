from flask import Blueprint, request, jsonify, current_app, g

from domain import bookings, catalog
from domain.pricing import compute_pricing
from security.rbac import require_roles, PROVIDER
from utils.audit import log_event
from utils.auth_context import login_required, current_provider

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def _viewer(booking):
    """'customer', 'provider' or None for the logged-in user."""
    if booking.customer_id == g.user.id:
        return "customer"
    provider = current_provider()
    if provider is not None and provider.id == booking.provider_id:
        return "provider"
    return None


# ---------- CUSTOMERS: price a selection before booking ----------
@booking_bp.post("/quote")
@login_required
def quote():
    data = request.get_json(silent=True) or {}
    service_id = data.get("service_id")
    if not service_id:
        return jsonify(error="service_id required"), 400

    try:
        service = catalog.get_service(int(service_id))
    except (TypeError, ValueError):
        return jsonify(error="Invalid service_id"), 400
    add_ons = catalog.get_add_ons(service.provider_id, data.get("add_on_ids") or [])

    pricing = compute_pricing(
        service.price,
        [a.price for a in add_ons],
        currency=current_app.config.get("PRICING_CURRENCY", "USD"),
    )
    return jsonify(pricing.to_dict()), 200


# ---------- CUSTOMERS: create booking ----------
@booking_bp.post("")
@login_required
def create_booking():
    data = request.get_json(silent=True) or {}
    booking = bookings.create_booking(g.user.id, data)

    log_event(
        "BOOKING_CREATE",
        user_id=g.user.id,
        entity="booking",
        entity_id=booking.id,
        metadata={"provider_id": booking.provider_id, "total_price": str(booking.total_price)},
    )
    return jsonify(bookings.serialize_booking(booking)), 201


# ---------- CUSTOMERS: view my bookings ----------
@booking_bp.get("/me")
@login_required
def my_bookings():
    rows = bookings.list_for_customer(g.user.id)
    status = request.args.get("status")
    if status:
        rows = [b for b in rows if b.status == status]
    return jsonify([bookings.serialize_booking(b) for b in rows]), 200


# ---------- PROVIDERS: bookings addressed to me ----------
@booking_bp.get("/provider")
@require_roles(PROVIDER)
def provider_bookings():
    provider = current_provider()
    if provider is None:
        return jsonify(error="No provider profile found"), 404

    rows = bookings.list_for_provider(provider.id)
    status = request.args.get("status")
    if status:
        rows = [b for b in rows if b.status == status]
    return jsonify([bookings.serialize_booking(b, viewer="provider") for b in rows]), 200


@booking_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    booking = bookings.get_booking(booking_id)
    viewer = _viewer(booking)
    if viewer is None:
        return jsonify(error="Booking not found"), 404
    return jsonify(bookings.serialize_booking(booking, viewer=viewer)), 200


# ---------- PROVIDERS: drive the status ----------
@booking_bp.post("/<int:booking_id>/status")
@require_roles(PROVIDER)
def update_status(booking_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        return jsonify(error="status required"), 400

    booking = bookings.get_booking(booking_id)
    if _viewer(booking) != "provider":
        return jsonify(error="Booking not found"), 404

    previous = booking.status
    booking = bookings.update_status(booking_id, status)
    log_event(
        "BOOKING_STATUS_UPDATE",
        user_id=g.user.id,
        entity="booking",
        entity_id=booking.id,
        metadata={"from": previous, "to": booking.status},
    )
    return jsonify(bookings.serialize_booking(booking, viewer="provider")), 200


# ---------- EITHER PARTY: cancel ----------
@booking_bp.post("/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    booking = bookings.get_booking(booking_id)
    viewer = _viewer(booking)
    if viewer is None:
        return jsonify(error="Booking not found"), 404

    booking = bookings.cancel_booking(booking_id)
    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"by": viewer})
    return jsonify(bookings.serialize_booking(booking, viewer=viewer)), 200


# ---------- CUSTOMERS: remove my booking ----------
@booking_bp.delete("/<int:booking_id>")
@login_required
def delete_booking(booking_id: int):
    booking = bookings.get_booking(booking_id)
    if booking.customer_id != g.user.id:
        return jsonify(error="Booking not found"), 404

    bookings.delete_booking(booking_id)
    log_event("BOOKING_DELETE", user_id=g.user.id, entity="booking", entity_id=booking_id)
    return jsonify(message="Booking deleted"), 200
