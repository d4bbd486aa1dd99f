"""Providers, their services and their add-ons."""
import logging
from typing import Iterable, List, Optional

from flask import current_app

from domain import geo
from domain.errors import NotFoundError, PermissionDenied, ValidationError
from domain.validation import validate_add_on_input, validate_provider_input, validate_service_input
from models import db
from models.provider import Provider
from models.service import AddOn, Service

logger = logging.getLogger(__name__)


# ---------- providers ----------

def create_provider(user_id: int, data: dict) -> Provider:
    fields = validate_provider_input(data)
    provider = Provider(user_id=user_id, **fields)
    db.session.add(provider)
    db.session.commit()
    logger.info("provider %s created for user %s", provider.id, user_id)
    return provider


def get_provider(provider_id: int) -> Provider:
    provider = db.session.get(Provider, provider_id)
    if provider is None:
        raise NotFoundError("Provider not found")
    return provider


def get_provider_for_user(user_id: int) -> Optional[Provider]:
    return Provider.query.filter_by(user_id=user_id).first()


def update_provider(provider_id: int, data: dict) -> Provider:
    provider = get_provider(provider_id)
    # rating and review_count are derived from reviews, never taken from input
    fields = validate_provider_input(data, partial=True)
    for key, value in fields.items():
        setattr(provider, key, value)
    db.session.commit()
    return provider


def list_providers() -> List[Provider]:
    return (
        Provider.query
        .filter_by(is_active=True)
        .order_by(Provider.rating.desc(), Provider.id.asc())
        .all()
    )


def search_providers(service_area: str) -> List[Provider]:
    term = (service_area or "").strip()
    q = Provider.query.filter_by(is_active=True)
    if term:
        q = q.filter(Provider.service_area.ilike(f"%{term}%"))
    return q.order_by(Provider.rating.desc(), Provider.id.asc()).all()


def nearby_providers(point: geo.Point, radius_meters: Optional[float] = None) -> List[geo.Ranked]:
    default_radius = current_app.config.get("DEFAULT_SERVICE_RADIUS_METERS", geo.DEFAULT_RADIUS_METERS)
    candidates = geo.filter_within_radius(list_providers(), point, radius_meters, default_radius)
    return geo.rank_by_distance(candidates, point)


def serialize_provider(p: Provider, distance: Optional[float] = None) -> dict:
    out = {
        "id": p.id,
        "business_name": p.business_name,
        "bio": p.bio,
        "service_area": p.service_area,
        "address": p.address,
        "phone_number": p.phone_number,
        "latitude": p.latitude,
        "longitude": p.longitude,
        "service_radius": p.service_radius,
        "rating": str(p.rating),
        "review_count": p.review_count,
        "verified": p.verified,
    }
    if distance is not None:
        out["distance"] = round(distance, 1)
        out["distance_label"] = geo.format_distance(distance)
    return out


# ---------- services ----------

def list_active_services() -> List[Service]:
    return (
        Service.query
        .join(Provider, Service.provider_id == Provider.id)
        .filter(Service.is_active.is_(True), Provider.is_active.is_(True))
        .order_by(Service.created_at.desc(), Service.id.desc())
        .all()
    )


def list_services_for_provider(provider_id: int, include_inactive: bool = False) -> List[Service]:
    q = Service.query.filter_by(provider_id=provider_id)
    if not include_inactive:
        q = q.filter_by(is_active=True)
    return q.order_by(Service.created_at.desc(), Service.id.desc()).all()


def get_service(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service not found")
    return service


def create_service(provider_id: int, data: dict) -> Service:
    fields = validate_service_input(data)
    service = Service(provider_id=provider_id, **fields)
    db.session.add(service)
    db.session.commit()
    return service


def _owned_service(service_id: int, provider_id: int) -> Service:
    service = get_service(service_id)
    if service.provider_id != provider_id:
        raise PermissionDenied("Service belongs to another provider")
    return service


def update_service(service_id: int, provider_id: int, data: dict) -> Service:
    service = _owned_service(service_id, provider_id)
    fields = validate_service_input(data, partial=True)
    for key, value in fields.items():
        setattr(service, key, value)
    db.session.commit()
    return service


def deactivate_service(service_id: int, provider_id: int) -> Service:
    # soft delete: bookings keep pointing at it
    service = _owned_service(service_id, provider_id)
    service.is_active = False
    db.session.commit()
    return service


def serialize_service(s: Service) -> dict:
    return {
        "id": s.id,
        "provider_id": s.provider_id,
        "name": s.name,
        "description": s.description,
        "category": s.category,
        "price": str(s.price),
        "duration": s.duration,
        "is_active": s.is_active,
    }


# ---------- add-ons ----------

def create_add_on(provider_id: int, data: dict) -> AddOn:
    fields = validate_add_on_input(data)
    add_on = AddOn(provider_id=provider_id, **fields)
    db.session.add(add_on)
    db.session.commit()
    return add_on


def list_add_ons(provider_id: int) -> List[AddOn]:
    return AddOn.query.filter_by(provider_id=provider_id, is_active=True).order_by(AddOn.id.asc()).all()


def get_add_ons(provider_id: int, add_on_ids: Iterable) -> List[AddOn]:
    """Resolve add-on ids for one provider; unknown or foreign ids are rejected."""
    try:
        wanted = list(dict.fromkeys(int(i) for i in add_on_ids or []))
    except (TypeError, ValueError):
        raise ValidationError("Invalid add_on_ids")
    if not wanted:
        return []

    rows = AddOn.query.filter(
        AddOn.id.in_(wanted),
        AddOn.provider_id == provider_id,
        AddOn.is_active.is_(True),
    ).all()
    by_id = {a.id: a for a in rows}
    missing = [i for i in wanted if i not in by_id]
    if missing:
        raise ValidationError("Unknown add-ons", details=[f"add-on {i} is not offered by this provider" for i in missing])
    return [by_id[i] for i in wanted]


def serialize_add_on(a: AddOn) -> dict:
    return {
        "id": a.id,
        "provider_id": a.provider_id,
        "name": a.name,
        "description": a.description,
        "price": str(a.price),
        "duration_minutes": a.duration_minutes,
    }
