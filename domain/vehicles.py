import logging
from typing import List

from domain.errors import NotFoundError, ValidationError
from domain.validation import validate_vehicle_input
from models import db
from models.vehicle import Vehicle

logger = logging.getLogger(__name__)


def list_vehicles(user_id: int) -> List[Vehicle]:
    return (
        Vehicle.query
        .filter_by(user_id=user_id)
        .order_by(Vehicle.is_default.desc(), Vehicle.created_at.desc(), Vehicle.id.desc())
        .all()
    )


def get_vehicle(vehicle_id: int, user_id: int) -> Vehicle:
    vehicle = Vehicle.query.filter_by(id=vehicle_id, user_id=user_id).first()
    if vehicle is None:
        raise NotFoundError("Vehicle not found")
    return vehicle


def _clear_default(user_id: int, keep_id=None) -> None:
    # Issued in the same transaction as the new default so the partial
    # unique index never sees two defaults.
    q = Vehicle.query.filter(Vehicle.user_id == user_id, Vehicle.is_default.is_(True))
    if keep_id is not None:
        q = q.filter(Vehicle.id != keep_id)
    q.update({"is_default": False}, synchronize_session="fetch")


def create_vehicle(user_id: int, data: dict) -> Vehicle:
    fields = validate_vehicle_input(data)
    has_any = Vehicle.query.filter_by(user_id=user_id).first() is not None

    # an owner's first vehicle is the default
    make_default = fields.pop("is_default", False) or not has_any
    if make_default:
        _clear_default(user_id)

    vehicle = Vehicle(user_id=user_id, is_default=make_default, **fields)
    db.session.add(vehicle)
    db.session.commit()
    return vehicle


def update_vehicle(vehicle_id: int, user_id: int, data: dict) -> Vehicle:
    vehicle = get_vehicle(vehicle_id, user_id)
    fields = validate_vehicle_input(data, partial=True)

    make_default = fields.pop("is_default", None)
    if make_default:
        _clear_default(user_id, keep_id=vehicle.id)
        vehicle.is_default = True
    elif make_default is False and vehicle.is_default:
        # the default only moves by making another vehicle the default
        raise ValidationError("Invalid vehicle", details=["Choose another default vehicle instead of unsetting this one"])

    for key, value in fields.items():
        setattr(vehicle, key, value)
    db.session.commit()
    return vehicle


def set_default_vehicle(vehicle_id: int, user_id: int) -> Vehicle:
    vehicle = get_vehicle(vehicle_id, user_id)
    _clear_default(user_id, keep_id=vehicle.id)
    vehicle.is_default = True
    db.session.commit()
    logger.info("vehicle %s is now default for user %s", vehicle.id, user_id)
    return vehicle


def delete_vehicle(vehicle_id: int, user_id: int) -> None:
    vehicle = get_vehicle(vehicle_id, user_id)
    was_default = vehicle.is_default
    db.session.delete(vehicle)
    db.session.flush()

    if was_default:
        successor = (
            Vehicle.query
            .filter_by(user_id=user_id)
            .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
            .first()
        )
        if successor is not None:
            successor.is_default = True
    db.session.commit()


def serialize_vehicle(v: Vehicle) -> dict:
    return {
        "id": v.id,
        "make": v.make,
        "model": v.model,
        "year": v.year,
        "color": v.color,
        "license_plate": v.license_plate,
        "category": v.category,
        "is_default": v.is_default,
        "created_at": v.created_at.isoformat(),
    }
