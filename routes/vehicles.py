from flask import Blueprint, request, jsonify, g

from domain import vehicles
from utils.audit import log_event
from utils.auth_context import login_required

vehicle_bp = Blueprint("vehicles", __name__, url_prefix="/vehicles")


@vehicle_bp.get("")
@login_required
def list_vehicles():
    return jsonify([vehicles.serialize_vehicle(v) for v in vehicles.list_vehicles(g.user.id)]), 200


@vehicle_bp.post("")
@login_required
def create_vehicle():
    vehicle = vehicles.create_vehicle(g.user.id, request.get_json(silent=True) or {})
    log_event("VEHICLE_CREATE", user_id=g.user.id, entity="vehicle", entity_id=vehicle.id)
    return jsonify(vehicles.serialize_vehicle(vehicle)), 201


@vehicle_bp.get("/<int:vehicle_id>")
@login_required
def get_vehicle(vehicle_id: int):
    return jsonify(vehicles.serialize_vehicle(vehicles.get_vehicle(vehicle_id, g.user.id))), 200


@vehicle_bp.patch("/<int:vehicle_id>")
@login_required
def update_vehicle(vehicle_id: int):
    vehicle = vehicles.update_vehicle(vehicle_id, g.user.id, request.get_json(silent=True) or {})
    log_event("VEHICLE_UPDATE", user_id=g.user.id, entity="vehicle", entity_id=vehicle.id)
    return jsonify(vehicles.serialize_vehicle(vehicle)), 200


@vehicle_bp.post("/<int:vehicle_id>/default")
@login_required
def set_default(vehicle_id: int):
    vehicle = vehicles.set_default_vehicle(vehicle_id, g.user.id)
    log_event("VEHICLE_SET_DEFAULT", user_id=g.user.id, entity="vehicle", entity_id=vehicle.id)
    return jsonify(vehicles.serialize_vehicle(vehicle)), 200


@vehicle_bp.delete("/<int:vehicle_id>")
@login_required
def delete_vehicle(vehicle_id: int):
    vehicles.delete_vehicle(vehicle_id, g.user.id)
    log_event("VEHICLE_DELETE", user_id=g.user.id, entity="vehicle", entity_id=vehicle_id)
    return jsonify(message="Vehicle deleted"), 200
