from flask import Blueprint, request, jsonify, g

from domain import catalog
from security.rbac import require_roles, PROVIDER
from utils.audit import log_event
from utils.auth_context import login_required, current_provider

service_bp = Blueprint("services", __name__)


def _provider_or_404():
    provider = current_provider()
    if provider is None:
        return None, (jsonify(error="No provider profile found"), 404)
    return provider, None


@service_bp.get("/services")
@login_required
def list_services():
    return jsonify([catalog.serialize_service(s) for s in catalog.list_active_services()]), 200


@service_bp.post("/services")
@require_roles(PROVIDER)
def create_service():
    provider, failure = _provider_or_404()
    if failure:
        return failure

    service = catalog.create_service(provider.id, request.get_json(silent=True) or {})
    log_event("SERVICE_CREATE", user_id=g.user.id, entity="service", entity_id=service.id)
    return jsonify(catalog.serialize_service(service)), 201


@service_bp.patch("/services/<int:service_id>")
@require_roles(PROVIDER)
def update_service(service_id: int):
    provider, failure = _provider_or_404()
    if failure:
        return failure

    service = catalog.update_service(service_id, provider.id, request.get_json(silent=True) or {})
    log_event("SERVICE_UPDATE", user_id=g.user.id, entity="service", entity_id=service.id)
    return jsonify(catalog.serialize_service(service)), 200


@service_bp.post("/services/<int:service_id>/deactivate")
@require_roles(PROVIDER)
def deactivate_service(service_id: int):
    provider, failure = _provider_or_404()
    if failure:
        return failure

    catalog.deactivate_service(service_id, provider.id)
    log_event("SERVICE_DEACTIVATE", user_id=g.user.id, entity="service", entity_id=service_id)
    return jsonify(message="Service deactivated"), 200


@service_bp.post("/add-ons")
@require_roles(PROVIDER)
def create_add_on():
    provider, failure = _provider_or_404()
    if failure:
        return failure

    add_on = catalog.create_add_on(provider.id, request.get_json(silent=True) or {})
    log_event("ADD_ON_CREATE", user_id=g.user.id, entity="add_on", entity_id=add_on.id)
    return jsonify(catalog.serialize_add_on(add_on)), 201
