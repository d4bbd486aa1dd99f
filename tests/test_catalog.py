import pytest

from domain import catalog
from domain.errors import PermissionDenied, ValidationError
from security.rbac import PROVIDER


def _provider(make_user, name, lat, lng, radius=5000, area="Brooklyn, NY"):
    user = make_user(PROVIDER)
    return catalog.create_provider(user.id, {
        "business_name": name,
        "service_area": area,
        "latitude": lat,
        "longitude": lng,
        "service_radius": radius,
    })


def test_nearby_is_filtered_and_sorted(make_user):
    near = _provider(make_user, "Near", 40.7130, -74.0050)
    mid = _provider(make_user, "Mid", 40.7300, -73.9900)
    _provider(make_user, "Far", 34.0522, -118.2437)

    ranked = catalog.nearby_providers((40.7128, -74.0060))

    assert [r.entity.id for r in ranked] == [near.id, mid.id]
    assert ranked[0].distance < ranked[1].distance


def test_nearby_with_explicit_radius(make_user):
    far = _provider(make_user, "Far", 34.0522, -118.2437)
    ranked = catalog.nearby_providers((40.7128, -74.0060), radius_meters=5_000_000)
    assert [r.entity.id for r in ranked] == [far.id]


def test_serialized_distance_label(make_user):
    p = _provider(make_user, "Near", 40.7130, -74.0050)
    body = catalog.serialize_provider(p, 1540)
    assert body["distance_label"] == "1.5 km"
    assert body["rating"] == "0.00"


def test_search_by_service_area(make_user):
    bk = _provider(make_user, "BK Shine", 40.67, -73.94, area="Brooklyn, NY")
    _provider(make_user, "Queens Wash", 40.72, -73.79, area="Queens, NY")

    assert [p.id for p in catalog.search_providers("brooklyn")] == [bk.id]


def test_only_owner_can_change_a_service(service, make_user):
    other = _provider(make_user, "Rival", 40.7, -74.0)
    with pytest.raises(PermissionDenied):
        catalog.update_service(service.id, other.id, {"price": "1.00"})


def test_deactivated_service_drops_out_of_listing(provider, service):
    catalog.deactivate_service(service.id, provider.id)

    assert catalog.list_services_for_provider(provider.id) == []
    assert [s.id for s in catalog.list_services_for_provider(provider.id, include_inactive=True)] == [service.id]


def test_get_add_ons_rejects_foreign_ids(provider, add_ons, make_user):
    other = _provider(make_user, "Rival", 40.7, -74.0)
    foreign = catalog.create_add_on(other.id, {"name": "Wax", "price": "3.00"})

    assert [a.id for a in catalog.get_add_ons(provider.id, [a.id for a in add_ons])] == [a.id for a in add_ons]
    with pytest.raises(ValidationError):
        catalog.get_add_ons(provider.id, [foreign.id])


def test_service_validation(provider):
    with pytest.raises(ValidationError) as exc:
        catalog.create_service(provider.id, {"name": "X", "description": "short", "category": "nope", "price": 0, "duration": ""})
    assert len(exc.value.details) == 5
