from datetime import datetime, timedelta

import pytest

from app import create_app
from config import TestConfig
from domain import bookings, catalog, vehicles
from models import db
from models.user import Role, User
from security.password import hash_password
from security.rbac import CUSTOMER, PROVIDER
from utils.seed import seed_roles

PASSWORD = "correct-horse-1"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        seed_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role=CUSTOMER, first_name="Sam", last_name="Rivera"):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            password_hash=hash_password(PASSWORD),
            first_name=first_name,
            last_name=last_name,
            phone_number="5551234567",
        )
        user.roles.append(Role.query.filter_by(name=role).one())
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user(CUSTOMER)


@pytest.fixture
def provider_user(make_user):
    return make_user(PROVIDER, first_name="Pat", last_name="Shine")


@pytest.fixture
def provider(provider_user):
    return catalog.create_provider(provider_user.id, {
        "business_name": "Shine Mobile Detailing",
        "service_area": "Manhattan, NY",
        "latitude": 40.7128,
        "longitude": -74.0060,
        "service_radius": 10000,
    })


@pytest.fixture
def service(provider):
    return catalog.create_service(provider.id, {
        "name": "Full Detail",
        "description": "Interior and exterior detail with wax",
        "category": "full_detail",
        "price": "49.99",
        "duration": "2-3 hours",
    })


@pytest.fixture
def add_ons(provider):
    return [
        catalog.create_add_on(provider.id, {"name": "Tire Shine", "price": "10.00", "duration_minutes": 15}),
        catalog.create_add_on(provider.id, {"name": "Air Freshener", "price": "5.50"}),
    ]


@pytest.fixture
def vehicle(customer):
    return vehicles.create_vehicle(customer.id, {
        "make": "Toyota",
        "model": "Camry",
        "year": "2021",
        "category": "sedan",
    })


def future_slot(days=2, hour=10, minute=0):
    day = datetime.utcnow() + timedelta(days=days)
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


@pytest.fixture
def booking_payload(provider, service, vehicle):
    def _payload(**overrides):
        data = {
            "provider_id": provider.id,
            "service_id": service.id,
            "vehicle_id": vehicle.id,
            "scheduled_date": future_slot().isoformat(),
            "scheduled_time": "10:00 AM",
            "location": "123 Main St, New York",
            "latitude": 40.7306,
            "longitude": -73.9352,
            "total_price": "49.99",
        }
        data.update(overrides)
        return data

    return _payload


@pytest.fixture
def make_booking(customer, booking_payload):
    def _make(status=None, **overrides):
        booking = bookings.create_booking(customer.id, booking_payload(**overrides))
        if status is not None:
            booking.status = status
            db.session.commit()
        return booking

    return _make


@pytest.fixture
def login(app):
    """Log a user in on a fresh client; returns (client, bearer headers)."""
    def _login(user):
        c = app.test_client()
        resp = c.post("/auth/login", json={"email": user.email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return c, {"Authorization": f"Bearer {resp.get_json()['token']}"}

    return _login
