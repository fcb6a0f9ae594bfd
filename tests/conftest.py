"""
Pytest configuration and fixtures
"""
import os

# Configure the app before it is imported: in-memory database, no Redis
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "false"
os.environ["FIREBASE_PROJECT_ID"] = "cleanfoss-test"
os.environ.pop("STRIPE_SECRET_KEY", None)
os.environ.pop("HEALTH_CHECK_SECRET", None)
os.environ.pop("MONITORING_SECRET", None)

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from cleanfoss.auth import get_current_user, get_optional_user
from cleanfoss.config import DEFAULT_COMPANY_ID, SUPER_ADMIN_EMAIL
from cleanfoss.database import Base, SessionLocal, engine, get_db
from cleanfoss.main import app
from cleanfoss.models import CarBrand, CarModel, Company, User, UserRole
from cleanfoss.seed import seed_database


@pytest.fixture
def db():
    """Fresh schema and session per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog(db):
    """Default company with the demo services and extras"""
    seed_database(db)
    return db.get(Company, DEFAULT_COMPANY_ID)


class AuthState:
    """Who the overridden auth dependencies report as signed in"""

    def __init__(self):
        self.user = None

    def login(self, user):
        self.user = user

    def logout(self):
        self.user = None


@pytest.fixture
def auth():
    return AuthState()


@pytest.fixture
def client(db, auth):
    """Test client sharing the test session, with Firebase auth stubbed out"""

    def override_get_db():
        return db

    def override_current_user():
        if auth.user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return auth.user

    def override_optional_user():
        return auth.user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    app.dependency_overrides[get_optional_user] = override_optional_user

    # Unhandled errors must come back as 500 responses, not test failures
    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory for persisted users"""
    counter = {"n": 0}

    def _make_user(role=UserRole.CUSTOMER, company_id=DEFAULT_COMPANY_ID, email=None, name=None):
        counter["n"] += 1
        user = User(
            email=email or f"{role.value.lower()}{counter['n']}@example.dk",
            name=name or f"{role.value.title()} {counter['n']}",
            role=role.value,
            company_id=company_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def customer(catalog, make_user):
    return make_user(UserRole.CUSTOMER, email="kunde@example.dk", name="Mette Hansen")


@pytest.fixture
def admin(catalog, make_user):
    return make_user(UserRole.ADMIN, email="admin@default.dk", name="Default Admin")


@pytest.fixture
def super_admin(catalog, db):
    return db.query(User).filter(User.email == SUPER_ADMIN_EMAIL).one()


@pytest.fixture
def other_company(db, catalog):
    company = Company(id="other-company", name="Other Wash", slug="other-wash")
    db.add(company)
    db.commit()
    return company


@pytest.fixture
def suv_model(db, catalog):
    """A Volvo XC90 registered as an SUV in the default company"""
    brand = CarBrand(company_id=DEFAULT_COMPANY_ID, name="Volvo", slug="volvo")
    db.add(brand)
    db.flush()
    model = CarModel(brand_id=brand.id, name="XC90", slug="xc90", vehicle_type="SUV")
    db.add(model)
    db.commit()
    return model


def enhanced_payload(**overrides):
    """A valid one-page booking form submission"""
    payload = {
        "customerInfo": {
            "name": "Lars Jensen",
            "email": "Lars.Jensen@Example.dk",
            "phone": "+4512345678",
            "address": {"street": "Vesterbrogade 1", "postalCode": "1620", "city": "København V"},
        },
        "serviceId": "service-1",
        "vehicleInfo": {
            "make": "Toyota",
            "model": "Corolla",
            "year": 2019,
            "color": "Blå",
            "licensePlate": "ab 12 345",
        },
        "selectedDateTime": "2026-11-02T10:00:00Z",
        "selectedExtras": ["extra-1"],
        "pricing": {
            "lineItems": [
                {"id": "li-1", "name": "Eksterior Vask", "price": 350, "productId": "service-1", "type": "service"},
                {"id": "li-2", "name": "Dækskum behandling", "price": 75, "productId": "extra-1", "type": "extra"},
            ],
            "subtotal": 425,
            "discount": 0,
            "total": 531,
            "vat": 106,
        },
        "specialRequests": "Ring ved ankomst",
    }
    payload.update(overrides)
    return payload


def wizard_payload(**overrides):
    """A valid booking wizard submission"""
    payload = {
        "serviceId": "service-5",
        "extras": [],
        "vehicleId": "vehicle-placeholder",
        "scheduledAt": "2026-11-03T08:30:00Z",
        "duration": 25,
        "customer": {"name": "Sofie Nielsen", "email": "sofie@example.dk", "phone": "+4587654321"},
        "location": {
            "name": "Hjemme",
            "address": "Nørrebrogade 10",
            "city": "København N",
            "postalCode": "2200",
            "country": "Denmark",
        },
        "totalPrice": 299.00,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_booking(client, catalog):
    """Create a wizard booking through the API and return its id"""

    def _create_booking(**overrides):
        response = client.post("/bookings", json=wizard_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["bookingId"]

    return _create_booking


@pytest.fixture
def enhanced():
    return enhanced_payload


@pytest.fixture
def wizard():
    return wizard_payload
