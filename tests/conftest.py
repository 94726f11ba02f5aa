from datetime import timedelta
from unittest import mock

import pytest
from jose import jwt

from marketplace.app import create_app
from marketplace.database.documents import (
    BUYERS, LANDLORDS, LEASES, LOCATIONS, MANAGERS, PROPERTIES, TENANTS,
)
from marketplace.database.memory_store import MemoryStore
from marketplace.utils.auth import TokenVerifier
from marketplace.utils.validation import isoformat, utcnow

JWT_SECRET = "test-signing-secret"


def _days(offset: int) -> str:
    return isoformat(utcnow() + timedelta(days=offset))


def seed_store(store: MemoryStore) -> MemoryStore:
    store.insert_seed(LOCATIONS, {"id": 1, "address": "1 Market St", "city": "San Francisco", "state": "CA",
                                  "country": "US", "postalCode": "94105",
                                  "coordinates": "POINT(-122.4194 37.7749)"})
    store.insert_seed(LOCATIONS, {"id": 2, "address": "9 Elm Rd", "city": "Austin", "state": "TX",
                                  "country": "US", "postalCode": "73301", "coordinates": "not wkt"})

    store.insert_seed(MANAGERS, {"id": 1, "cognitoId": "manager-1", "name": "Mia Manager",
                                 "email": "mia@example.com", "phoneNumber": "555-0100"})
    store.insert_seed(LANDLORDS, {"id": 1, "cognitoId": "landlord-1", "name": "Leo Landlord",
                                  "email": "leo@example.com"})
    store.insert_seed(TENANTS, {"id": 1, "cognitoId": "tenant-1", "name": "Tia Tenant",
                                "email": "tia@example.com", "favorites": [], "properties": []})
    store.insert_seed(TENANTS, {"id": 2, "cognitoId": "tenant-2", "name": "Ted Tenant",
                                "email": "ted@example.com", "favorites": [], "properties": []})
    store.insert_seed(BUYERS, {"id": 1, "cognitoId": "buyer-1", "name": "Bea Buyer",
                               "email": "bea@example.com", "favorites": [], "properties": []})

    store.insert_seed(PROPERTIES, {"id": 1, "name": "Bay View Apartment", "pricePerMonth": 2000,
                                   "securityDeposit": 500, "beds": 2, "baths": 1, "squareFeet": 900,
                                   "propertyType": "Apartment", "amenities": ["Pool", "Gym"],
                                   "locationId": 1, "managerCognitoId": "manager-1", "tenants": []})
    store.insert_seed(PROPERTIES, {"id": 2, "name": "Hill Villa", "pricePerMonth": 3500,
                                   "securityDeposit": 1000, "beds": 3, "baths": 2, "squareFeet": 2200,
                                   "propertyType": "Villa", "amenities": ["Pool"],
                                   "locationId": 2, "managerCognitoId": "landlord-1", "tenants": []})
    store.insert_seed(PROPERTIES, {"id": 3, "name": "Downtown Room", "pricePerMonth": 1200,
                                   "securityDeposit": 300, "beds": 1, "baths": 1, "squareFeet": 300,
                                   "propertyType": "Rooms", "amenities": [],
                                   "locationId": 999, "managerCognitoId": "manager-1", "tenants": []})

    store.insert_seed(LEASES, {"id": 1, "startDate": _days(-30), "endDate": _days(300), "rent": 2000,
                               "deposit": 500, "propertyId": 1, "tenantCognitoId": "tenant-1"})
    store.insert_seed(LEASES, {"id": 2, "startDate": _days(-400), "endDate": _days(-35), "rent": 3500,
                               "deposit": 1000, "propertyId": 2, "tenantCognitoId": "tenant-1"})
    store.insert_seed(LEASES, {"id": 3, "startDate": _days(-10), "endDate": _days(100), "rent": 900,
                               "deposit": 100, "propertyId": 4242, "tenantCognitoId": "tenant-2"})
    return store


@pytest.fixture
def store():
    return seed_store(MemoryStore())


@pytest.fixture
def spy_store(store):
    """Seeded store whose calls can be asserted on"""
    return mock.Mock(wraps=store)


@pytest.fixture
def geocoder():
    fake = mock.Mock()
    fake.geocode.return_value = (-97.7431, 30.2672)
    return fake


@pytest.fixture
def make_app(geocoder):
    def factory(store):
        return create_app("testing", store=store,
                          token_verifier=TokenVerifier(secret=JWT_SECRET),
                          geocoder=geocoder)
    return factory


@pytest.fixture
def app(make_app, store):
    return make_app(store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token():
    def issue(sub: str, role: str = None, secret: str = JWT_SECRET, **claims):
        payload = {"sub": sub, **claims}
        if role is not None:
            payload["custom:role"] = role
        return jwt.encode(payload, secret, algorithm="HS256")
    return issue
