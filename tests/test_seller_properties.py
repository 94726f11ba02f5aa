import pytest

from marketplace.database.documents import LOCATIONS, SELLER_PROPERTIES
from marketplace.services.seller_properties import build_sale_filters


@pytest.fixture
def listed(store):
    store.insert_seed(SELLER_PROPERTIES, {"id": 1, "name": "Craftsman Bungalow", "description": "Porch",
                                          "salePrice": 450000, "propertyType": "House", "beds": 3,
                                          "baths": 2, "squareFeet": 1600, "propertyStatus": "For Sale",
                                          "locationId": 1, "sellerCognitoId": "buyer-1"})
    store.insert_seed(SELLER_PROPERTIES, {"id": 2, "name": "Lake Cabin", "description": "Dock",
                                          "salePrice": 250000, "propertyType": "Cabin", "beds": 1,
                                          "baths": 1, "squareFeet": 700, "propertyStatus": "Pending",
                                          "locationId": 77, "sellerCognitoId": "landlord-1"})
    return store


def listing_body(**overrides):
    body = {
        "sellerCognitoId": "buyer-1", "address": "12 Oak Ln", "city": "Austin", "state": "TX",
        "country": "US", "postalCode": "78704", "name": "Oak Cottage", "description": "Shaded lot",
        "salePrice": "399000", "propertyType": "House", "beds": 2, "baths": 1.5, "squareFeet": 1200,
        "photoUrls": ["https://cdn.example.com/oak/1.jpg"], "openHouseDates": "2025-06-01, 2025-06-08",
    }
    body.update(overrides)
    return body


def test_list_with_locations(client, listed):
    response = client.get("/api/seller-properties")

    assert response.status_code == 200
    body = response.get_json()
    assert [item["id"] for item in body] == [1, 2]
    assert body[0]["location"]["coordinates"] == {"longitude": -122.4194, "latitude": 37.7749}
    # dangling location keeps the listing
    assert body[1]["location"] is None


def test_list_filters(client, listed):
    def ids(query):
        return [item["id"] for item in client.get(f"/api/seller-properties?{query}").get_json()]

    assert ids("salePriceMax=300000") == [2]
    assert ids("beds=2&propertyType=House") == [1]
    assert ids("sellerCognitoId=landlord-1") == [2]
    assert ids("propertyType=any&salePriceMin=nan") == [1, 2]


def test_get_listing(client, listed):
    response = client.get("/api/seller-properties/1")
    assert response.status_code == 200
    assert response.get_json()["location"]["city"] == "San Francisco"


def test_get_listing_errors(client, listed):
    assert client.get("/api/seller-properties/abc").status_code == 400
    assert client.get("/api/seller-properties/99").status_code == 404


def test_create_listing(client, store, geocoder):
    response = client.post("/api/seller-properties", json=listing_body())

    assert response.status_code == 201
    body = response.get_json()
    assert body["salePrice"] == 399000
    assert body["propertyStatus"] == "For Sale"
    assert body["allowBuyerApplications"] is True
    assert body["openHouseDates"] == ["2025-06-01", "2025-06-08"]
    assert body["photoUrls"] == ["https://cdn.example.com/oak/1.jpg"]
    assert body["buyerInquiries"] == []
    assert body["location"]["coordinates"] == {"longitude": -97.7431, "latitude": 30.2672}
    geocoder.geocode.assert_called_once_with("12 Oak Ln", "Austin", "US", "78704")

    stored = store.find_by_id(SELLER_PROPERTIES, body["id"])
    assert stored["locationId"] == body["location"]["id"]


def test_create_listing_validation_leaves_no_location(client, store):
    response = client.post("/api/seller-properties", json=listing_body(salePrice="NaN", beds=-1))

    assert response.status_code == 400
    assert set(response.get_json()["errors"]) == {"salePrice", "beds"}
    assert store.count(LOCATIONS) == 2


def test_create_listing_requires_seller(client):
    body = listing_body()
    del body["sellerCognitoId"]

    response = client.post("/api/seller-properties", json=body)

    assert response.status_code == 400
    assert "sellerCognitoId" in response.get_json()["errors"]


def test_sale_filters_ignore_placeholders():
    assert build_sale_filters({"propertyType": "any", "beds": "any", "salePriceMin": ""}) == []
