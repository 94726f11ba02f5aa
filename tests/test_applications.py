from unittest import mock

from marketplace.database.documents import APPLICATIONS, LEASES, PROPERTIES
from marketplace.utils.exceptions import StorageError


def application_body(**overrides):
    body = {"propertyId": 1, "tenantCognitoId": "tenant-2", "name": "Ted Tenant",
            "email": "ted@example.com", "phoneNumber": "555-0199", "message": "Quiet tenant"}
    body.update(overrides)
    return body


def test_submit_application_is_pending(client, store):
    response = client.post("/api/applications", json=application_body())

    assert response.status_code == 201
    body = response.get_json()
    assert body["status"] == "Pending"
    assert body["leaseId"] is None
    assert body["property"]["address"] == "1 Market St"
    assert body["manager"]["cognitoId"] == "manager-1"
    assert "favorites" not in body["tenant"]
    assert store.count(LEASES) == 3


def test_submit_application_validation(client):
    body = application_body()
    del body["email"]
    assert client.post("/api/applications", json=body).status_code == 400
    assert client.post("/api/applications", json=application_body(status="Maybe")).status_code == 400
    assert client.post("/api/applications", json=application_body(propertyId=999)).status_code == 404
    assert client.post("/api/applications", json=application_body(tenantCognitoId="ghost")).status_code == 404


def test_approval_creates_lease_and_seats_tenant(client, store):
    created = client.post("/api/applications", json=application_body()).get_json()

    response = client.put(f"/api/applications/{created['id']}/status", json={"status": "Approved"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "Approved"
    assert body["lease"]["id"] == body["leaseId"]
    assert body["lease"]["rent"] == 2000
    assert body["lease"]["nextPaymentDate"]
    assert store.find_by_id(PROPERTIES, 1)["tenants"] == ["tenant-2"]

    # approving again does not create a second lease
    client.put(f"/api/applications/{created['id']}/status", json={"status": "Approved"})
    assert store.count(LEASES) == 4


def test_submitted_as_approved_links_lease(client, store):
    response = client.post("/api/applications", json=application_body(status="Approved"))

    assert response.status_code == 201
    body = response.get_json()
    assert body["lease"]["id"] == body["leaseId"]
    assert store.find_by_id(APPLICATIONS, body["id"])["leaseId"] == body["leaseId"]


def test_failed_application_insert_leaves_no_lease(make_app, store):
    real_insert = store.insert

    def insert(collection, document):
        if collection == APPLICATIONS:
            raise StorageError("insert failed")
        return real_insert(collection, document)

    broken = mock.Mock(wraps=store)
    broken.insert.side_effect = insert

    response = make_app(broken).test_client().post("/api/applications",
                                                   json=application_body(status="Approved"))

    assert response.status_code == 500
    assert store.count(LEASES) == 3
    assert store.find_by_id(PROPERTIES, 1)["tenants"] == []


def test_deny_does_not_create_lease(client, store):
    created = client.post("/api/applications", json=application_body()).get_json()
    response = client.put(f"/api/applications/{created['id']}/status", json={"status": "Denied"})

    assert response.get_json()["status"] == "Denied"
    assert store.count(LEASES) == 3


def test_status_update_errors(client):
    assert client.put("/api/applications/abc/status", json={"status": "Approved"}).status_code == 400
    assert client.put("/api/applications/1/status", json={}).status_code == 400
    assert client.put("/api/applications/999/status", json={"status": "Approved"}).status_code == 404


def test_list_applications_by_user(client):
    client.post("/api/applications", json=application_body())
    client.post("/api/applications", json=application_body(propertyId=2, tenantCognitoId="tenant-1"))

    tenant_apps = client.get("/api/applications?userId=tenant-2&userType=tenant").get_json()
    manager_apps = client.get("/api/applications?userId=manager-1&userType=manager").get_json()
    landlord_apps = client.get("/api/applications?userId=landlord-1&userType=landlord").get_json()
    all_apps = client.get("/api/applications").get_json()

    assert [a["propertyId"] for a in tenant_apps] == [1]
    assert [a["propertyId"] for a in manager_apps] == [1]
    assert [a["propertyId"] for a in landlord_apps] == [2]
    assert len(all_apps) == 2


def test_manager_without_properties_has_no_applications(client):
    response = client.get("/api/applications?userId=nobody&userType=manager")
    assert response.status_code == 200
    assert response.get_json() == []


def test_application_falls_back_to_latest_matching_lease(client):
    created = client.post("/api/applications", json=application_body(tenantCognitoId="tenant-1")).get_json()
    assert created["lease"]["id"] == 1
