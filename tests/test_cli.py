import json

import pytest

from marketplace.cli import SeedError, main, normalize_record, seed
from marketplace.database.documents import LEASES, LOCATIONS, PROPERTIES, TENANTS
from marketplace.database.memory_store import MemoryStore


def write(directory, name, records):
    (directory / f"{name}.json").write_text(json.dumps(records))


@pytest.fixture
def seed_dir(tmp_path):
    write(tmp_path, "locations", [{"id": 5, "address": "1 Main", "city": "X", "state": "Y",
                                   "country": "US", "postalCode": "1", "coordinates": "POINT(1 2)"}])
    write(tmp_path, "managers", [{"id": 1, "cognitoId": "m-1", "name": "M", "email": "m@x",
                                  "phoneNumber": "1"}])
    write(tmp_path, "tenants", [{"id": 7, "cognitoId": "t-1", "name": "T", "email": "t@x",
                                 "favorites": {"connect": [{"id": 10}]}}])
    write(tmp_path, "properties", [{"id": 10, "name": "P", "pricePerMonth": 1000,
                                    "location": {"connect": {"id": 5}},
                                    "manager": {"connect": {"cognitoId": "m-1"}}}])
    write(tmp_path, "leases", [{"id": 3, "startDate": "2024-01-01T00:00:00Z", "endDate": "2025-01-01T00:00:00Z",
                                "property": {"connect": {"id": 10}}, "tenant": {"connect": {"id": 7}}}])
    return tmp_path


def test_seed_flattens_relations(seed_dir):
    store = MemoryStore()
    summary = seed(store, str(seed_dir))

    prop = store.find_by_id(PROPERTIES, 10)
    assert prop["locationId"] == 5
    assert prop["managerCognitoId"] == "m-1"
    assert prop["tenants"] == []
    assert "location" not in prop

    lease = store.find_by_id(LEASES, 3)
    assert lease["propertyId"] == 10
    assert lease["tenantCognitoId"] == "t-1"

    assert store.find_by_id(TENANTS, 7)["favorites"] == [10]
    assert ["applications", 0, "skipped (no file)"] in summary


def test_seeded_ids_do_not_collide_with_new_documents(seed_dir):
    store = MemoryStore()
    seed(store, str(seed_dir))
    assert store.insert(LOCATIONS, {"address": "2 Main"})["id"] == 6


def test_seed_replaces_existing_data(seed_dir):
    store = MemoryStore()
    store.insert(LOCATIONS, {"address": "old"})
    seed(store, str(seed_dir))
    assert [loc["address"] for loc in store.find(LOCATIONS)] == ["1 Main"]


def test_unknown_relation_is_rejected():
    with pytest.raises(SeedError):
        normalize_record(MemoryStore(), {"id": 1, "owner": {"connect": {"id": 2}}})


def test_cli_seed_and_stats(seed_dir, capsys):
    store = MemoryStore()
    assert main(["seed", str(seed_dir)], store=store) == 0
    assert "properties" in capsys.readouterr().out

    assert main(["stats"], store=store) == 0
    output = capsys.readouterr().out
    assert "leases" in output


def test_cli_init_db_needs_postgres(capsys):
    assert main(["init-db"], store=MemoryStore()) == 1


def test_cli_reports_bad_seed_file(tmp_path, capsys):
    (tmp_path / "locations.json").write_text("{}")
    assert main(["seed", str(tmp_path)], store=MemoryStore()) == 1
    assert "JSON array" in capsys.readouterr().out
