"""Document collections and the lookup vocabulary shared by both stores"""

from collections import namedtuple
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from marketplace.utils.validation import isoformat, utcnow

LOCATIONS = "locations"
PROPERTIES = "properties"
LEASES = "leases"
APPLICATIONS = "applications"
TENANTS = "tenants"
BUYERS = "buyers"
LANDLORDS = "landlords"
MANAGERS = "managers"
SELLER_PROPERTIES = "seller_properties"

COLLECTIONS = (
    LOCATIONS, PROPERTIES, LEASES, APPLICATIONS, TENANTS, BUYERS, LANDLORDS, MANAGERS, SELLER_PROPERTIES,
)

# Collections whose documents are keyed by a unique identity-provider id
USER_COLLECTIONS = (TENANTS, BUYERS, LANDLORDS, MANAGERS)

RESERVED_FIELDS = ("_id", "id")

OPERATORS = ("=", "in", ">=", "<=", ">", "<", "contains")

Condition = namedtuple("Condition", ["field", "op", "value"])


def where(field: str, value: Any) -> Condition:
    """Equality condition shorthand"""
    return Condition(field, "=", value)


def normalize_value(value: Any) -> Any:
    """Convert values to their stored JSON form"""
    if isinstance(value, datetime):
        return isoformat(value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return value


def check_collection(collection: str) -> str:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    return collection


def check_conditions(conditions: Iterable[Condition]) -> List[Condition]:
    checked = []
    for condition in conditions:
        if condition.op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {condition.op}")
        checked.append(condition)
    return checked


def order_by_ids(documents: Iterable[Dict], ids: Iterable[int]) -> List[Dict]:
    """Arrange documents in first-seen id order, skipping missing ids"""
    by_id = {doc["id"]: doc for doc in documents}
    ordered, seen = [], set()
    for doc_id in ids:
        if doc_id in seen:
            continue
        seen.add(doc_id)
        if doc_id in by_id:
            ordered.append(by_id[doc_id])
    return ordered


def unique_ids(ids: Iterable[Any]) -> List[int]:
    seen, result = set(), []
    for doc_id in ids:
        if isinstance(doc_id, bool) or not isinstance(doc_id, int) or doc_id in seen:
            continue
        seen.add(doc_id)
        result.append(doc_id)
    return result


class DocumentStore:
    """
    Per-collection document storage with numeric public ids.

    Every document carries a storage-internal ``_id`` and a numeric ``id``
    drawn from a per-collection sequence. Subclasses implement the lookups;
    relationships are never embedded, callers resolve them at read time.
    """

    def find(self, collection: str, conditions: Iterable[Condition] = ()) -> List[Dict]:
        raise NotImplementedError

    def find_one(self, collection: str, conditions: Iterable[Condition]) -> Optional[Dict]:
        raise NotImplementedError

    def find_by_id(self, collection: str, doc_id: int) -> Optional[Dict]:
        return self.find_one(collection, [where("id", doc_id)])

    def find_many_by_ids(self, collection: str, ids: Iterable[int]) -> List[Dict]:
        raise NotImplementedError

    def exists(self, collection: str, conditions: Iterable[Condition]) -> bool:
        return self.find_one(collection, conditions) is not None

    def insert(self, collection: str, document: Dict) -> Dict:
        raise NotImplementedError

    def insert_seed(self, collection: str, document: Dict) -> Dict:
        raise NotImplementedError

    def update_one(self, collection: str, conditions: Iterable[Condition], fields: Dict) -> Optional[Dict]:
        raise NotImplementedError

    def add_to_set(self, collection: str, conditions: Iterable[Condition],
                   field: str, value: Any) -> Tuple[Optional[Dict], bool]:
        raise NotImplementedError

    def pull(self, collection: str, conditions: Iterable[Condition],
             field: str, value: Any) -> Tuple[Optional[Dict], bool]:
        raise NotImplementedError

    def clear(self, collection: str) -> None:
        raise NotImplementedError

    def count(self, collection: str) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        pass

    @staticmethod
    def timestamp() -> str:
        return isoformat(utcnow())

    @staticmethod
    def strip_reserved(document: Dict) -> Dict:
        return {key: normalize_value(value) for key, value in document.items() if key not in RESERVED_FIELDS}


def build_store(settings) -> DocumentStore:
    """Create the document store selected by STORAGE_BACKEND"""
    if settings.STORAGE_BACKEND == "memory":
        from marketplace.database.memory_store import MemoryStore
        return MemoryStore()

    from marketplace.database.connection_pool import DatabasePool
    from marketplace.database.postgres_store import PostgresStore
    return PostgresStore(DatabasePool(
        settings.DATABASE_URL, settings.DB_POOL_MIN, settings.DB_POOL_MAX,
        acquire_timeout=settings.DB_POOL_TIMEOUT,
    ))
