"""In-process document store for development and tests"""

import copy
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List

from marketplace.database.documents import (
    USER_COLLECTIONS, Condition, DocumentStore, check_collection, check_conditions,
    normalize_value, order_by_ids, unique_ids,
)
from marketplace.utils.exceptions import Conflict, InvalidInput
from marketplace.utils.validation import parse_datetime, to_number


def _compare(actual: Any, expected: Any, op: str) -> bool:
    if isinstance(expected, datetime):
        try:
            actual = parse_datetime(actual)
        except InvalidInput:
            return False
    elif isinstance(expected, (int, float)) and not isinstance(expected, bool):
        actual = to_number(actual)
    if actual is None:
        return False

    try:
        if op == ">=":
            return actual >= expected
        if op == "<=":
            return actual <= expected
        if op == ">":
            return actual > expected
        return actual < expected
    except TypeError:
        return False


def _matches(document: Dict, condition: Condition) -> bool:
    field, op, expected = condition
    actual = document.get(field)

    if op == "=":
        return actual == normalize_value(expected)
    if op == "in":
        return actual in normalize_value(list(expected))
    if op == "contains":
        if not isinstance(actual, list):
            return False
        return all(item in actual for item in normalize_value(list(expected)))
    return _compare(actual, expected, op)


class MemoryStore(DocumentStore):
    """Dictionary backed store guarded by a single re-entrant lock"""

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[str, Dict[int, Dict]] = {}
        self._sequences: Dict[str, int] = {}
        self._internal_ids = 0

    def _rows(self, collection: str) -> Dict[int, Dict]:
        return self._collections.setdefault(check_collection(collection), {})

    def _select(self, collection: str, conditions: Iterable[Condition]) -> List[Dict]:
        checked = check_conditions(conditions)
        rows = self._rows(collection)
        return [rows[key] for key in sorted(rows)
                if all(_matches(rows[key], condition) for condition in checked)]

    def find(self, collection, conditions=()):
        with self._lock:
            return copy.deepcopy(self._select(collection, conditions))

    def find_one(self, collection, conditions):
        with self._lock:
            matches = self._select(collection, conditions)
            return copy.deepcopy(matches[0]) if matches else None

    def find_many_by_ids(self, collection, ids):
        ids = unique_ids(ids)
        if not ids:
            return []
        with self._lock:
            rows = self._rows(collection)
            return copy.deepcopy(order_by_ids([rows[i] for i in ids if i in rows], ids))

    def _check_identity(self, collection: str, document: Dict):
        if collection not in USER_COLLECTIONS or not document.get("cognitoId"):
            return
        for row in self._rows(collection).values():
            if row.get("cognitoId") == document["cognitoId"]:
                raise Conflict(f"A record with cognitoId {document['cognitoId']} already exists")

    def _store(self, collection: str, doc_id: int, document: Dict) -> Dict:
        self._internal_ids += 1
        now = self.timestamp()
        stored = self.strip_reserved(document)
        stored.setdefault("createdAt", now)
        stored.setdefault("updatedAt", now)
        stored["_id"] = str(self._internal_ids)
        stored["id"] = doc_id
        self._rows(collection)[doc_id] = stored
        return copy.deepcopy(stored)

    def insert(self, collection, document):
        with self._lock:
            self._check_identity(collection, document)
            doc_id = self._sequences.get(collection, 0) + 1
            self._sequences[collection] = doc_id
            return self._store(collection, doc_id, document)

    def insert_seed(self, collection, document):
        doc_id = document["id"]
        with self._lock:
            if doc_id in self._rows(collection):
                raise Conflict(f"{collection} id {doc_id} already exists")
            self._check_identity(collection, document)
            self._sequences[collection] = max(self._sequences.get(collection, 0), doc_id)
            return self._store(collection, doc_id, document)

    def update_one(self, collection, conditions, fields):
        with self._lock:
            matches = self._select(collection, conditions)
            if not matches:
                return None
            row = matches[0]
            row.update(self.strip_reserved(fields))
            row["updatedAt"] = self.timestamp()
            return copy.deepcopy(row)

    def add_to_set(self, collection, conditions, field, value):
        with self._lock:
            matches = self._select(collection, conditions)
            if not matches:
                return None, False
            row = matches[0]
            values = row.setdefault(field, [])
            if value in values:
                return copy.deepcopy(row), False
            values.append(value)
            row["updatedAt"] = self.timestamp()
            return copy.deepcopy(row), True

    def pull(self, collection, conditions, field, value):
        with self._lock:
            matches = self._select(collection, conditions)
            if not matches:
                return None, False
            row = matches[0]
            values = row.get(field) or []
            if value not in values:
                return copy.deepcopy(row), False
            row[field] = [item for item in values if item != value]
            row["updatedAt"] = self.timestamp()
            return copy.deepcopy(row), True

    def clear(self, collection):
        with self._lock:
            self._rows(collection).clear()
            self._sequences[collection] = 0

    def count(self, collection):
        with self._lock:
            return len(self._rows(collection))

    def ping(self):
        return True
