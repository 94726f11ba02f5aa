"""PostgreSQL document store: one JSONB table per collection"""

from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json
import structlog

from marketplace.database.documents import (
    Condition, DocumentStore, check_collection, check_conditions,
    normalize_value, order_by_ids, unique_ids,
)
from marketplace.utils.exceptions import Conflict, StorageError

logger = structlog.get_logger(__name__)

COLUMNS = "_id, id, doc"
COMPARISONS = (">=", "<=", ">", "<")


def compile_condition(condition: Condition) -> Tuple[str, list]:
    """Translate one condition into a SQL fragment and its parameters"""
    field, op, value = condition

    if field in ("id", "_id"):
        if op == "in":
            values = [int(v) for v in value if str(v).lstrip("-").isdigit()]
            return (f"{field} = ANY(%s)", [values]) if values else ("FALSE", [])
        if op == "=" or op in COMPARISONS:
            # Non-numeric keys can never match a numeric column
            if not str(value).lstrip("-").isdigit():
                return "FALSE", []
            return f"{field} {op} %s", [int(value)]
        raise ValueError(f"Operator {op} is not supported on {field}")

    if op == "=":
        return "doc->%s = %s::jsonb", [field, Json(normalize_value(value))]
    if op == "in":
        values = normalize_value(list(value))
        if not values:
            return "FALSE", []
        placeholders = ", ".join(["%s::jsonb"] * len(values))
        return f"doc->%s IN ({placeholders})", [field] + [Json(item) for item in values]
    if op == "contains":
        return "doc->%s @> %s::jsonb", [field, Json(normalize_value(list(value)))]

    if isinstance(value, datetime):
        return f"(doc->>%s)::timestamptz {op} %s", [field, value]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"(doc->>%s)::numeric {op} %s", [field, value]
    return f"doc->>%s {op} %s", [field, value]


def compile_where(conditions: Iterable[Condition]) -> Tuple[str, list]:
    clauses, params = [], []
    for condition in check_conditions(conditions):
        clause, clause_params = compile_condition(condition)
        clauses.append(clause)
        params.extend(clause_params)
    return (" AND ".join(clauses) if clauses else "TRUE"), params


def to_document(row: Optional[Dict]) -> Optional[Dict]:
    if row is None:
        return None
    document = dict(row["doc"])
    document["_id"] = str(row["_id"])
    document["id"] = row["id"]
    return document


class PostgresStore(DocumentStore):
    """Document store over a shared DatabasePool"""

    def __init__(self, pool):
        self.pool = pool

    def _run(self, query: str, params: list = None, fetch: str = "all"):
        try:
            with self.pool.get_cursor() as cursor:
                cursor.execute(query, params)
                if fetch == "one":
                    return cursor.fetchone()
                if fetch == "all":
                    return cursor.fetchall()
                return None
        except pg_errors.UniqueViolation as e:
            raise Conflict("A record with this identity already exists") from e
        except psycopg2.Error as e:
            logger.error("Document store query failed", error=str(e))
            raise StorageError("Document store query failed") from e

    def _target(self, collection: str, conditions: Iterable[Condition]) -> Tuple[str, list]:
        """Subquery selecting the first matching row's internal id"""
        clause, params = compile_where(conditions)
        return f"_id = (SELECT _id FROM {collection} WHERE {clause} ORDER BY id LIMIT 1)", params

    def find(self, collection, conditions=()):
        collection = check_collection(collection)
        clause, params = compile_where(conditions)
        rows = self._run(f"SELECT {COLUMNS} FROM {collection} WHERE {clause} ORDER BY id", params)
        return [to_document(row) for row in rows]

    def find_one(self, collection, conditions):
        collection = check_collection(collection)
        clause, params = compile_where(conditions)
        row = self._run(f"SELECT {COLUMNS} FROM {collection} WHERE {clause} ORDER BY id LIMIT 1",
                        params, fetch="one")
        return to_document(row)

    def find_many_by_ids(self, collection, ids):
        collection = check_collection(collection)
        ids = unique_ids(ids)
        if not ids:
            return []
        rows = self._run(f"SELECT {COLUMNS} FROM {collection} WHERE id = ANY(%s)", [ids])
        return order_by_ids([to_document(row) for row in rows], ids)

    def _prepare(self, document: Dict) -> Dict:
        now = self.timestamp()
        doc = self.strip_reserved(document)
        doc.setdefault("createdAt", now)
        doc.setdefault("updatedAt", now)
        return doc

    def insert(self, collection, document):
        collection = check_collection(collection)
        row = self._run(f"INSERT INTO {collection} (doc) VALUES (%s) RETURNING {COLUMNS}",
                        [Json(self._prepare(document))], fetch="one")
        return to_document(row)

    def insert_seed(self, collection, document):
        collection = check_collection(collection)
        row = self._run(f"INSERT INTO {collection} (id, doc) VALUES (%s, %s) RETURNING {COLUMNS}",
                        [int(document["id"]), Json(self._prepare(document))], fetch="one")
        # Keep the sequence ahead of explicitly seeded ids
        self._run(
            f"SELECT setval('{collection}_id_seq', COALESCE((SELECT MAX(id) FROM {collection}), 0) + 1, false)",
            fetch="one",
        )
        return to_document(row)

    def update_one(self, collection, conditions, fields):
        collection = check_collection(collection)
        target, params = self._target(collection, conditions)
        changes = self.strip_reserved(fields)
        changes["updatedAt"] = self.timestamp()
        row = self._run(
            f"UPDATE {collection} SET doc = doc || %s::jsonb WHERE {target} RETURNING {COLUMNS}",
            [Json(changes)] + params, fetch="one",
        )
        return to_document(row)

    def add_to_set(self, collection, conditions, field, value):
        collection = check_collection(collection)
        target, params = self._target(collection, conditions)
        value = normalize_value(value)
        row = self._run(
            f"UPDATE {collection} "
            f"SET doc = jsonb_set(doc, %s::text[], COALESCE(doc->%s, '[]'::jsonb) || %s::jsonb) "
            f"|| jsonb_build_object('updatedAt', %s::text) "
            f"WHERE {target} AND NOT (COALESCE(doc->%s, '[]'::jsonb) @> %s::jsonb) "
            f"RETURNING {COLUMNS}",
            [[field], field, Json([value]), self.timestamp()] + params + [field, Json([value])],
            fetch="one",
        )
        if row is not None:
            return to_document(row), True
        return self.find_one(collection, conditions), False

    def pull(self, collection, conditions, field, value):
        collection = check_collection(collection)
        target, params = self._target(collection, conditions)
        value = normalize_value(value)
        row = self._run(
            f"UPDATE {collection} "
            f"SET doc = jsonb_set(doc, %s::text[], COALESCE("
            f"(SELECT jsonb_agg(item) FROM jsonb_array_elements(doc->%s) AS item WHERE item <> %s::jsonb), "
            f"'[]'::jsonb)) "
            f"|| jsonb_build_object('updatedAt', %s::text) "
            f"WHERE {target} AND doc->%s @> %s::jsonb "
            f"RETURNING {COLUMNS}",
            [[field], field, Json(value), self.timestamp()] + params + [field, Json([value])],
            fetch="one",
        )
        if row is not None:
            return to_document(row), True
        return self.find_one(collection, conditions), False

    def clear(self, collection):
        collection = check_collection(collection)
        self._run(f"DELETE FROM {collection}", fetch=None)
        self._run(f"ALTER SEQUENCE {collection}_id_seq RESTART WITH 1", fetch=None)

    def count(self, collection):
        collection = check_collection(collection)
        row = self._run(f"SELECT COUNT(*) AS count FROM {collection}", fetch="one")
        return row["count"]

    def ping(self):
        return self._run("SELECT 1 AS ok", fetch="one") is not None

    def close(self):
        self.pool.close_all()
