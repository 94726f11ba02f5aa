"""Table, sequence and index definitions for the PostgreSQL store"""

import structlog

from marketplace.database.documents import (
    APPLICATIONS, COLLECTIONS, LEASES, PROPERTIES, SELLER_PROPERTIES, USER_COLLECTIONS,
)

logger = structlog.get_logger(__name__)

# Foreign keys looked up by equality on the hot read paths. Indexed on the
# jsonb value (doc->field) so the `=` and `in` predicates can use them.
LOOKUP_FIELDS = {
    PROPERTIES: ("locationId", "managerCognitoId"),
    LEASES: ("propertyId", "tenantCognitoId"),
    APPLICATIONS: ("propertyId", "tenantCognitoId"),
    SELLER_PROPERTIES: ("locationId", "sellerCognitoId"),
}


def collection_ddl(collection: str) -> list:
    """Statements creating one collection's sequence, table and indexes"""
    statements = [
        f"CREATE SEQUENCE IF NOT EXISTS {collection}_id_seq",
        f"""
        CREATE TABLE IF NOT EXISTS {collection} (
            _id BIGSERIAL PRIMARY KEY,
            id INTEGER NOT NULL UNIQUE DEFAULT nextval('{collection}_id_seq'),
            doc JSONB NOT NULL DEFAULT '{{}}'::jsonb
        )
        """,
        f"ALTER SEQUENCE {collection}_id_seq OWNED BY {collection}.id",
        f"CREATE INDEX IF NOT EXISTS {collection}_doc_gin ON {collection} USING GIN (doc)",
    ]

    if collection in USER_COLLECTIONS:
        statements.append(
            f"CREATE UNIQUE INDEX IF NOT EXISTS {collection}_cognito_id_value_key "
            f"ON {collection} ((doc->'cognitoId'))"
        )

    for field in LOOKUP_FIELDS.get(collection, ()):
        statements.append(
            f"CREATE INDEX IF NOT EXISTS {collection}_{field.lower()}_value_idx "
            f"ON {collection} ((doc->'{field}'))"
        )

    return statements


def init_schema(pool) -> None:
    """Create every collection table if missing"""
    with pool.get_cursor() as cursor:
        for collection in COLLECTIONS:
            for statement in collection_ddl(collection):
                cursor.execute(statement)
            logger.info("Collection ready", collection=collection)
