"""Postgres-backed document store.

Each collection lives in a single ``documents`` table keyed by
``(collection, id)`` with the fields stored as JSONB. Only single statements
are issued; there are no cross-document transactions.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

import psycopg2
from psycopg2 import errors, extras, pool

from onboarding.core.config import get_settings
from onboarding.core.errors import ConflictError, NotFoundError, StoreError
from onboarding.core.store import CREATED_AT, ListResult

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.ThreadedConnectionPool] = None

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (collection, id)
);
"""

_SELECT = "SELECT id, data, created_at, updated_at FROM documents WHERE collection = %(collection)s AND id = %(id)s;"

_INSERT = """
INSERT INTO documents (collection, id, data, created_at, updated_at)
VALUES (%(collection)s, %(id)s, %(data)s, NOW(), NOW())
RETURNING id, data, created_at, updated_at;
"""

_UPDATE = """
UPDATE documents
SET data = data || %(data)s, updated_at = NOW()
WHERE collection = %(collection)s AND id = %(id)s
RETURNING id, data, created_at, updated_at;
"""

_DELETE = "DELETE FROM documents WHERE collection = %(collection)s AND id = %(id)s RETURNING id;"


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.ThreadedConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.ThreadedConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=int(settings.store_timeout_seconds),
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def _to_document(row: Dict[str, Any]) -> Dict[str, Any]:
    document = dict(row["data"] or {})
    document["$id"] = row["id"]
    document["$createdAt"] = row["created_at"].isoformat() if row.get("created_at") else None
    document["$updatedAt"] = row["updated_at"].isoformat() if row.get("updated_at") else None
    return document


class PostgresDocumentStore:
    """Document store backed by the ``documents`` table."""

    def ensure_schema(self) -> None:
        self._execute(CREATE_TABLE, {})

    def _execute(self, sql: str, params: Dict[str, Any], *, fetch: str = "none"):
        try:
            with get_connection() as conn:
                try:
                    with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                        cur.execute(sql, params)
                        if fetch == "one":
                            result = cur.fetchone()
                        elif fetch == "all":
                            result = cur.fetchall()
                        else:
                            result = None
                    conn.commit()
                    return result
                except psycopg2.Error:
                    conn.rollback()
                    raise
        except errors.UniqueViolation:
            raise ConflictError(params.get("collection", ""), params.get("id", "")) from None
        except psycopg2.Error as exc:
            # Also reached for refused connections and an exhausted pool.
            logger.error("Postgres statement failed: %s", exc)
            raise StoreError(f"Postgres statement failed: {exc.pgcode or exc.__class__.__name__}") from exc

    def get(self, collection: str, document_id: str) -> Dict[str, Any]:
        row = self._execute(_SELECT, {"collection": collection, "id": document_id}, fetch="one")
        if row is None:
            raise NotFoundError(collection, document_id)
        return _to_document(row)

    def create(self, collection: str, document_id: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        params = {
            "collection": collection,
            "id": document_id or uuid.uuid4().hex,
            "data": extras.Json(fields),
        }
        row = self._execute(_INSERT, params, fetch="one")
        logger.debug("Created %s/%s", collection, params["id"])
        return _to_document(row)

    def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        params = {"collection": collection, "id": document_id, "data": extras.Json(fields)}
        row = self._execute(_UPDATE, params, fetch="one")
        if row is None:
            raise NotFoundError(collection, document_id)
        return _to_document(row)

    def delete(self, collection: str, document_id: str) -> None:
        row = self._execute(_DELETE, {"collection": collection, "id": document_id}, fetch="one")
        if row is None:
            raise NotFoundError(collection, document_id)

    def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_desc: Optional[str] = CREATED_AT,
        limit: int = 200,
    ) -> ListResult:
        params: Dict[str, Any] = {"collection": collection, "limit": int(limit)}
        clauses = ["collection = %(collection)s"]
        for index, (key, value) in enumerate((filters or {}).items()):
            params[f"key_{index}"] = key
            params[f"value_{index}"] = str(value)
            clauses.append(f"data->>%(key_{index})s = %(value_{index})s")

        if order_desc == CREATED_AT:
            order = "ORDER BY created_at DESC"
        elif order_desc:
            params["order_key"] = order_desc
            order = "ORDER BY data->>%(order_key)s DESC"
        else:
            order = ""

        sql = (
            "SELECT id, data, created_at, updated_at, COUNT(*) OVER () AS total "
            f"FROM documents WHERE {' AND '.join(clauses)} {order} LIMIT %(limit)s;"
        )
        rows = self._execute(sql, params, fetch="all") or []
        total = rows[0]["total"] if rows else 0
        return ListResult(documents=[_to_document(row) for row in rows], total=total)
