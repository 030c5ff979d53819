"""Document-store contract and backend selection.

Every backend exposes the same five request/response operations:

* ``get(collection, document_id)`` raises ``NotFoundError`` when absent.
* ``create(collection, document_id, fields)`` never overwrites; an existing id
  raises ``ConflictError``. ``document_id=None`` lets the store assign one.
* ``update(collection, document_id, fields)`` merges ``fields`` into the document.
* ``delete(collection, document_id)`` raises ``NotFoundError`` when absent.
* ``list(collection, filters=None, order_desc="$createdAt", limit=200)``
  returns a :class:`ListResult`.

Nothing here opens multi-statement transactions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from onboarding.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

CREATED_AT = "$createdAt"


@dataclass(slots=True)
class ListResult:
    documents: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0


def build_store(settings: Optional[Settings] = None):
    """Instantiate the configured backend."""
    settings = settings or get_settings()
    backend = settings.document_store_backend

    if backend == "postgres":
        from onboarding.core.db import PostgresDocumentStore

        settings.require("database_url")
        logger.info("Using Postgres document store")
        store = PostgresDocumentStore()
        store.ensure_schema()
        return store

    from onboarding.vendors.appwrite import AppwriteStore

    settings.require("appwrite_endpoint", "appwrite_project_id", "appwrite_database_id")
    logger.info("Using Appwrite document store at %s", settings.appwrite_endpoint)
    return AppwriteStore(
        endpoint=settings.appwrite_endpoint,
        project_id=settings.appwrite_project_id,
        api_key=settings.appwrite_api_key,
        database_id=settings.appwrite_database_id,
        timeout=settings.store_timeout_seconds,
    )
