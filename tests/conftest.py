import copy
import sys
from datetime import datetime, timezone
from itertools import count
from pathlib import Path

import pytest

# Ensure the `onboarding` package is importable when running pytest from a checkout.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from onboarding.core.errors import ConflictError, NotFoundError, StoreError  # noqa: E402
from onboarding.core.store import ListResult  # noqa: E402


class InMemoryStore:
    """Document store double that honours the create/get/delete contract.

    ``fail_on`` maps ``(operation, collection)`` to an exception raised instead
    of performing the call, to simulate remote failures.
    """

    def __init__(self):
        self.collections = {}
        self.calls = []
        self.fail_on = {}
        self._ids = count(1)
        self._ticks = count(1)

    def seed(self, collection, document_id, **fields):
        created = datetime(2024, 1, 1, tzinfo=timezone.utc).replace(second=next(self._ticks) % 60)
        document = {**fields, "$id": document_id, "$createdAt": created.isoformat()}
        self.collections.setdefault(collection, {})[document_id] = document
        return document

    def _check(self, operation, collection):
        self.calls.append((operation, collection))
        exc = self.fail_on.get((operation, collection))
        if exc is not None:
            raise exc

    def get(self, collection, document_id):
        self._check("get", collection)
        try:
            return copy.deepcopy(self.collections[collection][document_id])
        except KeyError:
            raise NotFoundError(collection, document_id) from None

    def create(self, collection, document_id, fields):
        self._check("create", collection)
        document_id = document_id or f"auto-{next(self._ids)}"
        docs = self.collections.setdefault(collection, {})
        if document_id in docs:
            raise ConflictError(collection, document_id)
        return copy.deepcopy(self.seed(collection, document_id, **copy.deepcopy(fields)))

    def update(self, collection, document_id, fields):
        self._check("update", collection)
        docs = self.collections.get(collection, {})
        if document_id not in docs:
            raise NotFoundError(collection, document_id)
        docs[document_id].update(copy.deepcopy(fields))
        return copy.deepcopy(docs[document_id])

    def delete(self, collection, document_id):
        self._check("delete", collection)
        docs = self.collections.get(collection, {})
        if document_id not in docs:
            raise NotFoundError(collection, document_id)
        del docs[document_id]

    def list(self, collection, filters=None, order_desc="$createdAt", limit=200):
        self._check("list", collection)
        docs = [
            copy.deepcopy(doc)
            for doc in self.collections.get(collection, {}).values()
            if all(doc.get(key) == value for key, value in (filters or {}).items())
        ]
        if order_desc:
            docs.sort(key=lambda doc: doc.get(order_desc) or "", reverse=True)
        return ListResult(documents=docs[:limit], total=len(docs))


class ImmediateExecutor:
    """Runs submitted callables inline so background work is observable in tests."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args):
        self.submitted.append(args)
        fn(*args)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def executor():
    return ImmediateExecutor()


@pytest.fixture
def store_error():
    return StoreError("simulated outage")
