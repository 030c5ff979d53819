import json

import pytest
import requests

from onboarding.core.errors import ConflictError, NotFoundError, StoreError
from onboarding.vendors import appwrite


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b"" if payload is None else json.dumps(payload).encode()

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse(payload={})
        self.error = None

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(appwrite, "_SESSION", session)
    return session


@pytest.fixture
def client():
    return appwrite.AppwriteStore(
        endpoint="https://cloud.appwrite.io/v1/",
        project_id="proj",
        api_key="secret",
        database_id="main",
    )


def test_get_builds_document_url_and_headers(client, patch_session):
    patch_session.response = DummyResponse(payload={"$id": "S1", "name": "A"})

    document = client.get("user_submissions", "S1")

    assert document["name"] == "A"
    call = patch_session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://cloud.appwrite.io/v1/databases/main/collections/user_submissions/documents/S1"
    assert call["headers"]["X-Appwrite-Project"] == "proj"
    assert call["headers"]["X-Appwrite-Key"] == "secret"
    assert call["timeout"] == 10


def test_create_sends_requested_or_unique_id(client, patch_session):
    patch_session.response = DummyResponse(status_code=201, payload={"$id": "S1"})

    client.create("restaurants", "S1", {"name": "A"})
    client.create("notifications", None, {"message": "hi"})

    assert patch_session.calls[0]["json"] == {"documentId": "S1", "data": {"name": "A"}}
    assert patch_session.calls[0]["url"].endswith("/collections/restaurants/documents")
    assert patch_session.calls[1]["json"]["documentId"] == "unique()"


def test_status_codes_map_to_errors(client, patch_session):
    patch_session.response = DummyResponse(status_code=404, payload={"message": "not found"})
    with pytest.raises(NotFoundError):
        client.get("user_submissions", "S1")

    patch_session.response = DummyResponse(status_code=409, payload={"message": "exists"})
    with pytest.raises(ConflictError) as excinfo:
        client.create("restaurants", "S1", {"name": "A"})
    assert excinfo.value.document_id == "S1"

    patch_session.response = DummyResponse(status_code=500, payload={}, text="boom")
    with pytest.raises(StoreError):
        client.delete("user_submissions", "S1")


def test_transport_errors_become_store_errors(client, patch_session):
    patch_session.error = requests.ConnectionError("unreachable")
    with pytest.raises(StoreError):
        client.update("restaurants", "S1", {"status": "removed"})


def test_update_and_delete(client, patch_session):
    patch_session.response = DummyResponse(payload={"$id": "S1", "status": "removed"})
    assert client.update("restaurants", "S1", {"status": "removed"})["status"] == "removed"
    assert patch_session.calls[0]["method"] == "PATCH"
    assert patch_session.calls[0]["json"] == {"data": {"status": "removed"}}

    patch_session.response = DummyResponse(status_code=204)
    assert client.delete("restaurants", "S1") is None
    assert patch_session.calls[1]["method"] == "DELETE"


def test_list_encodes_queries(client, patch_session):
    patch_session.response = DummyResponse(payload={"total": 12, "documents": [{"$id": "S1"}]})

    result = client.list("user_submissions", {"status": "pending"}, limit=5)

    assert result.total == 12
    assert result.documents == [{"$id": "S1"}]
    queries = [json.loads(query) for query in patch_session.calls[0]["params"]["queries[]"]]
    assert queries == [
        {"method": "equal", "attribute": "status", "values": ["pending"]},
        {"method": "orderDesc", "attribute": "$createdAt"},
        {"method": "limit", "values": [5]},
    ]


def test_list_without_order(client, patch_session):
    patch_session.response = DummyResponse(payload={"documents": []})

    result = client.list("restaurants", order_desc=None, limit=1)

    assert result.total == 0
    queries = [json.loads(query) for query in patch_session.calls[0]["params"]["queries[]"]]
    assert queries == [{"method": "limit", "values": [1]}]
