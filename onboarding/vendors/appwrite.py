"""Client utilities for the Appwrite Databases REST API."""

import json
import logging
from typing import Any, Dict, List, Optional

import requests

from onboarding.core.errors import ConflictError, NotFoundError, StoreError
from onboarding.core.store import CREATED_AT, ListResult

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

UNIQUE_ID = "unique()"


def query_equal(attribute: str, value: Any) -> str:
    return json.dumps({"method": "equal", "attribute": attribute, "values": [value]})


def query_order_desc(attribute: str) -> str:
    return json.dumps({"method": "orderDesc", "attribute": attribute})


def query_limit(value: int) -> str:
    return json.dumps({"method": "limit", "values": [int(value)]})


class AppwriteStore:
    """Document store backed by one Appwrite database."""

    def __init__(
        self,
        *,
        endpoint: str,
        project_id: str,
        database_id: str,
        api_key: str = "",
        timeout: float = 10,
    ) -> None:
        self._base_url = f"{endpoint.rstrip('/')}/databases/{database_id}/collections"
        self._timeout = timeout
        self._headers = {
            "Content-Type": "application/json",
            "X-Appwrite-Project": project_id,
        }
        if api_key:
            self._headers["X-Appwrite-Key"] = api_key

    def _documents_url(self, collection: str, document_id: Optional[str] = None) -> str:
        url = f"{self._base_url}/{collection}/documents"
        if document_id is not None:
            url = f"{url}/{document_id}"
        return url

    def _request(
        self,
        method: str,
        collection: str,
        document_id: Optional[str] = None,
        *,
        params: Any = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = self._documents_url(collection, document_id)
        try:
            response = _SESSION.request(
                method,
                url,
                headers=self._headers,
                params=params,
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Appwrite %s %s failed: %s", method, url, exc)
            raise StoreError(f"Appwrite request failed: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(collection, document_id or "")
        if response.status_code == 409:
            raise ConflictError(collection, document_id or "")
        if not 200 <= response.status_code < 300:
            logger.error(
                "Appwrite %s %s returned status=%s body=%s",
                method,
                url,
                response.status_code,
                response.text[:500],
            )
            raise StoreError(f"Appwrite returned status {response.status_code}")

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def get(self, collection: str, document_id: str) -> Dict[str, Any]:
        return self._request("GET", collection, document_id)

    def create(self, collection: str, document_id: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"documentId": document_id or UNIQUE_ID, "data": fields}
        try:
            return self._request("POST", collection, payload=payload)
        except ConflictError:
            # POST targets the collection, so the conflict carries no id yet.
            raise ConflictError(collection, document_id or "") from None

    def update(self, collection: str, document_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", collection, document_id, payload={"data": fields})

    def delete(self, collection: str, document_id: str) -> None:
        self._request("DELETE", collection, document_id)

    def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_desc: Optional[str] = CREATED_AT,
        limit: int = 200,
    ) -> ListResult:
        queries: List[str] = [query_equal(key, value) for key, value in (filters or {}).items()]
        if order_desc:
            queries.append(query_order_desc(order_desc))
        queries.append(query_limit(limit))

        payload = self._request("GET", collection, params={"queries[]": queries})
        documents = payload.get("documents", [])
        total = payload.get("total")
        return ListResult(documents=documents, total=total if total is not None else len(documents))
