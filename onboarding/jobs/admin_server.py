"""HTTP entrypoint for the admin onboarding backend."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from onboarding.core.config import get_settings
from onboarding.core.errors import InvalidTransitionError, OnboardingError, StoreError, ValidationError
from onboarding.core.store import build_store
from onboarding.engine.notifications import NotificationSink, render_message
from onboarding.engine.promotion import promote
from onboarding.engine.status import set_status
from onboarding.models import (
    LEAD_SUBMISSIONS,
    OWNER_REQUESTS,
    RESTAURANT_REQUESTS,
    RESTAURANTS,
    STATUS_CONTACTED,
    STATUS_LIVE,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUS_REMOVED,
    USER_SUBMISSIONS,
    SourceCollection,
)

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & store ----------
app = Flask(__name__)
# The admin UI is served from its own origin.
CORS(app)


@lru_cache(maxsize=1)
def get_store():
    return build_store()


_notifier = NotificationSink(lambda: get_store())

# ---------- Errors ----------


@app.errorhandler(ValidationError)
def _validation_failed(exc: ValidationError) -> Any:
    return jsonify({"ok": False, "message": exc.message, "field": exc.field}), 400


@app.errorhandler(InvalidTransitionError)
def _invalid_transition(exc: InvalidTransitionError) -> Any:
    return jsonify({"ok": False, "message": str(exc)}), 400


@app.errorhandler(StoreError)
def _store_failed(exc: StoreError) -> Any:
    logger.error("Document store failure: %s", exc.message)
    return jsonify({"ok": False, "message": "Document store is unavailable. Try again later."}), exc.status_code


@app.errorhandler(OnboardingError)
def _onboarding_failed(exc: OnboardingError) -> Any:
    return jsonify({"ok": False, "message": exc.message}), exc.status_code


@app.errorhandler(Exception)
def _unexpected(exc: Exception) -> Any:
    if isinstance(exc, HTTPException):
        return jsonify({"ok": False, "message": exc.description}), exc.code
    logger.exception("Unhandled error on %s %s: %s", request.method, request.path, exc)
    return jsonify({"ok": False, "message": "Internal server error."}), 500


# ---------- Request helpers ----------


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _document_id(payload: Dict[str, Any]) -> str:
    document_id = payload.get("documentId")
    if not isinstance(document_id, str) or not document_id.strip():
        raise ValidationError("documentId", "documentId is required.")
    return document_id.strip()


def _overrides(payload: Dict[str, Any]) -> Dict[str, Any]:
    overrides = payload.get("overrides") or {}
    if not isinstance(overrides, dict):
        raise ValidationError("overrides", "overrides must be an object.")
    return overrides


def _reason(payload: Dict[str, Any]) -> str:
    reason = payload.get("reason")
    return str(reason).strip() if reason else ""


def _list_limit() -> int:
    return get_settings().list_limit


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never the store."""
    settings = get_settings()
    return (
        jsonify(
            {
                "ok": True,
                "status": "ok",
                "backend": settings.document_store_backend,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/restaurant-requests")
def list_restaurant_requests() -> Any:
    store = get_store()
    owner_requests = store.list(RESTAURANT_REQUESTS, {"status": STATUS_PENDING}, limit=_list_limit())
    return jsonify({"ok": True, "documents": owner_requests.documents})


@app.get("/user-submissions")
def list_user_submissions() -> Any:
    store = get_store()
    pending = store.list(USER_SUBMISSIONS, {"status": STATUS_PENDING}, limit=_list_limit())
    contacted = store.list(USER_SUBMISSIONS, {"status": STATUS_CONTACTED}, limit=_list_limit())
    return jsonify({"ok": True, "pending": pending.documents, "contacted": contacted.documents})


@app.get("/manage-restaurants")
def list_manage_restaurants() -> Any:
    store = get_store()
    live = store.list(RESTAURANTS, {"status": STATUS_LIVE}, limit=_list_limit())
    contacted = store.list(USER_SUBMISSIONS, {"status": STATUS_CONTACTED}, limit=_list_limit())
    return jsonify({"ok": True, "live": live.documents, "contacted": contacted.documents})


@app.get("/dashboard-metrics")
def dashboard_metrics() -> Any:
    """Counts plus the most recent slice of each queue."""
    store = get_store()
    restaurants = store.list(RESTAURANTS, {"status": STATUS_LIVE}, limit=6)
    owner_queue = store.list(RESTAURANT_REQUESTS, {"status": STATUS_PENDING}, limit=5)
    user_queue = store.list(USER_SUBMISSIONS, {"status": STATUS_PENDING}, limit=5)
    contacted = store.list(USER_SUBMISSIONS, {"status": STATUS_CONTACTED}, order_desc=None, limit=1)

    return jsonify(
        {
            "ok": True,
            "stats": {
                "totalRestaurants": restaurants.total,
                "pendingOwner": owner_queue.total,
                "pendingUser": user_queue.total,
                "contacted": contacted.total,
            },
            "recentRestaurants": restaurants.documents,
            "ownerQueue": owner_queue.documents,
            "userQueue": user_queue.documents,
        }
    )


@app.post("/contact-user-submission")
def contact_user_submission() -> Any:
    payload = _json_body()
    set_status(get_store(), USER_SUBMISSIONS, _document_id(payload), STATUS_CONTACTED)
    return jsonify({"ok": True, "message": "Submission marked as contacted."})


def _approve(source: SourceCollection) -> Any:
    payload = _json_body()
    document_id = _document_id(payload)
    overrides = _overrides(payload)

    restaurant = promote(
        get_store(),
        source,
        document_id,
        overrides,
        source.approval_template,
        notifier=_notifier,
    )
    message = render_message(source.approval_template, {"id": document_id, **restaurant})
    return jsonify({"ok": True, "message": message, "restaurant": restaurant})


@app.post("/approve-user-submission")
def approve_user_submission() -> Any:
    return _approve(LEAD_SUBMISSIONS)


@app.post("/approve-restaurant-request")
def approve_restaurant_request() -> Any:
    return _approve(OWNER_REQUESTS)


@app.post("/reject-user-submission")
def reject_user_submission() -> Any:
    payload = _json_body()
    set_status(get_store(), USER_SUBMISSIONS, _document_id(payload), STATUS_REJECTED, _reason(payload))
    return jsonify({"ok": True, "message": "Submission rejected."})


@app.post("/reject-restaurant-request")
def reject_restaurant_request() -> Any:
    payload = _json_body()
    set_status(get_store(), RESTAURANT_REQUESTS, _document_id(payload), STATUS_REJECTED, _reason(payload))
    return jsonify({"ok": True, "message": "Restaurant request rejected."})


@app.post("/remove-restaurant")
def remove_restaurant() -> Any:
    payload = _json_body()
    set_status(get_store(), RESTAURANTS, _document_id(payload), STATUS_REMOVED, _reason(payload))
    return jsonify({"ok": True, "message": "Restaurant removed from the catalog."})


def main() -> None:
    port = get_settings().port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port, threaded=True)


if __name__ == "__main__":
    main()
