"""Single-field status updates that never move documents between collections."""

import logging
from typing import Any, Dict, Optional

from onboarding.core.errors import InvalidTransitionError
from onboarding.models import (
    RESTAURANT_REQUESTS,
    RESTAURANTS,
    STATUS_CONTACTED,
    STATUS_REJECTED,
    STATUS_REMOVED,
    USER_SUBMISSIONS,
)

logger = logging.getLogger(__name__)

TRANSITIONS = {
    USER_SUBMISSIONS: frozenset({STATUS_CONTACTED, STATUS_REJECTED}),
    RESTAURANT_REQUESTS: frozenset({STATUS_CONTACTED, STATUS_REJECTED}),
    RESTAURANTS: frozenset({STATUS_REMOVED}),
}


def check_transition(collection: str, new_status: str) -> None:
    allowed = TRANSITIONS.get(collection)
    if allowed is None or new_status not in allowed:
        raise InvalidTransitionError(f"{collection} documents cannot be set to {new_status!r}")


def set_status(store, collection: str, document_id: str, new_status: str, note: Optional[str] = None) -> Dict[str, Any]:
    """Write ``status`` (and ``note`` when given) on one document.

    The current status is not read first; repeating a transition is a plain
    repeated update.
    """
    check_transition(collection, new_status)

    fields: Dict[str, Any] = {"status": new_status}
    if note is not None:
        fields["note"] = note

    document = store.update(collection, document_id, fields)
    logger.info("Set %s/%s status=%s", collection, document_id, new_status)
    return document
