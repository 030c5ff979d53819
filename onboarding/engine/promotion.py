"""Promote an intake submission into the canonical ``restaurants`` collection.

The document store offers no multi-document transactions, so promotion is a
two-phase copy-then-delete:

1. read the source document (``NotFoundError`` is terminal);
2. merge and validate (nothing has been written yet);
3. create ``restaurants/<source id>``; the store refuses to overwrite, so a
   duplicate promotion surfaces as ``ConflictError``;
4. delete the source document. If this fails, the canonical record created
   in step 3 is deleted again before the delete error is re-raised;
5. queue a notification. Its failures never reach the caller.

The window between steps 3 and 4 is the one place where a crashed process can
leave both records behind. The source's ``pending`` status is not re-checked
before promotion.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from onboarding.engine.notifications import NotificationSink
from onboarding.etl.merge import merge_submission
from onboarding.models import RESTAURANTS, SourceCollection

logger = logging.getLogger(__name__)


def _compensate(store, document_id: str) -> None:
    try:
        store.delete(RESTAURANTS, document_id)
    except Exception as exc:  # noqa: BLE001
        # Both the source and the canonical copy are now live; someone has to clean up by hand.
        logger.exception(
            "Compensating delete of %s/%s failed; source and canonical record both exist: %s",
            RESTAURANTS,
            document_id,
            exc,
        )
    else:
        logger.warning("Rolled back %s/%s after the source delete failed", RESTAURANTS, document_id)


def promote(
    store,
    source: SourceCollection,
    document_id: str,
    overrides: Optional[Mapping[str, Any]] = None,
    notification_template: Optional[str] = None,
    *,
    notifier: Optional[NotificationSink] = None,
) -> Dict[str, Any]:
    """Move ``source.name/document_id`` into ``restaurants`` under the same id.

    Returns the created restaurant document. Raises ``NotFoundError``,
    ``ValidationError``, ``ConflictError`` or ``StoreError``; no partial state
    is left behind on any of them except an interrupted process.
    """
    submission = store.get(source.name, document_id)
    payload = merge_submission(
        submission,
        overrides,
        source_type=source.source_type,
        source_id=document_id,
    )

    restaurant = store.create(RESTAURANTS, document_id, payload)
    logger.info("Created %s/%s from %s", RESTAURANTS, document_id, source.name)

    try:
        store.delete(source.name, document_id)
    except Exception:
        logger.error("Deleting %s/%s failed after promotion; compensating", source.name, document_id)
        _compensate(store, document_id)
        raise

    logger.info("Promoted %s/%s to %s", source.name, document_id, RESTAURANTS)

    if notifier is not None:
        notifier.notify(document_id, notification_template or source.approval_template, payload)

    return restaurant
