"""Fire-and-forget audit notifications written after a promotion."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional

from onboarding.models import NOTIFICATIONS, NotificationRecord

logger = logging.getLogger(__name__)


def render_message(template: str, context: Mapping[str, Any]) -> str:
    """Fill ``{placeholders}`` from ``context``; a template that does not fit is returned as-is."""
    try:
        return template.format(**context)
    except (KeyError, IndexError, ValueError):
        logger.warning("Notification template %r does not match the payload; using it verbatim", template)
        return template


class NotificationSink:
    """Queue notification writes on a background executor.

    Writes never block or fail the caller. Every error inside the background
    task is logged and dropped.
    """

    def __init__(self, store_factory: Callable[[], Any], executor: Optional[Executor] = None) -> None:
        self._store_factory = store_factory
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="notify")

    def notify(self, restaurant_id: str, template: str, context: Mapping[str, Any]) -> None:
        try:
            self._executor.submit(self._write_safe, restaurant_id, template, dict(context))
        except RuntimeError as exc:
            # Executor already shut down (interpreter exit).
            logger.warning("Could not queue notification for %s: %s", restaurant_id, exc)

    def _write_safe(self, restaurant_id: str, template: str, context: Mapping[str, Any]) -> None:
        try:
            message = render_message(template, {"id": restaurant_id, **context})
            record = NotificationRecord(restaurant_id=restaurant_id, message=message)
            self._store_factory().create(NOTIFICATIONS, None, record.to_document())
            logger.debug("Notification written for %s", restaurant_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Notification write failed for %s: %s", restaurant_id, exc)
