"""Collections and records shared by the onboarding engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict

USER_SUBMISSIONS = "user_submissions"
RESTAURANT_REQUESTS = "restaurant_requests"
RESTAURANTS = "restaurants"
NOTIFICATIONS = "notifications"

STATUS_PENDING = "pending"
STATUS_CONTACTED = "contacted"
STATUS_REJECTED = "rejected"
STATUS_LIVE = "live"
STATUS_REMOVED = "removed"


@dataclass(frozen=True)
class SourceCollection:
    """An intake collection that can be promoted into ``restaurants``."""

    name: str
    source_type: str
    approval_template: str


LEAD_SUBMISSIONS = SourceCollection(
    name=USER_SUBMISSIONS,
    source_type="user",
    approval_template="{name} moved to live restaurants.",
)
OWNER_REQUESTS = SourceCollection(
    name=RESTAURANT_REQUESTS,
    source_type="owner",
    approval_template="{name} approved and moved to live restaurants.",
)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class NotificationRecord:
    """Append-only audit entry written after a promotion."""

    restaurant_id: str
    message: str
    created_at: str = field(default_factory=_utcnow_iso)

    def to_document(self) -> Dict[str, str]:
        return {
            "restaurantId": self.restaurant_id,
            "message": self.message,
            "createdAt": self.created_at,
        }
