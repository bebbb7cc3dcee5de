from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

from app import events


logger = logging.getLogger("app.approval.notifications")

ESCALATION_LEVEL_NAMES: dict[int, str] = {
    1: "Level 1 (Reminder)",
    2: "Level 2 (PM)",
    3: "Level 3 (Admin)",
}

# Who is told at each level: 1 reminds the approvers, 2 the project PMs, 3 an admin.
ESCALATION_AUDIENCES: dict[int, str] = {
    1: "approvers",
    2: "project_pm",
    3: "admin",
}


@dataclass(frozen=True, slots=True)
class EscalationNotice:
    approval_id: uuid.UUID
    project_id: uuid.UUID
    title: str
    level: int
    hours_elapsed: float
    submitted_by_id: str
    recipients: tuple[str, ...] = ()

    @property
    def level_name(self) -> str:
        return ESCALATION_LEVEL_NAMES[self.level]

    @property
    def audience(self) -> str:
        return ESCALATION_AUDIENCES[self.level]


class NotificationDispatcher(Protocol):
    def dispatch(self, notice: EscalationNotice) -> None: ...


class EventBusNotificationDispatcher:
    """Publishes ``approval.escalated`` for whichever transport is subscribed."""

    def dispatch(self, notice: EscalationNotice) -> None:
        events.publish(
            {
                "event_type": "approval.escalated",
                "approval_id": str(notice.approval_id),
                "project_id": str(notice.project_id),
                "title": notice.title,
                "escalation_level": notice.level,
                "level_name": notice.level_name,
                "audience": notice.audience,
                "recipients": list(notice.recipients),
                "hours_elapsed": round(notice.hours_elapsed, 2),
                "submitted_by_id": notice.submitted_by_id,
            }
        )
        log = logger.error if notice.level >= 3 else logger.warning
        log(
            "approval.escalation_notified",
            extra={
                "approval_id": str(notice.approval_id),
                "project_id": str(notice.project_id),
                "escalation_level": notice.level,
                "hours_elapsed": round(notice.hours_elapsed, 2),
            },
        )
