"""Time-driven escalation of approvals left pending.

Each scan compares the hours since submission against the configured
thresholds and moves an approval straight to the highest level it has reached.
Levels only ever rise while an approval is pending, so repeated or overlapping
scans settle on the same state. The notification side effect runs after the
escalation is committed and its failures are logged, never raised.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from opentelemetry import trace
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app import audit
from app.business.approval.models import Approval, ApprovalHistory, utcnow
from app.business.approval.notifications import (
    ESCALATION_LEVEL_NAMES,
    EscalationNotice,
    EventBusNotificationDispatcher,
    NotificationDispatcher,
)
from app.business.approval.schemas import EscalationCheckResult
from app.business.project.models import ProjectTeam
from app.core.config import get_settings
from app.metrics import observe_escalation, observe_escalation_notification_failure, observe_escalation_scan
from app.otel import operation_span


logger = logging.getLogger("app.approval.escalation")
tracer = trace.get_tracer("app.approval.escalation")

# Team roles notified per level; level 3 goes to an admin outside the project team.
_RECIPIENT_ROLES: dict[int, str] = {1: "NVKD", 2: "PM"}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def escalation_thresholds() -> tuple[tuple[int, float], ...]:
    """``(level, hours)`` pairs, highest level first."""
    settings = get_settings()
    return (
        (3, float(settings.escalation_level3_hours)),
        (2, float(settings.escalation_level2_hours)),
        (1, float(settings.escalation_level1_hours)),
    )


def target_level(hours_elapsed: float, thresholds: Sequence[tuple[int, float]] | None = None) -> int:
    for level, hours in thresholds if thresholds is not None else escalation_thresholds():
        if hours_elapsed >= hours:
            return level
    return 0


@dataclass(slots=True)
class ApprovalEscalationMonitor:
    clock: Callable[[], datetime] = utcnow
    dispatcher: NotificationDispatcher = field(default_factory=EventBusNotificationDispatcher)

    def run_once(self, session: Session, now: datetime | None = None) -> list[uuid.UUID]:
        """Escalates every overdue pending approval and returns the ids that moved."""
        scan_time = _as_utc(now if now is not None else self.clock())
        thresholds = escalation_thresholds()
        started = time.perf_counter()

        with operation_span(tracer, "approval.escalation_scan") as span:
            pending = session.scalars(
                select(Approval).where(Approval.status == "PENDING").order_by(Approval.submitted_at.asc())
            ).all()

            escalated: list[uuid.UUID] = []
            for approval in pending:
                hours_elapsed = (scan_time - _as_utc(approval.submitted_at)).total_seconds() / 3600
                level = target_level(hours_elapsed, thresholds)
                if level <= approval.escalation_level:
                    continue

                notice = self._escalate(session, approval, level, hours_elapsed, scan_time)
                escalated.append(notice.approval_id)
                self._notify(notice)

            span.set_attribute("checked", len(pending))
            span.set_attribute("escalated", len(escalated))

        duration = time.perf_counter() - started
        observe_escalation_scan(duration)
        logger.info(
            "approval.escalation_scan",
            extra={
                "checked": len(pending),
                "escalated": len(escalated),
                "duration_ms": round(duration * 1000, 2),
            },
        )
        return escalated

    def trigger_escalation_check(self, session: Session) -> EscalationCheckResult:
        checked = session.scalar(select(func.count()).select_from(Approval).where(Approval.status == "PENDING")) or 0

        now = _as_utc(self.clock())
        self.run_once(session, now=now)

        window_start = now - timedelta(seconds=get_settings().escalation_recent_window_seconds)
        escalated = session.scalar(
            select(func.count())
            .select_from(Approval)
            .where(Approval.status == "PENDING", Approval.escalated_at >= window_start)
        ) or 0
        return EscalationCheckResult(checked=checked, escalated=escalated)

    def _escalate(
        self,
        session: Session,
        approval: Approval,
        level: int,
        hours_elapsed: float,
        now: datetime,
    ) -> EscalationNotice:
        previous_level = approval.escalation_level
        approval.escalation_level = level
        approval.escalated_at = now
        session.add(approval)
        session.add(
            ApprovalHistory(
                approval_id=approval.id,
                from_status="PENDING",
                to_status="PENDING",
                comment=f"Auto-escalated to {ESCALATION_LEVEL_NAMES[level]} after {hours_elapsed:.0f} hours",
                changed_by_id=approval.submitted_by_id,
            )
        )
        session.commit()

        observe_escalation(level)
        audit.record(
            actor_user_id=approval.submitted_by_id,
            entity_type="project.approval",
            entity_id=str(approval.id),
            action="approval.escalated",
            before={"escalation_level": previous_level},
            after={"escalation_level": level, "escalated_at": now.isoformat()},
        )
        logger.info(
            "approval.escalated",
            extra={
                "approval_id": str(approval.id),
                "project_id": str(approval.project_id),
                "escalation_level": level,
                "hours_elapsed": round(hours_elapsed, 2),
            },
        )
        return EscalationNotice(
            approval_id=approval.id,
            project_id=approval.project_id,
            title=approval.title,
            level=level,
            hours_elapsed=hours_elapsed,
            submitted_by_id=approval.submitted_by_id,
            recipients=self._recipients(session, approval.project_id, level),
        )

    @staticmethod
    def _recipients(session: Session, project_id: uuid.UUID, level: int) -> tuple[str, ...]:
        role = _RECIPIENT_ROLES.get(level)
        if role is None:
            return ()
        rows = session.scalars(
            select(ProjectTeam.user_id)
            .where(ProjectTeam.project_id == project_id, ProjectTeam.role == role)
            .order_by(ProjectTeam.user_id.asc())
        ).all()
        return tuple(rows)

    def _notify(self, notice: EscalationNotice) -> None:
        try:
            self.dispatcher.dispatch(notice)
        except Exception as exc:
            observe_escalation_notification_failure()
            logger.exception(
                "approval.escalation_notification_failed",
                extra={
                    "approval_id": str(notice.approval_id),
                    "escalation_level": notice.level,
                    "error": str(exc)[:500],
                },
            )


approval_escalation_monitor = ApprovalEscalationMonitor()
