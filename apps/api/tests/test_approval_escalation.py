from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import events
from app.business.approval.escalation import ApprovalEscalationMonitor, target_level
from app.business.approval.notifications import EscalationNotice
from app.business.approval.schemas import ApprovalCreate
from app.business.approval.service import ApprovalService
from app.core.auth import AuthContext
from app.core.database import Base
from app.models import Approval, Project, ProjectTeam


SUBMITTED_AT = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.notices: list[EscalationNotice] = []

    def dispatch(self, notice: EscalationNotice) -> None:
        self.notices.append(notice)


class FailingDispatcher:
    def dispatch(self, notice: EscalationNotice) -> None:
        raise RuntimeError("mail relay unavailable")


def _project(session: Session) -> Project:
    project = Project(code="PRJ0300", name="Mid-Autumn")
    session.add(project)
    session.flush()
    session.add_all(
        [
            ProjectTeam(project_id=project.id, user_id="sale-1", role="NVKD", is_primary=False),
            ProjectTeam(project_id=project.id, user_id="pm-1", role="PM", is_primary=True),
            ProjectTeam(project_id=project.id, user_id="planner-1", role="PLANNER", is_primary=False),
        ]
    )
    session.commit()
    return project


def _pending_approval(session: Session, project: Project, title: str = "Content calendar") -> Approval:
    read = ApprovalService().submit_approval(
        session,
        AuthContext(user_id="planner-1", role="PLANNER"),
        ApprovalCreate(project_id=project.id, type="CONTENT", title=title),
    )
    approval = session.get(Approval, read.id)
    assert approval is not None
    approval.submitted_at = SUBMITTED_AT
    session.commit()
    return approval


def _monitor(hours: float, dispatcher=None) -> ApprovalEscalationMonitor:
    now = SUBMITTED_AT + timedelta(hours=hours)
    return ApprovalEscalationMonitor(clock=lambda: now, dispatcher=dispatcher or RecordingDispatcher())


@pytest.mark.parametrize(
    ("hours", "level"),
    [(0, 0), (23.9, 0), (24, 1), (47.5, 1), (48, 2), (71, 2), (72, 3), (500, 3)],
)
def test_target_level_picks_highest_threshold_met(hours: float, level: int) -> None:
    assert target_level(hours) == level


def test_escalates_once_per_level(db_session: Session) -> None:
    approval = _pending_approval(db_session, _project(db_session))
    dispatcher = RecordingDispatcher()
    monitor = _monitor(25, dispatcher)

    assert monitor.run_once(db_session) == [approval.id]
    assert monitor.run_once(db_session) == []

    db_session.refresh(approval)
    assert approval.escalation_level == 1
    assert [notice.level for notice in dispatcher.notices] == [1]
    assert dispatcher.notices[0].recipients == ("sale-1",)
    assert dispatcher.notices[0].audience == "approvers"

    history = [item for item in approval.history if item.comment and item.comment.startswith("Auto-escalated")]
    assert len(history) == 1
    assert history[0].from_status == "PENDING"
    assert history[0].to_status == "PENDING"
    assert history[0].comment == "Auto-escalated to Level 1 (Reminder) after 25 hours"
    assert history[0].changed_by_id == "planner-1"


def test_long_overdue_approval_jumps_straight_to_level_three(db_session: Session) -> None:
    approval = _pending_approval(db_session, _project(db_session))
    dispatcher = RecordingDispatcher()

    _monitor(73, dispatcher).run_once(db_session)

    db_session.refresh(approval)
    assert approval.escalation_level == 3
    assert [notice.level for notice in dispatcher.notices] == [3]
    assert dispatcher.notices[0].recipients == ()
    assert dispatcher.notices[0].audience == "admin"
    escalations = [item for item in approval.history if item.comment and item.comment.startswith("Auto-escalated")]
    assert [item.comment for item in escalations] == ["Auto-escalated to Level 3 (Admin) after 73 hours"]


def test_levels_climb_across_scans(db_session: Session) -> None:
    approval = _pending_approval(db_session, _project(db_session))
    dispatcher = RecordingDispatcher()

    _monitor(30, dispatcher).run_once(db_session)
    _monitor(50, dispatcher).run_once(db_session)
    _monitor(50, dispatcher).run_once(db_session)

    db_session.refresh(approval)
    assert approval.escalation_level == 2
    assert [notice.level for notice in dispatcher.notices] == [1, 2]
    assert dispatcher.notices[1].recipients == ("pm-1",)


def test_failed_notification_keeps_the_escalation(db_session: Session) -> None:
    approval = _pending_approval(db_session, _project(db_session))

    escalated = _monitor(49, FailingDispatcher()).run_once(db_session)

    assert escalated == [approval.id]
    db_session.refresh(approval)
    assert approval.escalation_level == 2
    assert approval.escalated_at is not None


def test_resolved_approvals_are_ignored(db_session: Session) -> None:
    project = _project(db_session)
    approval = _pending_approval(db_session, project)
    ApprovalService().approve(db_session, AuthContext(user_id="client"), approval.id)

    assert _monitor(100).run_once(db_session) == []
    db_session.refresh(approval)
    assert approval.escalation_level == 0


def test_trigger_counts_pending_and_recent_escalations(db_session: Session) -> None:
    project = _project(db_session)
    _pending_approval(db_session, project, "Overdue")
    fresh = _pending_approval(db_session, project, "Fresh")
    fresh.submitted_at = SUBMITTED_AT + timedelta(hours=20)
    db_session.commit()

    result = _monitor(30).trigger_escalation_check(db_session)

    assert result.checked == 2
    assert result.escalated == 1

    again = _monitor(30).trigger_escalation_check(db_session)
    assert again.checked == 2
    assert again.escalated == 1

    later = _monitor(31).trigger_escalation_check(db_session)
    assert later.escalated == 0


def test_default_dispatcher_publishes_escalation_event(db_session: Session) -> None:
    approval = _pending_approval(db_session, _project(db_session))
    now = SUBMITTED_AT + timedelta(hours=48)

    ApprovalEscalationMonitor(clock=lambda: now).run_once(db_session)

    published = [
        item
        for item in events.published_events
        if item.get("event_type") == "approval.escalated" and item.get("approval_id") == str(approval.id)
    ]
    assert len(published) == 1
    assert published[0]["escalation_level"] == 2
    assert published[0]["recipients"] == ["pm-1"]
