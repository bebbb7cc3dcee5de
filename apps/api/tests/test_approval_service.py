from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import audit
from app.business.approval.schemas import ApprovalCreate, ApprovalResubmit
from app.business.approval.service import ApprovalService
from app.core.auth import AuthContext
from app.core.database import Base
from app.core.errors import InvalidTransitionError, NotFoundError
from app.models import Project


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


def _planner() -> AuthContext:
    return AuthContext(user_id="planner-1", role="PLANNER", correlation_id="corr-approval")


def _approver() -> AuthContext:
    return AuthContext(user_id="client-lead", role="NVKD")


def _project(session: Session) -> Project:
    project = Project(code="PRJ0200", name="Autumn Drop")
    session.add(project)
    session.commit()
    return project


def _submit(session: Session, service: ApprovalService, project: Project, title: str = "Media plan v1"):
    return service.submit_approval(session, _planner(), ApprovalCreate(project_id=project.id, type="PLAN", title=title))


def test_submit_starts_pending_with_history(db_session: Session) -> None:
    service = ApprovalService()
    approval = _submit(db_session, service, _project(db_session))

    assert approval.status == "PENDING"
    assert approval.escalation_level == 0
    assert approval.submitted_by_id == "planner-1"
    assert [(item.from_status, item.to_status, item.comment) for item in approval.history] == [
        (None, "PENDING", "Submitted for approval")
    ]


def test_submit_for_missing_project_raises_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        ApprovalService().submit_approval(
            db_session, _planner(), ApprovalCreate(project_id=uuid.uuid4(), type="BUDGET", title="Budget")
        )


def test_approve_is_final(db_session: Session) -> None:
    service = ApprovalService()
    approval = _submit(db_session, service, _project(db_session))

    approved = service.approve(db_session, _approver(), approval.id, "Looks good")

    assert approved.status == "APPROVED"
    assert approved.responded_by_id == "client-lead"
    assert approved.response_comment == "Looks good"
    assert approved.history[-1].from_status == "PENDING"
    assert approved.history[-1].to_status == "APPROVED"
    assert audit.entries_for("project.approval", str(approval.id))[-1]["action"] == "approval.approved"

    with pytest.raises(InvalidTransitionError):
        service.reject(db_session, _approver(), approval.id)


def test_rejected_approval_cannot_be_resubmitted(db_session: Session) -> None:
    service = ApprovalService()
    approval = _submit(db_session, service, _project(db_session))
    service.reject(db_session, _approver(), approval.id)

    with pytest.raises(InvalidTransitionError):
        service.resubmit(db_session, _planner(), approval.id)


def test_changes_requested_then_resubmitted_resets_escalation(db_session: Session) -> None:
    service = ApprovalService()
    approval = _submit(db_session, service, _project(db_session))

    changed = service.request_changes(db_session, _approver(), approval.id, "Swap the KOL list")
    assert changed.status == "CHANGES_REQUESTED"
    assert service.list_pending(db_session) == []

    resubmitted = service.resubmit(db_session, _planner(), approval.id, ApprovalResubmit(title="Media plan v2"))

    assert resubmitted.status == "PENDING"
    assert resubmitted.title == "Media plan v2"
    assert resubmitted.escalation_level == 0
    assert resubmitted.escalated_at is None
    assert resubmitted.response_comment is None
    assert [item.to_status for item in resubmitted.history] == ["PENDING", "CHANGES_REQUESTED", "PENDING"]
    assert resubmitted.history[-1].comment == "Resubmitted for approval"


def test_only_submitter_can_resubmit(db_session: Session) -> None:
    service = ApprovalService()
    approval = _submit(db_session, service, _project(db_session))
    service.request_changes(db_session, _approver(), approval.id)

    with pytest.raises(InvalidTransitionError):
        service.resubmit(db_session, _approver(), approval.id)


def test_list_pending_filters_by_project(db_session: Session) -> None:
    service = ApprovalService()
    first = _project(db_session)
    second = Project(code="PRJ0201", name="Winter Drop")
    db_session.add(second)
    db_session.commit()
    _submit(db_session, service, first, "Plan A")
    _submit(db_session, service, second, "Plan B")

    assert [item.title for item in service.list_pending(db_session, project_id=second.id)] == ["Plan B"]
    assert len(service.list_pending(db_session)) == 2


def test_missing_approval_raises_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        ApprovalService().approve(db_session, _approver(), uuid.uuid4())
