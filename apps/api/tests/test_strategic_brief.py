from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import events
from app.business.brief.schemas import BriefSectionUpdate
from app.business.brief.sections import BRIEF_SECTIONS, TOTAL_SECTIONS, can_transition
from app.business.brief.service import StrategicBriefService
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
    return AuthContext(user_id="planner-1", role="PLANNER", correlation_id="corr-brief")


def _lead() -> AuthContext:
    return AuthContext(user_id="lead-1", role="LEADER")


def _brief(session: Session, service: StrategicBriefService):
    project = Project(code="PRJ0400", name="Back to School")
    session.add(project)
    session.commit()
    return service.create_brief(session, _planner(), project.id)


def _complete(session: Session, service: StrategicBriefService, brief_id: uuid.UUID, count: int = TOTAL_SECTIONS) -> None:
    for num in range(1, count + 1):
        service.update_section(session, _planner(), brief_id, num, BriefSectionUpdate(is_complete=True))


def test_catalog_has_sixteen_numbered_sections() -> None:
    assert TOTAL_SECTIONS == 16
    assert [item.num for item in BRIEF_SECTIONS] == list(range(1, 17))
    assert len({item.key for item in BRIEF_SECTIONS}) == 16


def test_status_graph() -> None:
    assert can_transition("DRAFT", "SUBMITTED")
    assert can_transition("REVISION_REQUESTED", "SUBMITTED")
    assert not can_transition("DRAFT", "APPROVED")
    assert not can_transition("APPROVED", "REVISION_REQUESTED")


def test_new_brief_is_empty_draft(db_session: Session) -> None:
    brief = _brief(db_session, StrategicBriefService())

    assert brief.status == "DRAFT"
    assert brief.completion_pct == 0
    assert [section.section_num for section in brief.sections] == list(range(1, 17))
    assert not any(section.is_complete for section in brief.sections)


def test_completion_is_recomputed_on_every_section_write(db_session: Session) -> None:
    service = StrategicBriefService()
    brief = _brief(db_session, service)

    service.update_section(db_session, _planner(), brief.id, 1, BriefSectionUpdate(is_complete=True))
    assert service.get_brief(db_session, brief.id).completion_pct == 6

    _complete(db_session, service, brief.id, 8)
    assert service.get_brief(db_session, brief.id).completion_pct == 50

    section = service.update_section(
        db_session, _planner(), brief.id, 2, BriefSectionUpdate(data={"competitors": ["A", "B"]})
    )
    assert section.data == {"competitors": ["A", "B"]}
    assert section.is_complete is True
    assert service.get_brief(db_session, brief.id).completion_pct == 50

    service.update_section(db_session, _planner(), brief.id, 2, BriefSectionUpdate(is_complete=False))
    assert service.get_brief(db_session, brief.id).completion_pct == 44


def test_submit_requires_all_sections(db_session: Session) -> None:
    service = StrategicBriefService()
    brief = _brief(db_session, service)
    _complete(db_session, service, brief.id, 15)

    with pytest.raises(InvalidTransitionError):
        service.submit(db_session, _planner(), brief.id)
    assert service.get_brief(db_session, brief.id).status == "DRAFT"


def test_submit_then_approve(db_session: Session) -> None:
    service = StrategicBriefService()
    brief = _brief(db_session, service)
    _complete(db_session, service, brief.id)

    submitted = service.submit(db_session, _planner(), brief.id)
    assert submitted.status == "SUBMITTED"
    assert submitted.completion_pct == 100
    assert submitted.submitted_at is not None

    approved = service.approve(db_session, _lead(), brief.id)
    assert approved.status == "APPROVED"
    assert approved.approved_by == "lead-1"
    assert approved.approved_at is not None

    published = {item["event_type"] for item in events.published_events if item.get("brief_id") == str(brief.id)}
    assert published == {"brief.submitted", "brief.approved"}

    with pytest.raises(InvalidTransitionError):
        service.request_revision(db_session, _lead(), brief.id)


def test_revision_cycle_returns_to_submitted(db_session: Session) -> None:
    service = StrategicBriefService()
    brief = _brief(db_session, service)
    _complete(db_session, service, brief.id)
    service.submit(db_session, _planner(), brief.id)

    revised = service.request_revision(db_session, _lead(), brief.id)
    assert revised.status == "REVISION_REQUESTED"

    resubmitted = service.submit(db_session, _planner(), brief.id)
    assert resubmitted.status == "SUBMITTED"


def test_approve_draft_is_rejected(db_session: Session) -> None:
    service = StrategicBriefService()
    brief = _brief(db_session, service)

    with pytest.raises(InvalidTransitionError):
        service.approve(db_session, _lead(), brief.id)


def test_unknown_section_or_project_raises_not_found(db_session: Session) -> None:
    service = StrategicBriefService()
    brief = _brief(db_session, service)

    with pytest.raises(NotFoundError):
        service.update_section(db_session, _planner(), brief.id, 17, BriefSectionUpdate(is_complete=True))
    with pytest.raises(NotFoundError):
        service.create_brief(db_session, _planner(), uuid.uuid4())
