from __future__ import annotations

import uuid
from collections.abc import Generator
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import audit
from app.business.budget.schemas import BudgetEventCreate, BudgetEventStatusUpdate
from app.business.budget.service import BudgetLedgerService
from app.core.auth import AuthContext
from app.core.database import Base
from app.core.errors import NotFoundError
from app.models import MediaPlan, Project, ProjectBudget


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


def _ctx() -> AuthContext:
    return AuthContext(user_id="pm-1", role="PM", correlation_id="corr-budget")


def _project(session: Session, code: str = "PRJ0001", total_budget: str = "10000") -> Project:
    project = Project(code=code, name="Tet Campaign", total_budget=Decimal(total_budget))
    session.add(project)
    session.flush()
    session.add(ProjectBudget(project_id=project.id, total_budget=Decimal(total_budget)))
    session.commit()
    return project


def _spend(amount: str, category: str = "MEDIA", **extra) -> BudgetEventCreate:
    return BudgetEventCreate(type="SPEND", category=category, amount=Decimal(amount), **extra)


def test_only_approved_spend_counts_toward_spent(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session)

    approved = service.create_event(db_session, _ctx(), project.id, _spend("1000"))
    service.create_event(db_session, _ctx(), project.id, _spend("500"))
    service.create_event(
        db_session, _ctx(), project.id, BudgetEventCreate(type="ALLOC", category="MEDIA", amount=Decimal("9000"))
    )
    assert approved.status == "PENDING"
    assert db_session.get(Project, project.id).spent_amount == Decimal("0")

    service.update_status(db_session, _ctx(), project.id, approved.id, BudgetEventStatusUpdate(status="APPROVED"))

    db_session.refresh(project)
    assert project.spent_amount == Decimal("1000.00")
    assert project.budget is not None
    assert project.budget.spent_amount == Decimal("1000.00")


def test_rejecting_approved_spend_lowers_spent(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session)
    first = service.create_event(db_session, _ctx(), project.id, _spend("700"))
    second = service.create_event(db_session, _ctx(), project.id, _spend("300"))
    for event in (first, second):
        service.update_status(db_session, _ctx(), project.id, event.id, BudgetEventStatusUpdate(status="APPROVED"))

    updated = service.update_status(
        db_session, _ctx(), project.id, first.id, BudgetEventStatusUpdate(status="REJECTED")
    )

    assert updated.status == "REJECTED"
    assert db_session.get(Project, project.id).spent_amount == Decimal("300.00")
    changes = audit.entries_for("project.budget_event", str(first.id))
    assert changes[-1]["before"] == {"status": "APPROVED"}


def test_recalc_spent_is_idempotent(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session)
    event = service.create_event(db_session, _ctx(), project.id, _spend("1250.50"))
    service.update_status(db_session, _ctx(), project.id, event.id, BudgetEventStatusUpdate(status="APPROVED"))

    assert service.recalc_spent(db_session, project.id) == Decimal("1250.50")
    assert service.recalc_spent(db_session, project.id) == Decimal("1250.50")


@pytest.mark.parametrize(
    ("spent", "level", "percent"),
    [
        ("0", "ok", 0),
        ("7949", "ok", 79),
        ("7999", "warning", 80),
        ("8500", "warning", 85),
        ("10000", "critical", 100),
        ("11000", "critical", 110),
    ],
)
def test_threshold_levels(db_session: Session, spent: str, level: str, percent: int) -> None:
    project = _project(db_session)
    project.spent_amount = Decimal(spent)
    db_session.commit()

    threshold = BudgetLedgerService().get_threshold(db_session, project.id)

    assert threshold.level == level
    assert threshold.percent == percent


def test_threshold_for_zero_budget_or_missing_project_is_ok(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session, total_budget="0")

    assert service.get_threshold(db_session, project.id).model_dump() == {"level": "ok", "percent": 0}
    assert service.get_threshold(db_session, uuid.uuid4()).model_dump() == {"level": "ok", "percent": 0}


def test_media_plan_must_belong_to_project(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session)
    other = _project(db_session, code="PRJ0002")
    foreign_plan = MediaPlan(project_id=other.id, name="Other plan")
    db_session.add(foreign_plan)
    db_session.commit()

    with pytest.raises(NotFoundError):
        service.create_event(db_session, _ctx(), project.id, _spend("100", media_plan_id=foreign_plan.id))

    assert service.list_events(db_session, project.id) == []


def test_event_for_missing_project_raises_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        BudgetLedgerService().create_event(db_session, _ctx(), uuid.uuid4(), _spend("100"))


def test_status_update_is_scoped_to_project(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session)
    other = _project(db_session, code="PRJ0002")
    event = service.create_event(db_session, _ctx(), project.id, _spend("100"))

    with pytest.raises(NotFoundError):
        service.update_status(db_session, _ctx(), other.id, event.id, BudgetEventStatusUpdate(status="APPROVED"))


def test_list_events_filters(db_session: Session) -> None:
    service = BudgetLedgerService()
    project = _project(db_session)
    media = service.create_event(db_session, _ctx(), project.id, _spend("100", stage="SETUP_CHUAN_BI"))
    service.create_event(db_session, _ctx(), project.id, _spend("50", category="DESIGN"))
    service.update_status(db_session, _ctx(), project.id, media.id, BudgetEventStatusUpdate(status="APPROVED"))

    assert [item.id for item in service.list_events(db_session, project.id, category="MEDIA")] == [media.id]
    assert [item.id for item in service.list_events(db_session, project.id, status="APPROVED")] == [media.id]
    assert [item.id for item in service.list_events(db_session, project.id, stage="SETUP_CHUAN_BI")] == [media.id]
    assert len(service.list_events(db_session, project.id)) == 2
