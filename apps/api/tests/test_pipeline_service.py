from __future__ import annotations

import uuid
from collections.abc import Generator
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import audit
from app.business.pipeline.conversion import PipelineConversionService
from app.business.pipeline.schemas import PipelineCreate, PipelineEvaluationUpdate, PipelineSaleUpdate
from app.business.pipeline.service import PipelineService
from app.core.auth import AuthContext
from app.core.database import Base
from app.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceConflictError,
    ReadOnlyAfterDecisionError,
)


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


def _sales() -> AuthContext:
    return AuthContext(user_id="sale-1", role="NVKD", correlation_id="corr-pipeline")


def _pm() -> AuthContext:
    return AuthContext(user_id="pm-1", role="PM")


def _create(session: Session, service: PipelineService, name: str = "Tet Campaign", budget: str = "10000"):
    return service.create_pipeline(
        session,
        _sales(),
        PipelineCreate(project_name=name, total_budget=Decimal(budget), product_type="FMCG"),
    )


def test_create_pipeline_starts_pending_lead_owned_by_creator(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)

    assert pipeline.stage == "LEAD"
    assert pipeline.decision == "PENDING"
    assert pipeline.nvkd_id == "sale-1"
    assert pipeline.decided_by_id is None
    assert pipeline.project_id is None
    assert pipeline.weekly_notes == []
    assert pipeline.gross_profit == Decimal("10000.00")
    assert audit.entries_for("sales.pipeline", str(pipeline.id))


def test_evaluate_recomputes_financials_from_merged_inputs(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)

    first = service.evaluate(
        db_session,
        _pm(),
        pipeline.id,
        PipelineEvaluationUpdate(pm_id="pm-1", cost_nsqc=Decimal("1000"), cost_media=Decimal("3000")),
    )
    assert first.cogs == Decimal("4000.00")
    assert first.gross_profit == Decimal("6000.00")
    assert first.profit_margin == Decimal("60.00")
    assert first.pm_id == "pm-1"

    second = service.evaluate(db_session, _pm(), pipeline.id, PipelineEvaluationUpdate(cost_kol=Decimal("1000")))
    assert second.cogs == Decimal("5000.00")
    assert second.profit_margin == Decimal("50.00")
    assert second.cost_nsqc == Decimal("1000.00")


def test_sale_budget_change_refreshes_margin(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)
    service.evaluate(db_session, _pm(), pipeline.id, PipelineEvaluationUpdate(cost_other=Decimal("2000")))

    updated = service.update_sale_fields(db_session, _sales(), pipeline.id, PipelineSaleUpdate(total_budget=Decimal("4000")))

    assert updated.total_budget == Decimal("4000.00")
    assert updated.gross_profit == Decimal("2000.00")
    assert updated.profit_margin == Decimal("50.00")


@pytest.mark.parametrize("field", ["total_budget", "project_name"])
def test_sale_patch_rejects_null_for_required_fields(field: str) -> None:
    with pytest.raises(ValidationError):
        PipelineSaleUpdate.model_validate({field: None})


def test_sale_patch_may_clear_optional_fields(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)
    service.update_sale_fields(db_session, _sales(), pipeline.id, PipelineSaleUpdate(monthly_budget=Decimal("500")))

    cleared = service.update_sale_fields(
        db_session, _sales(), pipeline.id, PipelineSaleUpdate.model_validate({"monthly_budget": None})
    )

    assert cleared.monthly_budget is None
    assert cleared.total_budget == Decimal("10000.00")


def test_constraint_failure_rolls_back_and_keeps_session_usable(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)
    unchecked = PipelineSaleUpdate.model_construct(total_budget=None)

    with pytest.raises(PersistenceConflictError):
        service.update_sale_fields(db_session, _sales(), pipeline.id, unchecked)

    reloaded = service.get_pipeline(db_session, pipeline.id)
    assert reloaded.total_budget == Decimal("10000.00")
    renamed = service.update_sale_fields(db_session, _sales(), pipeline.id, PipelineSaleUpdate(project_name="Mid-Autumn"))
    assert renamed.project_name == "Mid-Autumn"

def test_update_stage_follows_adjacency_table(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)

    with pytest.raises(InvalidTransitionError):
        service.update_stage(db_session, _sales(), pipeline.id, "WON")

    for stage in ("QUALIFIED", "EVALUATION", "NEGOTIATION", "WON"):
        moved = service.update_stage(db_session, _sales(), pipeline.id, stage)
        assert moved.stage == stage

    with pytest.raises(InvalidTransitionError):
        service.update_stage(db_session, _sales(), pipeline.id, "LOST")


def test_weekly_notes_are_numbered_in_append_order(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)

    service.add_weekly_note(db_session, _sales(), pipeline.id, "Kick-off call done")
    updated = service.add_weekly_note(db_session, _pm(), pipeline.id, "Client wants KOL mix")

    assert [note.week for note in updated.weekly_notes] == [1, 2]
    assert [note.author_id for note in updated.weekly_notes] == ["sale-1", "pm-1"]
    assert updated.weekly_notes[1].note == "Client wants KOL mix"


def test_decided_pipeline_is_read_only(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)
    PipelineConversionService().decline_pipeline(db_session, _sales(), pipeline.id, "Budget too small")

    with pytest.raises(ReadOnlyAfterDecisionError):
        service.update_stage(db_session, _sales(), pipeline.id, "QUALIFIED")
    with pytest.raises(ReadOnlyAfterDecisionError):
        service.evaluate(db_session, _pm(), pipeline.id, PipelineEvaluationUpdate(cost_media=Decimal("1")))
    with pytest.raises(ReadOnlyAfterDecisionError):
        service.update_sale_fields(db_session, _sales(), pipeline.id, PipelineSaleUpdate(project_name="Renamed"))
    with pytest.raises(ReadOnlyAfterDecisionError):
        service.add_weekly_note(db_session, _sales(), pipeline.id, "late note")

    stored = service.get_pipeline(db_session, pipeline.id)
    assert stored.stage == "LOST"
    assert stored.weekly_notes == []


def test_read_only_check_precedes_transition_check(db_session: Session) -> None:
    service = PipelineService()
    pipeline = _create(db_session, service)
    PipelineConversionService().decline_pipeline(db_session, _sales(), pipeline.id)

    # LOST -> WON is also an invalid edge; the decision guard reports first.
    with pytest.raises(ReadOnlyAfterDecisionError):
        service.update_stage(db_session, _sales(), pipeline.id, "WON")


def test_list_pipelines_filters_and_searches(db_session: Session) -> None:
    service = PipelineService()
    tet = _create(db_session, service, name="Tet Campaign")
    _create(db_session, service, name="Summer Launch")
    service.update_stage(db_session, _sales(), tet.id, "QUALIFIED")

    assert [item.project_name for item in service.list_pipelines(db_session, stage="QUALIFIED")] == ["Tet Campaign"]
    assert [item.project_name for item in service.list_pipelines(db_session, search="summer")] == ["Summer Launch"]
    assert len(service.list_pipelines(db_session, nvkd_id="sale-1")) == 2
    assert service.list_pipelines(db_session, decision="ACCEPTED") == []
    assert len(service.list_pipelines(db_session, limit=1)) == 1


def test_missing_pipeline_raises_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError):
        PipelineService().get_pipeline(db_session, uuid.uuid4())
