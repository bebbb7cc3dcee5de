from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import audit
from app.business.pipeline.financials import FINANCIAL_INPUTS, calculate_financials, merge_for_recalculation
from app.business.pipeline.models import Pipeline, utcnow
from app.business.pipeline.schemas import (
    PipelineCreate,
    PipelineEvaluationUpdate,
    PipelineRead,
    PipelineSaleUpdate,
)
from app.business.pipeline.stages import can_transition
from app.core.auth import AuthContext
from app.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceConflictError,
    ReadOnlyAfterDecisionError,
)
from app.metrics import observe_pipeline_stage_change


logger = logging.getLogger("app.pipeline")


def _pipeline_snapshot(pipeline: Pipeline) -> dict[str, Any]:
    return {
        "stage": pipeline.stage,
        "decision": pipeline.decision,
        "total_budget": str(pipeline.total_budget),
        "cogs": str(pipeline.cogs),
        "gross_profit": str(pipeline.gross_profit),
        "profit_margin": str(pipeline.profit_margin),
        "pm_id": pipeline.pm_id,
        "planner_id": pipeline.planner_id,
    }


@dataclass(slots=True)
class PipelineService:
    def create_pipeline(self, session: Session, ctx: AuthContext, payload: PipelineCreate) -> PipelineRead:
        values = payload.model_dump(mode="python")
        financials = calculate_financials(values)
        pipeline = Pipeline(
            **values,
            **financials.as_dict(),
            nvkd_id=ctx.user_id,
            stage="LEAD",
            decision="PENDING",
            weekly_notes=[],
        )
        session.add(pipeline)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise PersistenceConflictError("pipeline")
        session.refresh(pipeline)

        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="sales.pipeline",
            entity_id=str(pipeline.id),
            action="pipeline.created",
            before=None,
            after=_pipeline_snapshot(pipeline),
            correlation_id=ctx.correlation_id,
        )
        logger.info("pipeline.created", extra={"pipeline_id": str(pipeline.id), "user_id": ctx.user_id})
        return PipelineRead.model_validate(pipeline)

    def get_pipeline(self, session: Session, pipeline_id: uuid.UUID) -> PipelineRead:
        return PipelineRead.model_validate(self._get_pipeline(session, pipeline_id))

    def list_pipelines(
        self,
        session: Session,
        *,
        stage: str | None = None,
        decision: str | None = None,
        nvkd_id: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PipelineRead]:
        stmt: Select[tuple[Pipeline]] = select(Pipeline)
        if stage is not None:
            stmt = stmt.where(Pipeline.stage == stage)
        if decision is not None:
            stmt = stmt.where(Pipeline.decision == decision)
        if nvkd_id is not None:
            stmt = stmt.where(Pipeline.nvkd_id == nvkd_id)
        if search:
            stmt = stmt.where(func.lower(Pipeline.project_name).contains(search.lower()))
        stmt = stmt.order_by(Pipeline.created_at.desc(), Pipeline.id.asc()).offset(offset).limit(limit)
        return [PipelineRead.model_validate(item) for item in session.scalars(stmt).all()]

    def update_sale_fields(
        self,
        session: Session,
        ctx: AuthContext,
        pipeline_id: uuid.UUID,
        patch: PipelineSaleUpdate,
    ) -> PipelineRead:
        pipeline = self._get_pipeline(session, pipeline_id)
        self._require_pending(pipeline)
        return self._apply_patch(session, ctx, pipeline, patch.model_dump(mode="python", exclude_unset=True), "pipeline.sale_updated")

    def evaluate(
        self,
        session: Session,
        ctx: AuthContext,
        pipeline_id: uuid.UUID,
        patch: PipelineEvaluationUpdate,
    ) -> PipelineRead:
        pipeline = self._get_pipeline(session, pipeline_id)
        self._require_pending(pipeline)
        return self._apply_patch(session, ctx, pipeline, patch.model_dump(mode="python", exclude_unset=True), "pipeline.evaluated")

    def update_stage(self, session: Session, ctx: AuthContext, pipeline_id: uuid.UUID, new_stage: str) -> PipelineRead:
        pipeline = self._get_pipeline(session, pipeline_id)
        self._require_pending(pipeline)
        if not can_transition(pipeline.stage, new_stage):
            raise InvalidTransitionError("pipeline stage", pipeline.stage, new_stage)

        before = _pipeline_snapshot(pipeline)
        pipeline.stage = new_stage
        session.add(pipeline)
        session.commit()
        session.refresh(pipeline)

        observe_pipeline_stage_change(new_stage)
        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="sales.pipeline",
            entity_id=str(pipeline.id),
            action="pipeline.stage_changed",
            before=before,
            after=_pipeline_snapshot(pipeline),
            correlation_id=ctx.correlation_id,
        )
        logger.info("pipeline.stage_changed", extra={"pipeline_id": str(pipeline.id), "stage": new_stage})
        return PipelineRead.model_validate(pipeline)

    def add_weekly_note(self, session: Session, ctx: AuthContext, pipeline_id: uuid.UUID, note: str) -> PipelineRead:
        pipeline = self._get_pipeline(session, pipeline_id)
        self._require_pending(pipeline)

        existing = list(pipeline.weekly_notes or [])
        existing.append(
            {
                "week": len(existing) + 1,
                "date": utcnow().isoformat(),
                "note": note,
                "author_id": ctx.user_id,
            }
        )
        # JSON columns are not mutation-tracked; assign a new list.
        pipeline.weekly_notes = existing
        session.add(pipeline)
        session.commit()
        session.refresh(pipeline)
        return PipelineRead.model_validate(pipeline)

    def _apply_patch(
        self,
        session: Session,
        ctx: AuthContext,
        pipeline: Pipeline,
        changes: dict[str, Any],
        action: str,
    ) -> PipelineRead:
        pipeline_id = pipeline.id
        before = _pipeline_snapshot(pipeline)
        current = {field: getattr(pipeline, field) for field in FINANCIAL_INPUTS}
        financials = calculate_financials(merge_for_recalculation(current, changes))

        for field, value in changes.items():
            setattr(pipeline, field, value)
        for field, value in financials.as_dict().items():
            setattr(pipeline, field, value)

        session.add(pipeline)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise PersistenceConflictError("pipeline", pipeline_id)
        session.refresh(pipeline)

        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="sales.pipeline",
            entity_id=str(pipeline.id),
            action=action,
            before=before,
            after=_pipeline_snapshot(pipeline),
            correlation_id=ctx.correlation_id,
        )
        return PipelineRead.model_validate(pipeline)

    @staticmethod
    def _require_pending(pipeline: Pipeline) -> None:
        if pipeline.decision != "PENDING":
            raise ReadOnlyAfterDecisionError(pipeline.id, pipeline.decision)

    @staticmethod
    def _get_pipeline(session: Session, pipeline_id: uuid.UUID) -> Pipeline:
        pipeline = session.get(Pipeline, pipeline_id)
        if pipeline is None:
            raise NotFoundError("pipeline", pipeline_id)
        return pipeline


pipeline_service = PipelineService()
