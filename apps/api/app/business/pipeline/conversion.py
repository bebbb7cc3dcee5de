"""Pipeline decisions: acceptance provisions the whole project family.

Acceptance runs in one transaction on the caller's session. The project row
is flushed first so every dependent row can reference its id; budget, team,
phases, brief and the pipeline update follow, and a single commit publishes
them together. Any database failure rolls everything back and surfaces as a
retryable :class:`~app.core.errors.ProvisioningError`.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import audit, events
from app.business.brief.sections import BRIEF_SECTIONS, BriefSectionDefinition
from app.business.brief.service import StrategicBriefService
from app.business.phase.defaults import DEFAULT_PHASES, DefaultPhase
from app.business.phase.service import ProjectPhaseService
from app.business.pipeline.models import Pipeline, utcnow
from app.business.pipeline.project_code import ProjectCodeGenerator, generate_project_code
from app.business.pipeline.schemas import PipelineAcceptResult, PipelineRead
from app.business.project.models import Project, ProjectBudget, ProjectTeam
from app.business.project.schemas import TeamRole
from app.core.auth import AuthContext
from app.core.config import get_settings
from app.core.errors import AlreadyDecidedError, NotFoundError, ProjectCodeExhaustedError, ProvisioningError
from app.metrics import observe_pipeline_decision, observe_provisioning_duration, observe_provisioning_failure
from app.otel import operation_span


logger = logging.getLogger("app.pipeline.conversion")
tracer = trace.get_tracer("app.pipeline.conversion")

_BUDGET_FEE_FIELDS: tuple[str, ...] = (
    "monthly_budget",
    "fixed_ad_fee",
    "ad_service_fee",
    "content_fee",
    "design_fee",
    "media_fee",
    "other_fee",
)


@dataclass(frozen=True, slots=True)
class TeamAssignment:
    role: TeamRole
    is_primary: bool


def build_team_assignments(
    nvkd_id: str,
    pm_id: str | None = None,
    planner_id: str | None = None,
) -> dict[str, TeamAssignment]:
    """Ordered user -> role map; a user keeps the first role assigned to them."""
    team: dict[str, TeamAssignment] = {nvkd_id: TeamAssignment(role="NVKD", is_primary=False)}
    if pm_id and pm_id not in team:
        team[pm_id] = TeamAssignment(role="PM", is_primary=True)
    if planner_id and planner_id not in team:
        team[planner_id] = TeamAssignment(role="PLANNER", is_primary=False)
    return team


def _or_zero(value: Decimal | None) -> Decimal:
    return value if value is not None else Decimal("0")


@dataclass(slots=True)
class PipelineConversionService:
    code_generator: ProjectCodeGenerator = generate_project_code
    phase_catalog: Sequence[DefaultPhase] = DEFAULT_PHASES
    brief_catalog: Sequence[BriefSectionDefinition] = BRIEF_SECTIONS
    phase_service: ProjectPhaseService = field(default_factory=ProjectPhaseService)
    brief_service: StrategicBriefService = field(default_factory=StrategicBriefService)

    def accept_pipeline(
        self,
        session: Session,
        ctx: AuthContext,
        pipeline_id: uuid.UUID,
        note: str | None = None,
    ) -> PipelineAcceptResult:
        started = time.perf_counter()
        with operation_span(tracer, "pipeline.accept", pipeline_id=pipeline_id, user_id=ctx.user_id) as span:
            pipeline = session.scalar(select(Pipeline).where(Pipeline.id == pipeline_id).with_for_update())
            if pipeline is None:
                raise NotFoundError("pipeline", pipeline_id)
            if pipeline.decision != "PENDING":
                raise AlreadyDecidedError(pipeline_id, pipeline.decision)

            try:
                project = self._create_project(session, pipeline)
                self._create_budget(session, project, pipeline)
                team = build_team_assignments(pipeline.nvkd_id, pipeline.pm_id, pipeline.planner_id)
                for user_id, assignment in team.items():
                    session.add(
                        ProjectTeam(
                            project_id=project.id,
                            user_id=user_id,
                            role=assignment.role,
                            is_primary=assignment.is_primary,
                        )
                    )
                phases = self.phase_service.create_default_phases(session, project.id, self.phase_catalog)
                brief = self.brief_service.build_brief(session, project.id, pipeline.id, self.brief_catalog)

                pipeline.project_id = project.id
                pipeline.decision = "ACCEPTED"
                pipeline.decision_date = utcnow()
                pipeline.decision_note = note
                pipeline.decided_by_id = ctx.user_id
                pipeline.stage = "WON"
                session.add(pipeline)
                session.flush()

                project_id = project.id
                project_code = project.code
                brief_id = brief.id
                session.commit()
            except ProjectCodeExhaustedError:
                session.rollback()
                observe_provisioning_failure("code_exhausted")
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                reason = "integrity_error" if isinstance(exc, IntegrityError) else "db_error"
                observe_provisioning_failure(reason)
                logger.warning(
                    "pipeline.accept_failed",
                    extra={"pipeline_id": str(pipeline_id), "reason": reason, "error": str(exc)[:500]},
                )
                raise ProvisioningError(pipeline_id, reason) from exc
            except Exception:
                session.rollback()
                observe_provisioning_failure("unexpected")
                raise

            span.set_attribute("project_id", str(project_id))
            span.set_attribute("project_code", project_code)

        session.refresh(pipeline)
        duration = time.perf_counter() - started
        observe_provisioning_duration(duration)
        observe_pipeline_decision("ACCEPTED")
        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="sales.pipeline",
            entity_id=str(pipeline_id),
            action="pipeline.accepted",
            before={"decision": "PENDING"},
            after={"decision": "ACCEPTED", "project_id": str(project_id), "project_code": project_code},
            correlation_id=ctx.correlation_id,
        )
        events.publish(
            {
                "event_type": "pipeline.accepted",
                "pipeline_id": str(pipeline_id),
                "project_id": str(project_id),
                "project_code": project_code,
                "actor_user_id": ctx.user_id,
                "correlation_id": ctx.correlation_id,
            }
        )
        logger.info(
            "pipeline.accepted",
            extra={
                "pipeline_id": str(pipeline_id),
                "project_id": str(project_id),
                "project_code": project_code,
                "duration_ms": round(duration * 1000, 2),
            },
        )
        return PipelineAcceptResult(
            pipeline=PipelineRead.model_validate(pipeline),
            project_id=project_id,
            project_code=project_code,
            team_size=len(team),
            phase_count=len(phases),
            brief_id=brief_id,
        )

    def decline_pipeline(
        self,
        session: Session,
        ctx: AuthContext,
        pipeline_id: uuid.UUID,
        note: str | None = None,
    ) -> PipelineRead:
        pipeline = session.get(Pipeline, pipeline_id)
        if pipeline is None:
            raise NotFoundError("pipeline", pipeline_id)
        if pipeline.decision != "PENDING":
            raise AlreadyDecidedError(pipeline_id, pipeline.decision)

        before_stage = pipeline.stage
        pipeline.decision = "DECLINED"
        pipeline.decision_date = utcnow()
        pipeline.decision_note = note
        pipeline.decided_by_id = ctx.user_id
        pipeline.stage = "LOST"
        session.add(pipeline)
        session.commit()
        session.refresh(pipeline)

        observe_pipeline_decision("DECLINED")
        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="sales.pipeline",
            entity_id=str(pipeline_id),
            action="pipeline.declined",
            before={"decision": "PENDING", "stage": before_stage},
            after={"decision": "DECLINED", "stage": "LOST"},
            correlation_id=ctx.correlation_id,
        )
        events.publish(
            {
                "event_type": "pipeline.declined",
                "pipeline_id": str(pipeline_id),
                "actor_user_id": ctx.user_id,
                "correlation_id": ctx.correlation_id,
            }
        )
        logger.info("pipeline.declined", extra={"pipeline_id": str(pipeline_id), "decision": "DECLINED"})
        return PipelineRead.model_validate(pipeline)

    def _create_project(self, session: Session, pipeline: Pipeline) -> Project:
        project = Project(
            code=self._allocate_code(session, pipeline.id),
            name=pipeline.project_name,
            product_type=pipeline.product_type,
            stage=pipeline.current_stage,
            status="STABLE",
            stage_progress=0,
            total_budget=_or_zero(pipeline.total_budget),
            spent_amount=Decimal("0"),
        )
        session.add(project)
        session.flush()
        return project

    def _create_budget(self, session: Session, project: Project, pipeline: Pipeline) -> ProjectBudget:
        budget = ProjectBudget(
            project_id=project.id,
            total_budget=_or_zero(pipeline.total_budget),
            spent_amount=Decimal("0"),
            **{name: _or_zero(getattr(pipeline, name)) for name in _BUDGET_FEE_FIELDS},
        )
        session.add(budget)
        return budget

    def _allocate_code(self, session: Session, pipeline_id: uuid.UUID) -> str:
        """Draws codes until one is unused; a concurrent insert of the same code still fails the commit."""
        attempts = get_settings().project_code_max_attempts
        for attempt in range(1, attempts + 1):
            code = self.code_generator()
            taken = session.scalar(select(Project.id).where(Project.code == code))
            if taken is None:
                return code
            logger.info(
                "pipeline.project_code_collision",
                extra={"pipeline_id": str(pipeline_id), "project_code": code, "attempt": attempt},
            )
        raise ProjectCodeExhaustedError(pipeline_id, attempts)


pipeline_conversion_service = PipelineConversionService()
