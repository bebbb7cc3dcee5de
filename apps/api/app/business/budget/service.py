from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app import audit
from app.business.budget.models import BudgetEvent, MediaPlan
from app.business.budget.schemas import BudgetEventCreate, BudgetEventRead, BudgetEventStatusUpdate, BudgetThreshold
from app.business.project.models import Project, ProjectBudget
from app.core.auth import AuthContext
from app.core.config import get_settings
from app.core.errors import NotFoundError
from app.core.rounding import quantize_money, round_percent, to_decimal
from app.metrics import observe_budget_event, observe_spent_recalculation


logger = logging.getLogger("app.budget")


@dataclass(slots=True)
class BudgetLedgerService:
    def create_event(
        self,
        session: Session,
        ctx: AuthContext,
        project_id: uuid.UUID,
        payload: BudgetEventCreate,
    ) -> BudgetEventRead:
        if session.get(Project, project_id) is None:
            raise NotFoundError("project", project_id)

        if payload.media_plan_id is not None:
            plan = session.get(MediaPlan, payload.media_plan_id)
            if plan is None or plan.project_id != project_id:
                raise NotFoundError("media plan", payload.media_plan_id)

        event = BudgetEvent(
            project_id=project_id,
            media_plan_id=payload.media_plan_id,
            stage=payload.stage,
            amount=quantize_money(payload.amount),
            type=payload.type,
            category=payload.category,
            status="PENDING",
            note=payload.note,
            created_by=ctx.user_id,
        )
        session.add(event)
        session.flush()

        if event.type == "SPEND":
            self._recalc_spent(session, project_id)
        session.commit()
        session.refresh(event)

        observe_budget_event(event.type)
        logger.info(
            "budget.event_recorded",
            extra={"project_id": str(project_id), "event_id": str(event.id), "status": event.status},
        )
        return BudgetEventRead.model_validate(event)

    def update_status(
        self,
        session: Session,
        ctx: AuthContext,
        project_id: uuid.UUID,
        event_id: uuid.UUID,
        payload: BudgetEventStatusUpdate,
    ) -> BudgetEventRead:
        event = session.scalar(
            select(BudgetEvent).where(BudgetEvent.id == event_id, BudgetEvent.project_id == project_id)
        )
        if event is None:
            raise NotFoundError("budget event", event_id)

        before_status = event.status
        event.status = payload.status
        session.add(event)
        session.flush()

        if event.type == "SPEND":
            self._recalc_spent(session, project_id)
        session.commit()
        session.refresh(event)

        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="project.budget_event",
            entity_id=str(event.id),
            action="budget_event.status_changed",
            before={"status": before_status},
            after={"status": event.status, "type": event.type, "amount": str(event.amount)},
            correlation_id=ctx.correlation_id,
        )
        return BudgetEventRead.model_validate(event)

    def recalc_spent(self, session: Session, project_id: uuid.UUID) -> Decimal:
        spent = self._recalc_spent(session, project_id)
        session.commit()
        return spent

    def get_threshold(self, session: Session, project_id: uuid.UUID) -> BudgetThreshold:
        project = session.get(Project, project_id)
        if project is None:
            return BudgetThreshold(level="ok", percent=0)
        total_budget = to_decimal(project.total_budget)
        if total_budget == 0:
            return BudgetThreshold(level="ok", percent=0)

        settings = get_settings()
        percent = round_percent(project.spent_amount, total_budget)
        if percent >= settings.budget_critical_percent:
            level = "critical"
        elif percent >= settings.budget_warning_percent:
            level = "warning"
        else:
            level = "ok"
        return BudgetThreshold(level=level, percent=percent)

    def list_events(
        self,
        session: Session,
        project_id: uuid.UUID,
        *,
        stage: str | None = None,
        category: str | None = None,
        status: str | None = None,
    ) -> list[BudgetEventRead]:
        stmt: Select[tuple[BudgetEvent]] = select(BudgetEvent).where(BudgetEvent.project_id == project_id)
        if stage is not None:
            stmt = stmt.where(BudgetEvent.stage == stage)
        if category is not None:
            stmt = stmt.where(BudgetEvent.category == category)
        if status is not None:
            stmt = stmt.where(BudgetEvent.status == status)
        rows = session.scalars(stmt.order_by(BudgetEvent.created_at.desc(), BudgetEvent.id.asc())).all()
        return [BudgetEventRead.model_validate(item) for item in rows]

    def _recalc_spent(self, session: Session, project_id: uuid.UUID) -> Decimal:
        total = session.scalar(
            select(func.coalesce(func.sum(BudgetEvent.amount), 0)).where(
                BudgetEvent.project_id == project_id,
                BudgetEvent.type == "SPEND",
                BudgetEvent.status == "APPROVED",
            )
        )
        spent = quantize_money(total)

        project = session.get(Project, project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        project.spent_amount = spent
        session.add(project)

        budget = session.scalar(select(ProjectBudget).where(ProjectBudget.project_id == project_id))
        if budget is not None:
            budget.spent_amount = spent
            session.add(budget)

        session.flush()
        observe_spent_recalculation()
        return spent


budget_ledger_service = BudgetLedgerService()
