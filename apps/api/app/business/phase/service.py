from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app import audit
from app.business.phase.defaults import DEFAULT_PHASES, DefaultPhase
from app.business.phase.models import ProjectPhase, ProjectPhaseItem
from app.business.phase.progress import phase_progress, project_progress
from app.business.phase.schemas import PhaseItemCreate, PhaseItemRead, PhaseItemUpdate, PhaseRead, PhaseUpdate
from app.business.project.models import Project
from app.core.auth import AuthContext
from app.core.errors import NotFoundError
from app.metrics import observe_phase_recalculation


logger = logging.getLogger("app.phase")

# Item fields whose change alters the weighted roll-up.
_PROGRESS_FIELDS = frozenset({"is_complete", "weight"})


def _phase_snapshot(phase: ProjectPhase) -> dict[str, object]:
    return {
        "name": phase.name,
        "start_date": phase.start_date.isoformat() if phase.start_date else None,
        "end_date": phase.end_date.isoformat() if phase.end_date else None,
    }


@dataclass(slots=True)
class ProjectPhaseService:
    def create_default_phases(
        self,
        session: Session,
        project_id: uuid.UUID,
        catalog: Sequence[DefaultPhase] = DEFAULT_PHASES,
    ) -> list[ProjectPhase]:
        """Adds the phase tree to the session; the caller owns the commit."""
        phases: list[ProjectPhase] = []
        for definition in catalog:
            phase = ProjectPhase(
                project_id=project_id,
                phase_type=definition.phase_type,
                name=definition.name,
                weight=definition.weight,
                order_index=definition.order_index,
                progress=0,
            )
            phase.items = [
                ProjectPhaseItem(
                    name=item.name,
                    weight=item.weight,
                    order_index=item.order_index,
                    pic=item.pic,
                    support=item.support,
                    expected_output=item.expected_output,
                    is_complete=False,
                )
                for item in definition.items
            ]
            session.add(phase)
            phases.append(phase)
        session.flush()
        return phases

    def list_phases(self, session: Session, project_id: uuid.UUID) -> list[PhaseRead]:
        rows = session.scalars(
            select(ProjectPhase)
            .where(ProjectPhase.project_id == project_id)
            .options(selectinload(ProjectPhase.items))
            .order_by(ProjectPhase.order_index.asc())
        ).all()
        return [PhaseRead.model_validate(item) for item in rows]

    def update_phase(
        self,
        session: Session,
        ctx: AuthContext,
        project_id: uuid.UUID,
        phase_id: uuid.UUID,
        patch: PhaseUpdate,
    ) -> PhaseRead:
        phase = self._get_phase(session, project_id, phase_id)
        before = _phase_snapshot(phase)
        for field, value in patch.model_dump(mode="python", exclude_unset=True).items():
            setattr(phase, field, value)
        session.add(phase)
        session.commit()
        session.refresh(phase)

        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="project.phase",
            entity_id=str(phase.id),
            action="phase.updated",
            before=before,
            after=_phase_snapshot(phase),
            correlation_id=ctx.correlation_id,
        )
        return PhaseRead.model_validate(phase)

    def add_item(
        self,
        session: Session,
        ctx: AuthContext,
        project_id: uuid.UUID,
        phase_id: uuid.UUID,
        payload: PhaseItemCreate,
    ) -> PhaseItemRead:
        phase = self._get_phase(session, project_id, phase_id)
        last_index = session.scalar(
            select(func.max(ProjectPhaseItem.order_index)).where(ProjectPhaseItem.phase_id == phase.id)
        )
        item = ProjectPhaseItem(
            phase_id=phase.id,
            order_index=0 if last_index is None else last_index + 1,
            is_complete=False,
            **payload.model_dump(mode="python"),
        )
        session.add(item)
        session.flush()

        self._recalculate_phase(session, phase.id)
        session.commit()
        session.refresh(item)
        logger.info("phase.item_added", extra={"project_id": str(project_id), "phase_id": str(phase.id)})
        return PhaseItemRead.model_validate(item)

    def update_item(
        self,
        session: Session,
        ctx: AuthContext,
        project_id: uuid.UUID,
        phase_id: uuid.UUID,
        item_id: uuid.UUID,
        patch: PhaseItemUpdate,
    ) -> PhaseItemRead:
        phase = self._get_phase(session, project_id, phase_id)
        item = self._get_item(session, phase.id, item_id)
        changes = patch.model_dump(mode="python", exclude_unset=True)
        for field, value in changes.items():
            setattr(item, field, value)
        session.add(item)
        session.flush()

        if _PROGRESS_FIELDS.intersection(changes):
            self._recalculate_phase(session, phase.id)
        session.commit()
        session.refresh(item)

        if "is_complete" in changes:
            audit.record(
                actor_user_id=ctx.user_id,
                entity_type="project.phase_item",
                entity_id=str(item.id),
                action="phase.item_completion_changed",
                before=None,
                after={"is_complete": item.is_complete, "phase_id": str(phase.id)},
                correlation_id=ctx.correlation_id,
            )
        return PhaseItemRead.model_validate(item)

    def delete_item(
        self,
        session: Session,
        ctx: AuthContext,
        project_id: uuid.UUID,
        phase_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> None:
        phase = self._get_phase(session, project_id, phase_id)
        item = self._get_item(session, phase.id, item_id)
        session.delete(item)
        session.flush()

        self._recalculate_phase(session, phase.id)
        session.commit()
        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="project.phase_item",
            entity_id=str(item_id),
            action="phase.item_deleted",
            before={"phase_id": str(phase.id)},
            after=None,
            correlation_id=ctx.correlation_id,
        )

    def recalculate_phase_progress(self, session: Session, phase_id: uuid.UUID) -> int:
        progress = self._recalculate_phase(session, phase_id)
        session.commit()
        return progress

    def recalculate_project_progress(self, session: Session, project_id: uuid.UUID) -> int:
        progress = self._recalculate_project(session, project_id)
        session.commit()
        return progress

    def _recalculate_phase(self, session: Session, phase_id: uuid.UUID) -> int:
        phase = session.get(ProjectPhase, phase_id)
        if phase is None:
            raise NotFoundError("project phase", phase_id)

        rows = session.execute(
            select(ProjectPhaseItem.weight, ProjectPhaseItem.is_complete).where(ProjectPhaseItem.phase_id == phase_id)
        ).all()
        progress = phase_progress((row.weight, row.is_complete) for row in rows)
        if progress is None:
            observe_phase_recalculation("skipped_zero_weight")
            return 0

        phase.progress = progress
        session.add(phase)
        session.flush()
        observe_phase_recalculation("updated")

        self._recalculate_project(session, phase.project_id)
        return progress

    def _recalculate_project(self, session: Session, project_id: uuid.UUID) -> int:
        project = session.get(Project, project_id)
        if project is None:
            raise NotFoundError("project", project_id)

        rows = session.execute(
            select(ProjectPhase.weight, ProjectPhase.progress).where(ProjectPhase.project_id == project_id)
        ).all()
        progress = project_progress((row.weight, row.progress) for row in rows)
        if progress is None:
            return 0

        project.stage_progress = progress
        session.add(project)
        session.flush()
        return progress

    @staticmethod
    def _get_phase(session: Session, project_id: uuid.UUID, phase_id: uuid.UUID) -> ProjectPhase:
        phase = session.get(ProjectPhase, phase_id)
        if phase is None or phase.project_id != project_id:
            raise NotFoundError("project phase", phase_id)
        return phase

    @staticmethod
    def _get_item(session: Session, phase_id: uuid.UUID, item_id: uuid.UUID) -> ProjectPhaseItem:
        item = session.get(ProjectPhaseItem, item_id)
        if item is None or item.phase_id != phase_id:
            raise NotFoundError("project phase item", item_id)
        return item


project_phase_service = ProjectPhaseService()
