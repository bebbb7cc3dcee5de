from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app import audit, events
from app.business.brief.models import BriefSection, StrategicBrief, utcnow
from app.business.brief.schemas import BriefRead, BriefSectionRead, BriefSectionUpdate
from app.business.brief.sections import BRIEF_SECTIONS, TOTAL_SECTIONS, BriefSectionDefinition, can_transition
from app.business.project.models import Project
from app.core.auth import AuthContext
from app.core.errors import InvalidTransitionError, NotFoundError
from app.core.rounding import round_percent
from app.metrics import observe_brief_transition


logger = logging.getLogger("app.brief")


@dataclass(slots=True)
class StrategicBriefService:
    def build_brief(
        self,
        session: Session,
        project_id: uuid.UUID,
        pipeline_id: uuid.UUID | None = None,
        catalog: Sequence[BriefSectionDefinition] = BRIEF_SECTIONS,
    ) -> StrategicBrief:
        """Adds a DRAFT brief with one empty section per catalog entry; the caller owns the commit."""
        brief = StrategicBrief(project_id=project_id, pipeline_id=pipeline_id, status="DRAFT", completion_pct=0)
        brief.sections = [
            BriefSection(section_num=item.num, section_key=item.key, title=item.title, is_complete=False)
            for item in catalog
        ]
        session.add(brief)
        session.flush()
        return brief

    def create_brief(self, session: Session, ctx: AuthContext, project_id: uuid.UUID) -> BriefRead:
        if session.get(Project, project_id) is None:
            raise NotFoundError("project", project_id)
        brief = self.build_brief(session, project_id)
        session.commit()
        logger.info("brief.created", extra={"brief_id": str(brief.id), "project_id": str(project_id)})
        return self.get_brief(session, brief.id)

    def get_brief(self, session: Session, brief_id: uuid.UUID) -> BriefRead:
        brief = session.scalar(
            select(StrategicBrief)
            .where(StrategicBrief.id == brief_id)
            .options(selectinload(StrategicBrief.sections))
            .execution_options(populate_existing=True)
        )
        if brief is None:
            raise NotFoundError("strategic brief", brief_id)
        return BriefRead.model_validate(brief)

    def update_section(
        self,
        session: Session,
        ctx: AuthContext,
        brief_id: uuid.UUID,
        section_num: int,
        patch: BriefSectionUpdate,
    ) -> BriefSectionRead:
        section = session.scalar(
            select(BriefSection).where(BriefSection.brief_id == brief_id, BriefSection.section_num == section_num)
        )
        if section is None:
            raise NotFoundError("brief section", f"{brief_id}#{section_num}")

        changes = patch.model_dump(mode="python", exclude_unset=True)
        if "data" in changes:
            section.data = changes["data"]
        if changes.get("is_complete") is not None:
            section.is_complete = changes["is_complete"]
        session.add(section)
        session.flush()

        self._recalculate(session, brief_id)
        session.commit()
        session.refresh(section)
        return BriefSectionRead.model_validate(section)

    def recalculate_completion(self, session: Session, brief_id: uuid.UUID) -> int:
        pct = self._recalculate(session, brief_id)
        session.commit()
        return pct

    def submit(self, session: Session, ctx: AuthContext, brief_id: uuid.UUID) -> BriefRead:
        brief = self._get_brief(session, brief_id)
        if brief.completion_pct < 100:
            raise InvalidTransitionError("brief", brief.status, "SUBMITTED", "sections incomplete")
        return self._transition(session, ctx, brief, "SUBMITTED")

    def approve(self, session: Session, ctx: AuthContext, brief_id: uuid.UUID) -> BriefRead:
        brief = self._get_brief(session, brief_id)
        return self._transition(session, ctx, brief, "APPROVED")

    def request_revision(self, session: Session, ctx: AuthContext, brief_id: uuid.UUID) -> BriefRead:
        brief = self._get_brief(session, brief_id)
        return self._transition(session, ctx, brief, "REVISION_REQUESTED")

    def _transition(self, session: Session, ctx: AuthContext, brief: StrategicBrief, target: str) -> BriefRead:
        if not can_transition(brief.status, target):
            raise InvalidTransitionError("brief", brief.status, target)

        before = {"status": brief.status, "completion_pct": brief.completion_pct}
        brief.status = target
        if target == "SUBMITTED":
            brief.submitted_at = utcnow()
        elif target == "APPROVED":
            brief.approved_at = utcnow()
            brief.approved_by = ctx.user_id
        session.add(brief)
        session.commit()

        observe_brief_transition(target)
        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="project.strategic_brief",
            entity_id=str(brief.id),
            action=f"brief.{target.lower()}",
            before=before,
            after={"status": brief.status, "completion_pct": brief.completion_pct},
            correlation_id=ctx.correlation_id,
        )
        if target in {"SUBMITTED", "APPROVED"}:
            events.publish(
                {
                    "event_type": f"brief.{target.lower()}",
                    "brief_id": str(brief.id),
                    "project_id": str(brief.project_id),
                    "actor_user_id": ctx.user_id,
                    "correlation_id": ctx.correlation_id,
                }
            )
        logger.info("brief.status_changed", extra={"brief_id": str(brief.id), "status": target})
        return self.get_brief(session, brief.id)

    def _recalculate(self, session: Session, brief_id: uuid.UUID) -> int:
        brief = self._get_brief(session, brief_id)
        completed = session.scalars(
            select(BriefSection.is_complete).where(BriefSection.brief_id == brief_id)
        ).all()
        pct = round_percent(sum(1 for flag in completed if flag), TOTAL_SECTIONS)
        brief.completion_pct = pct
        session.add(brief)
        session.flush()
        return pct

    @staticmethod
    def _get_brief(session: Session, brief_id: uuid.UUID) -> StrategicBrief:
        brief = session.get(StrategicBrief, brief_id)
        if brief is None:
            raise NotFoundError("strategic brief", brief_id)
        return brief


strategic_brief_service = StrategicBriefService()
