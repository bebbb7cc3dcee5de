from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from app import audit
from app.business.approval.models import Approval, ApprovalHistory, utcnow
from app.business.approval.schemas import ApprovalCreate, ApprovalRead, ApprovalResubmit
from app.business.project.models import Project
from app.core.auth import AuthContext
from app.core.errors import InvalidTransitionError, NotFoundError


logger = logging.getLogger("app.approval")


VALID_APPROVAL_TRANSITIONS: dict[str, set[str]] = {
    "PENDING": {"APPROVED", "REJECTED", "CHANGES_REQUESTED"},
    "CHANGES_REQUESTED": {"PENDING"},
    "APPROVED": set(),
    "REJECTED": set(),
}


@dataclass(slots=True)
class ApprovalService:
    def submit_approval(self, session: Session, ctx: AuthContext, payload: ApprovalCreate) -> ApprovalRead:
        if session.get(Project, payload.project_id) is None:
            raise NotFoundError("project", payload.project_id)

        approval = Approval(
            **payload.model_dump(mode="python"),
            status="PENDING",
            escalation_level=0,
            submitted_at=utcnow(),
            submitted_by_id=ctx.user_id,
        )
        approval.history = [
            ApprovalHistory(
                from_status=None,
                to_status="PENDING",
                comment="Submitted for approval",
                changed_by_id=ctx.user_id,
            )
        ]
        session.add(approval)
        session.commit()

        logger.info("approval.submitted", extra={"approval_id": str(approval.id), "project_id": str(approval.project_id)})
        return self.get_approval(session, approval.id)

    def approve(self, session: Session, ctx: AuthContext, approval_id: uuid.UUID, comment: str | None = None) -> ApprovalRead:
        return self._respond(session, ctx, approval_id, "APPROVED", comment)

    def reject(self, session: Session, ctx: AuthContext, approval_id: uuid.UUID, comment: str | None = None) -> ApprovalRead:
        return self._respond(session, ctx, approval_id, "REJECTED", comment)

    def request_changes(
        self,
        session: Session,
        ctx: AuthContext,
        approval_id: uuid.UUID,
        comment: str | None = None,
    ) -> ApprovalRead:
        return self._respond(session, ctx, approval_id, "CHANGES_REQUESTED", comment)

    def resubmit(
        self,
        session: Session,
        ctx: AuthContext,
        approval_id: uuid.UUID,
        patch: ApprovalResubmit | None = None,
    ) -> ApprovalRead:
        approval = self._get_approval(session, approval_id)
        self._check_transition(approval, "PENDING")
        if approval.submitted_by_id != ctx.user_id:
            raise InvalidTransitionError("approval", approval.status, "PENDING", "only the submitter can resubmit")

        if patch is not None:
            for field, value in patch.model_dump(mode="python", exclude_unset=True).items():
                setattr(approval, field, value)

        approval.status = "PENDING"
        approval.submitted_at = utcnow()
        approval.escalation_level = 0
        approval.escalated_at = None
        approval.responded_at = None
        approval.responded_by_id = None
        approval.response_comment = None
        session.add(
            ApprovalHistory(
                approval_id=approval.id,
                from_status="CHANGES_REQUESTED",
                to_status="PENDING",
                comment="Resubmitted for approval",
                changed_by_id=ctx.user_id,
            )
        )
        session.add(approval)
        session.commit()

        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="project.approval",
            entity_id=str(approval.id),
            action="approval.resubmitted",
            before={"status": "CHANGES_REQUESTED"},
            after={"status": "PENDING"},
            correlation_id=ctx.correlation_id,
        )
        return self.get_approval(session, approval.id)

    def get_approval(self, session: Session, approval_id: uuid.UUID) -> ApprovalRead:
        approval = session.scalar(
            select(Approval)
            .where(Approval.id == approval_id)
            .options(selectinload(Approval.history))
            .execution_options(populate_existing=True)
        )
        if approval is None:
            raise NotFoundError("approval", approval_id)
        return ApprovalRead.model_validate(approval)

    def list_pending(self, session: Session, *, project_id: uuid.UUID | None = None) -> list[ApprovalRead]:
        stmt: Select[tuple[Approval]] = (
            select(Approval).where(Approval.status == "PENDING").options(selectinload(Approval.history))
        )
        if project_id is not None:
            stmt = stmt.where(Approval.project_id == project_id)
        rows = session.scalars(stmt.order_by(Approval.submitted_at.asc(), Approval.id.asc())).all()
        return [ApprovalRead.model_validate(item) for item in rows]

    def _respond(
        self,
        session: Session,
        ctx: AuthContext,
        approval_id: uuid.UUID,
        target: str,
        comment: str | None,
    ) -> ApprovalRead:
        approval = self._get_approval(session, approval_id)
        self._check_transition(approval, target)

        before_status = approval.status
        approval.status = target
        approval.responded_at = utcnow()
        approval.responded_by_id = ctx.user_id
        approval.response_comment = comment
        session.add(
            ApprovalHistory(
                approval_id=approval.id,
                from_status=before_status,
                to_status=target,
                comment=comment,
                changed_by_id=ctx.user_id,
            )
        )
        session.add(approval)
        session.commit()

        audit.record(
            actor_user_id=ctx.user_id,
            entity_type="project.approval",
            entity_id=str(approval.id),
            action=f"approval.{target.lower()}",
            before={"status": before_status},
            after={"status": target, "comment": comment},
            correlation_id=ctx.correlation_id,
        )
        logger.info("approval.responded", extra={"approval_id": str(approval.id), "status": target})
        return self.get_approval(session, approval.id)

    @staticmethod
    def _check_transition(approval: Approval, target: str) -> None:
        if target not in VALID_APPROVAL_TRANSITIONS.get(approval.status, set()):
            raise InvalidTransitionError("approval", approval.status, target)

    @staticmethod
    def _get_approval(session: Session, approval_id: uuid.UUID) -> Approval:
        approval = session.get(Approval, approval_id)
        if approval is None:
            raise NotFoundError("approval", approval_id)
        return approval


approval_service = ApprovalService()
