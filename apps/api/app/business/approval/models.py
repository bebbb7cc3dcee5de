from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Approval(Base):
    __tablename__ = "approval"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="PENDING", server_default="PENDING")
    escalation_level: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    escalated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_by_id: Mapped[str] = mapped_column(String(128), nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    responded_by_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    response_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    history: Mapped[list[ApprovalHistory]] = relationship(
        "ApprovalHistory",
        back_populates="approval",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ApprovalHistory.created_at",
    )

    __table_args__ = (
        CheckConstraint("escalation_level >= 0 AND escalation_level <= 3", name="ck_approval_escalation_level_range"),
        CheckConstraint(
            "status IN ('PENDING','APPROVED','REJECTED','CHANGES_REQUESTED')",
            name="ck_approval_status",
        ),
        Index("ix_approval_status_submitted", "status", "submitted_at"),
        Index("ix_approval_project", "project_id"),
    )


class ApprovalHistory(Base):
    """Append-only trail of status changes and escalations."""

    __tablename__ = "approval_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    approval_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("approval.id", ondelete="CASCADE"),
        nullable=False,
    )
    from_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    to_status: Mapped[str] = mapped_column(String(32), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    approval: Mapped[Approval] = relationship("Approval", back_populates="history")

    __table_args__ = (Index("ix_approval_history_approval", "approval_id", "created_at"),)
