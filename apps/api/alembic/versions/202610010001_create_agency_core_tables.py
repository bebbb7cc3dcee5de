"""create agency core tables

Revision ID: 202610010001
Revises:
Create Date: 2026-10-01 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610010001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(18, 2), nullable=True)
    return sa.Column(name, sa.Numeric(18, 2), nullable=False, server_default="0")


def upgrade() -> None:
    op.create_table(
        "project",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("product_type", sa.String(length=64), nullable=True),
        sa.Column("stage", sa.String(length=32), nullable=False, server_default="PLANNING"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="STABLE"),
        sa.Column("stage_progress", sa.Integer(), nullable=False, server_default="0"),
        _money("total_budget"),
        _money("spent_amount"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_project_code"),
        sa.CheckConstraint("stage_progress >= 0 AND stage_progress <= 100", name="ck_project_stage_progress_range"),
    )

    op.create_table(
        "project_budget",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        _money("total_budget"),
        _money("monthly_budget"),
        _money("spent_amount"),
        _money("fixed_ad_fee"),
        _money("ad_service_fee"),
        _money("content_fee"),
        _money("design_fee"),
        _money("media_fee"),
        _money("other_fee"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", name="uq_project_budget_project"),
    )

    op.create_table(
        "project_team",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_team_member"),
    )
    op.create_index("ix_project_team_role", "project_team", ["project_id", "role"])

    op.create_table(
        "sales_pipeline",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_name", sa.String(length=255), nullable=False),
        sa.Column("client_type", sa.String(length=64), nullable=True),
        sa.Column("product_type", sa.String(length=64), nullable=True),
        sa.Column("license_link", sa.Text(), nullable=True),
        sa.Column("campaign_objective", sa.Text(), nullable=True),
        sa.Column("initial_goal", sa.Text(), nullable=True),
        sa.Column("upsell_opportunity", sa.Text(), nullable=True),
        _money("total_budget"),
        _money("monthly_budget", nullable=True),
        _money("fixed_ad_fee", nullable=True),
        _money("ad_service_fee", nullable=True),
        _money("content_fee", nullable=True),
        _money("design_fee", nullable=True),
        _money("media_fee", nullable=True),
        _money("other_fee", nullable=True),
        _money("cost_nsqc", nullable=True),
        _money("cost_design", nullable=True),
        _money("cost_media", nullable=True),
        _money("cost_kol", nullable=True),
        _money("cost_other", nullable=True),
        sa.Column("client_tier", sa.String(length=32), nullable=True),
        sa.Column("market_size", sa.String(length=64), nullable=True),
        sa.Column("competition_level", sa.String(length=64), nullable=True),
        sa.Column("product_usp", sa.Text(), nullable=True),
        sa.Column("average_score", sa.Numeric(6, 2), nullable=True),
        sa.Column("audience_size", sa.String(length=64), nullable=True),
        sa.Column("product_lifecycle", sa.String(length=64), nullable=True),
        sa.Column("scale_potential", sa.String(length=64), nullable=True),
        _money("cogs"),
        _money("gross_profit"),
        sa.Column("profit_margin", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("stage", sa.String(length=32), nullable=False, server_default="LEAD"),
        sa.Column("current_stage", sa.String(length=32), nullable=False, server_default="PLANNING"),
        sa.Column("decision", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("decision_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_note", sa.Text(), nullable=True),
        sa.Column("decided_by_id", sa.String(length=128), nullable=True),
        sa.Column("weekly_notes", sa.JSON(), nullable=False),
        sa.Column("nvkd_id", sa.String(length=128), nullable=False),
        sa.Column("pm_id", sa.String(length=128), nullable=True),
        sa.Column("planner_id", sa.String(length=128), nullable=True),
        sa.Column("project_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "stage IN ('LEAD','QUALIFIED','EVALUATION','NEGOTIATION','WON','LOST')",
            name="ck_sales_pipeline_stage",
        ),
        sa.CheckConstraint("decision IN ('PENDING','ACCEPTED','DECLINED')", name="ck_sales_pipeline_decision"),
    )
    op.create_index("ix_sales_pipeline_stage_decision", "sales_pipeline", ["stage", "decision"])
    op.create_index("ix_sales_pipeline_nvkd", "sales_pipeline", ["nvkd_id"])

    op.create_table(
        "project_phase",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("phase_type", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "phase_type", name="uq_project_phase_type"),
        sa.CheckConstraint("weight >= 0", name="ck_project_phase_weight_nonnegative"),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_project_phase_progress_range"),
    )

    op.create_table(
        "project_phase_item",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("phase_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=False, server_default="5"),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pic", sa.String(length=128), nullable=True),
        sa.Column("support", sa.String(length=128), nullable=True),
        sa.Column("expected_output", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["phase_id"], ["project_phase.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("weight >= 0", name="ck_project_phase_item_weight_nonnegative"),
    )
    op.create_index("ix_project_phase_item_phase_order", "project_phase_item", ["phase_id", "order_index"])

    op.create_table(
        "media_plan",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        _money("total_budget"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_media_plan_project", "media_plan", ["project_id"])

    op.create_table(
        "budget_event",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("media_plan_id", sa.Uuid(), nullable=True),
        sa.Column("stage", sa.String(length=64), nullable=True),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["media_plan_id"], ["media_plan.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount >= 0", name="ck_budget_event_amount_nonnegative"),
        sa.CheckConstraint("type IN ('ALLOC','SPEND','ADJUST')", name="ck_budget_event_type"),
        sa.CheckConstraint("status IN ('PENDING','APPROVED','REJECTED','PAID')", name="ck_budget_event_status"),
    )
    op.create_index("ix_budget_event_project_type_status", "budget_event", ["project_id", "type", "status"])

    op.create_table(
        "strategic_brief",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("pipeline_id", sa.Uuid(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="DRAFT"),
        sa.Column("completion_pct", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["pipeline_id"], ["sales_pipeline.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('DRAFT','SUBMITTED','REVISION_REQUESTED','APPROVED')",
            name="ck_strategic_brief_status",
        ),
        sa.CheckConstraint("completion_pct >= 0 AND completion_pct <= 100", name="ck_strategic_brief_completion_range"),
    )

    op.create_table(
        "brief_section",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("brief_id", sa.Uuid(), nullable=False),
        sa.Column("section_num", sa.Integer(), nullable=False),
        sa.Column("section_key", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["brief_id"], ["strategic_brief.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("brief_id", "section_num", name="uq_brief_section_num"),
    )

    op.create_table(
        "approval",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("escalation_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("escalated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_by_id", sa.String(length=128), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_by_id", sa.String(length=128), nullable=True),
        sa.Column("response_comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("escalation_level >= 0 AND escalation_level <= 3", name="ck_approval_escalation_level_range"),
        sa.CheckConstraint(
            "status IN ('PENDING','APPROVED','REJECTED','CHANGES_REQUESTED')",
            name="ck_approval_status",
        ),
    )
    op.create_index("ix_approval_status_submitted", "approval", ["status", "submitted_at"])
    op.create_index("ix_approval_project", "approval", ["project_id"])

    op.create_table(
        "approval_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("approval_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", sa.String(length=32), nullable=True),
        sa.Column("to_status", sa.String(length=32), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("changed_by_id", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["approval_id"], ["approval.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_approval_history_approval", "approval_history", ["approval_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_approval_history_approval", table_name="approval_history")
    op.drop_table("approval_history")
    op.drop_index("ix_approval_project", table_name="approval")
    op.drop_index("ix_approval_status_submitted", table_name="approval")
    op.drop_table("approval")
    op.drop_table("brief_section")
    op.drop_table("strategic_brief")
    op.drop_index("ix_budget_event_project_type_status", table_name="budget_event")
    op.drop_table("budget_event")
    op.drop_index("ix_media_plan_project", table_name="media_plan")
    op.drop_table("media_plan")
    op.drop_index("ix_project_phase_item_phase_order", table_name="project_phase_item")
    op.drop_table("project_phase_item")
    op.drop_table("project_phase")
    op.drop_index("ix_sales_pipeline_nvkd", table_name="sales_pipeline")
    op.drop_index("ix_sales_pipeline_stage_decision", table_name="sales_pipeline")
    op.drop_table("sales_pipeline")
    op.drop_index("ix_project_team_role", table_name="project_team")
    op.drop_table("project_team")
    op.drop_table("project_budget")
    op.drop_table("project")
