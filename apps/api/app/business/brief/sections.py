from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BriefSectionDefinition:
    num: int
    key: str
    title: str


BRIEF_SECTIONS: tuple[BriefSectionDefinition, ...] = (
    BriefSectionDefinition(1, "brand_overview", "Tổng quan thương hiệu"),
    BriefSectionDefinition(2, "market_analysis", "Phân tích thị trường"),
    BriefSectionDefinition(3, "target_audience", "Đối tượng mục tiêu"),
    BriefSectionDefinition(4, "campaign_objectives", "Mục tiêu chiến dịch"),
    BriefSectionDefinition(5, "key_messages", "Thông điệp chính"),
    BriefSectionDefinition(6, "creative_direction", "Định hướng sáng tạo"),
    BriefSectionDefinition(7, "media_strategy", "Chiến lược truyền thông"),
    BriefSectionDefinition(8, "content_strategy", "Chiến lược nội dung"),
    BriefSectionDefinition(9, "kol_influencer", "KOL/Influencer"),
    BriefSectionDefinition(10, "budget_allocation", "Phân bổ ngân sách"),
    BriefSectionDefinition(11, "timeline", "Timeline"),
    BriefSectionDefinition(12, "kpi_metrics", "KPI & Metrics"),
    BriefSectionDefinition(13, "competitors", "Đối thủ cạnh tranh"),
    BriefSectionDefinition(14, "deliverables", "Sản phẩm bàn giao"),
    BriefSectionDefinition(15, "approval_process", "Quy trình duyệt"),
    BriefSectionDefinition(16, "additional_notes", "Ghi chú bổ sung"),
)

TOTAL_SECTIONS = len(BRIEF_SECTIONS)

BRIEF_STATUS_TRANSITIONS: dict[str, set[str]] = {
    "DRAFT": {"SUBMITTED"},
    "SUBMITTED": {"APPROVED", "REVISION_REQUESTED"},
    "REVISION_REQUESTED": {"SUBMITTED"},
    "APPROVED": set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in BRIEF_STATUS_TRANSITIONS.get(current, set())
