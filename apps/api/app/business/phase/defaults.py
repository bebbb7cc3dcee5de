from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DefaultPhaseItem:
    name: str
    weight: float
    order_index: int
    pic: str | None = None
    support: str | None = None
    expected_output: str | None = None


@dataclass(frozen=True, slots=True)
class DefaultPhase:
    phase_type: str
    name: str
    weight: float
    order_index: int
    items: tuple[DefaultPhaseItem, ...]


# Phase weights sum to 100 across a project.
DEFAULT_PHASES: tuple[DefaultPhase, ...] = (
    DefaultPhase(
        phase_type="KHOI_TAO_PLAN",
        name="Khởi tạo & Lập kế hoạch",
        weight=50,
        order_index=0,
        items=(
            DefaultPhaseItem("Intake & Brief", 5, 0, "Sale", "Leader/Team MKT", "Brief hoàn chỉnh"),
            DefaultPhaseItem("Discovery & Audit", 5, 1, "Sale/Leader", "Account/Planner", "Audit report"),
            DefaultPhaseItem("Proposal & Presentation", 25, 2, "Planner", "Account/Team", "Proposal deck"),
            DefaultPhaseItem("Pitching Round", 15, 3, "Sale", "Account/Planner", "Client approval"),
        ),
    ),
    DefaultPhase(
        phase_type="SETUP_CHUAN_BI",
        name="Setup & Chuẩn bị",
        weight=10,
        order_index=1,
        items=(
            DefaultPhaseItem("Internal Kick-off", 2, 0, "Planner", "Team", "Kick-off notes"),
            DefaultPhaseItem("Client Kick-off", 2, 1, "Sale", "Account/Team", "Meeting minutes"),
            DefaultPhaseItem("Campaign Planning & Setup", 6, 2, "Media/Creative", "Account", "Campaign setup complete"),
        ),
    ),
    DefaultPhase(
        phase_type="VAN_HANH_TOI_UU",
        name="Vận hành & Tối ưu",
        weight=30,
        order_index=2,
        items=(
            DefaultPhaseItem("Realtime Dashboard", 7.5, 0, "Media", "Planner", "Dashboard live"),
            DefaultPhaseItem("Data Analysis", 7.5, 1, "Account", "Planner", "Analysis report"),
            DefaultPhaseItem("Weekly Sync", 7.5, 2, "Account", "Sale", "Weekly report"),
            DefaultPhaseItem("Client Reporting", 7.5, 3, "Account", "Team", "Client report"),
        ),
    ),
    DefaultPhase(
        phase_type="TONG_KET",
        name="Tổng kết",
        weight=10,
        order_index=3,
        items=(
            DefaultPhaseItem("Performance Review", 5, 0, "Media", "Planner", "Review report"),
            DefaultPhaseItem("BBNT & Renewal", 5, 1, "Planner", "Account", "BBNT signed"),
        ),
    ),
)

PHASE_TYPES: tuple[str, ...] = tuple(phase.phase_type for phase in DEFAULT_PHASES)
