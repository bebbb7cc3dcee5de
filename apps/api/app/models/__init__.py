from app.business.approval.models import Approval, ApprovalHistory
from app.business.brief.models import BriefSection, StrategicBrief
from app.business.budget.models import BudgetEvent, MediaPlan
from app.business.phase.models import ProjectPhase, ProjectPhaseItem
from app.business.pipeline.models import Pipeline
from app.business.project.models import Project, ProjectBudget, ProjectTeam

__all__ = [
    "Approval",
    "ApprovalHistory",
    "BriefSection",
    "StrategicBrief",
    "BudgetEvent",
    "MediaPlan",
    "ProjectPhase",
    "ProjectPhaseItem",
    "Pipeline",
    "Project",
    "ProjectBudget",
    "ProjectTeam",
]
