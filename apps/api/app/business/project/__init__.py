from app.business.project.models import Project, ProjectBudget, ProjectTeam
from app.business.project.schemas import ProjectBudgetRead, ProjectRead, ProjectTeamRead

__all__ = [
    "Project",
    "ProjectBudget",
    "ProjectTeam",
    "ProjectRead",
    "ProjectBudgetRead",
    "ProjectTeamRead",
]
