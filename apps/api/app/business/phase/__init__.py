from app.business.phase.defaults import DEFAULT_PHASES, PHASE_TYPES, DefaultPhase, DefaultPhaseItem
from app.business.phase.models import ProjectPhase, ProjectPhaseItem
from app.business.phase.progress import phase_progress, project_progress
from app.business.phase.schemas import PhaseItemCreate, PhaseItemRead, PhaseItemUpdate, PhaseRead, PhaseUpdate
from app.business.phase.service import ProjectPhaseService, project_phase_service

__all__ = [
    "DEFAULT_PHASES",
    "PHASE_TYPES",
    "DefaultPhase",
    "DefaultPhaseItem",
    "ProjectPhase",
    "ProjectPhaseItem",
    "phase_progress",
    "project_progress",
    "PhaseItemCreate",
    "PhaseItemRead",
    "PhaseItemUpdate",
    "PhaseRead",
    "PhaseUpdate",
    "ProjectPhaseService",
    "project_phase_service",
]
