from app.business.brief.models import BriefSection, StrategicBrief
from app.business.brief.schemas import BriefRead, BriefSectionRead, BriefSectionUpdate
from app.business.brief.sections import BRIEF_SECTIONS, BRIEF_STATUS_TRANSITIONS, TOTAL_SECTIONS, can_transition
from app.business.brief.service import StrategicBriefService, strategic_brief_service

__all__ = [
    "BriefSection",
    "StrategicBrief",
    "BriefRead",
    "BriefSectionRead",
    "BriefSectionUpdate",
    "BRIEF_SECTIONS",
    "BRIEF_STATUS_TRANSITIONS",
    "TOTAL_SECTIONS",
    "can_transition",
    "StrategicBriefService",
    "strategic_brief_service",
]
