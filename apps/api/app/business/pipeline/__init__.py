from app.business.pipeline.conversion import (
    PipelineConversionService,
    TeamAssignment,
    build_team_assignments,
    pipeline_conversion_service,
)
from app.business.pipeline.financials import Financials, calculate_financials
from app.business.pipeline.models import Pipeline
from app.business.pipeline.project_code import generate_project_code
from app.business.pipeline.schemas import (
    PipelineAcceptResult,
    PipelineCreate,
    PipelineEvaluationUpdate,
    PipelineRead,
    PipelineSaleUpdate,
    WeeklyNote,
)
from app.business.pipeline.service import PipelineService, pipeline_service
from app.business.pipeline.stages import PIPELINE_STAGE_TRANSITIONS, can_transition

__all__ = [
    "PipelineConversionService",
    "TeamAssignment",
    "build_team_assignments",
    "pipeline_conversion_service",
    "Financials",
    "calculate_financials",
    "Pipeline",
    "generate_project_code",
    "PipelineAcceptResult",
    "PipelineCreate",
    "PipelineEvaluationUpdate",
    "PipelineRead",
    "PipelineSaleUpdate",
    "WeeklyNote",
    "PipelineService",
    "pipeline_service",
    "PIPELINE_STAGE_TRANSITIONS",
    "can_transition",
]
