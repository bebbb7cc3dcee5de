from __future__ import annotations

from typing import Literal


PipelineStage = Literal["LEAD", "QUALIFIED", "EVALUATION", "NEGOTIATION", "WON", "LOST"]
PipelineDecision = Literal["PENDING", "ACCEPTED", "DECLINED"]

PIPELINE_STAGE_TRANSITIONS: dict[str, set[str]] = {
    "LEAD": {"QUALIFIED", "LOST"},
    "QUALIFIED": {"EVALUATION", "LOST"},
    "EVALUATION": {"NEGOTIATION", "LOST"},
    "NEGOTIATION": {"WON", "LOST"},
    "WON": set(),
    "LOST": set(),
}

TERMINAL_STAGES = frozenset(stage for stage, targets in PIPELINE_STAGE_TRANSITIONS.items() if not targets)


def can_transition(current: str, target: str) -> bool:
    """Unknown stages have no outgoing edges."""
    return target in PIPELINE_STAGE_TRANSITIONS.get(current, set())
