from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest, write_to_textfile


pipeline_decisions_total = Counter(
    "pipeline_decisions_total",
    "Pipeline decisions by outcome",
    ["decision"],
)

pipeline_stage_changes_total = Counter(
    "pipeline_stage_changes_total",
    "Pipeline stage changes by target stage",
    ["stage"],
)

project_provisioning_failures_total = Counter(
    "project_provisioning_failures_total",
    "Rolled back project provisioning attempts by reason",
    ["reason"],
)

project_provisioning_duration_seconds = Histogram(
    "project_provisioning_duration_seconds",
    "Duration of the pipeline acceptance transaction in seconds",
)

budget_events_recorded_total = Counter(
    "budget_events_recorded_total",
    "Budget ledger events recorded by type",
    ["type"],
)

budget_spent_recalculations_total = Counter(
    "budget_spent_recalculations_total",
    "Full recomputations of project spent amount",
)

phase_progress_recalculations_total = Counter(
    "phase_progress_recalculations_total",
    "Phase progress recomputations by outcome",
    ["outcome"],
)

approval_escalations_total = Counter(
    "approval_escalations_total",
    "Approval escalations by target level",
    ["level"],
)

approval_escalation_notification_failures_total = Counter(
    "approval_escalation_notification_failures_total",
    "Escalation notifications that failed to dispatch",
)

approval_escalation_scan_duration_seconds = Histogram(
    "approval_escalation_scan_duration_seconds",
    "Duration of one escalation scan in seconds",
)

brief_transitions_total = Counter(
    "brief_transitions_total",
    "Strategic brief status transitions by target status",
    ["status"],
)


def observe_pipeline_decision(decision: str) -> None:
    pipeline_decisions_total.labels(decision=decision).inc()


def observe_pipeline_stage_change(stage: str) -> None:
    pipeline_stage_changes_total.labels(stage=stage).inc()


def observe_provisioning_failure(reason: str) -> None:
    project_provisioning_failures_total.labels(reason=reason).inc()


def observe_provisioning_duration(duration: float) -> None:
    project_provisioning_duration_seconds.observe(duration)


def observe_budget_event(event_type: str) -> None:
    budget_events_recorded_total.labels(type=event_type).inc()


def observe_spent_recalculation() -> None:
    budget_spent_recalculations_total.inc()


def observe_phase_recalculation(outcome: str) -> None:
    phase_progress_recalculations_total.labels(outcome=outcome).inc()


def observe_escalation(level: int) -> None:
    approval_escalations_total.labels(level=str(level)).inc()


def observe_escalation_notification_failure() -> None:
    approval_escalation_notification_failures_total.inc()


def observe_escalation_scan(duration: float) -> None:
    approval_escalation_scan_duration_seconds.observe(duration)


def observe_brief_transition(status: str) -> None:
    brief_transitions_total.labels(status=status).inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def write_metrics_textfile(path: str) -> None:
    """Writes the default registry in text exposition format for a textfile collector."""
    write_to_textfile(path, REGISTRY)
