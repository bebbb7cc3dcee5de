from __future__ import annotations

from pathlib import Path

from app.metrics import (
    generate_metrics_payload,
    observe_escalation,
    observe_pipeline_decision,
    write_metrics_textfile,
)


def test_payload_exposes_domain_counters() -> None:
    observe_pipeline_decision("ACCEPTED")
    observe_escalation(2)

    payload = generate_metrics_payload().decode("utf-8")

    assert 'pipeline_decisions_total{decision="ACCEPTED"}' in payload
    assert 'approval_escalations_total{level="2"}' in payload
    assert "project_provisioning_duration_seconds_bucket" in payload


def test_textfile_dump_matches_registry(tmp_path: Path) -> None:
    observe_pipeline_decision("DECLINED")
    target = tmp_path / "agency_core.prom"

    write_metrics_textfile(str(target))

    assert 'pipeline_decisions_total{decision="DECLINED"}' in target.read_text(encoding="utf-8")
