"""Entry points for externally scheduled work (cron, timers, queue consumers)."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from app.business.approval.escalation import ApprovalEscalationMonitor, approval_escalation_monitor
from app.business.approval.schemas import EscalationCheckResult
from app.context import correlation_scope
from app.core.config import get_settings
from app.core.database import session_scope
from app.logging import configure_logging
from app.metrics import write_metrics_textfile
from app.otel import setup_otel


logger = logging.getLogger("app.jobs")


def run_escalation_scan(
    session_factory: sessionmaker[Session] | None = None,
    monitor: ApprovalEscalationMonitor | None = None,
) -> EscalationCheckResult:
    runner = monitor or approval_escalation_monitor
    with correlation_scope():
        logger.info("job.started", extra={"status": "Running"})
        with session_scope(session_factory) as session:
            result = runner.trigger_escalation_check(session)
        logger.info(
            "job.finished",
            extra={"status": "Succeeded", "checked": result.checked, "escalated": result.escalated},
        )
    return result


def main() -> None:
    configure_logging()
    settings = get_settings()
    setup_otel(settings.app_name.lower().replace(" ", "-"), settings.otel_enabled)
    try:
        run_escalation_scan()
    finally:
        if settings.metrics_textfile_path:
            write_metrics_textfile(settings.metrics_textfile_path)


if __name__ == "__main__":
    main()
