from app.business.approval.escalation import ApprovalEscalationMonitor, approval_escalation_monitor, target_level
from app.business.approval.models import Approval, ApprovalHistory
from app.business.approval.notifications import (
    ESCALATION_LEVEL_NAMES,
    EscalationNotice,
    EventBusNotificationDispatcher,
    NotificationDispatcher,
)
from app.business.approval.schemas import (
    ApprovalCreate,
    ApprovalHistoryRead,
    ApprovalRead,
    ApprovalResubmit,
    EscalationCheckResult,
)
from app.business.approval.service import VALID_APPROVAL_TRANSITIONS, ApprovalService, approval_service

__all__ = [
    "ApprovalEscalationMonitor",
    "approval_escalation_monitor",
    "target_level",
    "Approval",
    "ApprovalHistory",
    "ESCALATION_LEVEL_NAMES",
    "EscalationNotice",
    "EventBusNotificationDispatcher",
    "NotificationDispatcher",
    "ApprovalCreate",
    "ApprovalHistoryRead",
    "ApprovalRead",
    "ApprovalResubmit",
    "EscalationCheckResult",
    "VALID_APPROVAL_TRANSITIONS",
    "ApprovalService",
    "approval_service",
]
