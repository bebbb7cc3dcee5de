from app.business.budget.models import BudgetEvent, MediaPlan
from app.business.budget.schemas import BudgetEventCreate, BudgetEventRead, BudgetEventStatusUpdate, BudgetThreshold
from app.business.budget.service import BudgetLedgerService, budget_ledger_service

__all__ = [
    "BudgetEvent",
    "MediaPlan",
    "BudgetEventCreate",
    "BudgetEventRead",
    "BudgetEventStatusUpdate",
    "BudgetThreshold",
    "BudgetLedgerService",
    "budget_ledger_service",
]
