"""Cost-of-goods and margin derivation for a pipeline.

The derived figures are always computed from the full set of cost inputs, so
callers merge the stored record with the incoming patch before calling
:func:`calculate_financials`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from app.core.rounding import quantize_money, to_decimal


COST_FIELDS: tuple[str, ...] = ("cost_nsqc", "cost_design", "cost_media", "cost_kol", "cost_other")
FINANCIAL_INPUTS: tuple[str, ...] = (*COST_FIELDS, "total_budget")


@dataclass(frozen=True, slots=True)
class Financials:
    cogs: Decimal
    gross_profit: Decimal
    profit_margin: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {"cogs": self.cogs, "gross_profit": self.gross_profit, "profit_margin": self.profit_margin}


def calculate_financials(values: Mapping[str, object]) -> Financials:
    cogs = sum((to_decimal(values.get(field)) for field in COST_FIELDS), Decimal("0"))
    total_budget = to_decimal(values.get("total_budget"))
    gross_profit = total_budget - cogs
    if total_budget > 0:
        profit_margin = gross_profit / total_budget * Decimal("100")
    else:
        profit_margin = Decimal("0")
    return Financials(
        cogs=quantize_money(cogs),
        gross_profit=quantize_money(gross_profit),
        profit_margin=quantize_money(profit_margin),
    )


def merge_for_recalculation(current: Mapping[str, object], patch: Mapping[str, object]) -> dict[str, object]:
    return {field: patch[field] if field in patch else current.get(field) for field in FINANCIAL_INPUTS}
