from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from app.core.rounding import round_half_up, round_percent, to_decimal


def phase_progress(items: Iterable[tuple[float, bool]]) -> int | None:
    """Completed share of item weight, or ``None`` when the phase carries no weight."""
    total = Decimal("0")
    completed = Decimal("0")
    for weight, is_complete in items:
        value = to_decimal(weight)
        total += value
        if is_complete:
            completed += value
    if total == 0:
        return None
    return round_percent(completed, total)


def project_progress(phases: Iterable[tuple[float, int]]) -> int | None:
    """Weight-averaged phase progress, or ``None`` when no phase carries weight."""
    total = Decimal("0")
    weighted = Decimal("0")
    for weight, progress in phases:
        value = to_decimal(weight)
        total += value
        weighted += value * to_decimal(progress)
    if total == 0:
        return None
    return round_half_up(weighted / total)
