from __future__ import annotations

import random
from collections.abc import Callable

from app.core.config import get_settings


ProjectCodeGenerator = Callable[[], str]


def generate_project_code(prefix: str | None = None, rng: random.Random | None = None) -> str:
    """Human-readable code such as ``PRJ0427``; uniqueness is enforced by the store."""
    resolved_prefix = prefix if prefix is not None else get_settings().project_code_prefix
    number = (rng or random).randrange(10000)
    return f"{resolved_prefix}{number:04d}"
