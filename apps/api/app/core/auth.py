from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class AuthContext:
    """Identity of the already-authorised caller, used only for attribution."""

    user_id: str
    role: str | None = None
    correlation_id: str | None = None
