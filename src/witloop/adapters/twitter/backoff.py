"""Cálculo de espera em janelas de rate limit."""

from __future__ import annotations

from datetime import datetime, timedelta

RESET_MARGIN = timedelta(seconds=1)


def compute_rate_limit_wait(
    reset_at: datetime,
    now: datetime,
    minimum: timedelta,
    maximum: timedelta | None = None,
) -> timedelta:
    """Espera = max(reset_at - now + 1s, minimum), limitada por `maximum`.

    Examples:
        reset em now+2s, mínimo 10s  -> 10s
        reset em now+30s, mínimo 10s -> 31s
    """
    wait = max(reset_at - now + RESET_MARGIN, minimum)
    if maximum is not None:
        wait = min(wait, maximum)
    return wait
