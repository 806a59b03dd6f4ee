"""Balance comparison between two reconciliation ticks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BalanceChange:
    previous: int | None
    current: int

    @property
    def delta(self) -> int:
        if self.previous is None:
            return 0
        return self.current - self.previous

    @property
    def increased(self) -> bool:
        return self.delta > 0

    @property
    def decreased(self) -> bool:
        return self.delta < 0


def diff_balance(previous: int | None, current: int) -> BalanceChange:
    """
    Compare balances. previous is None on the first observation, which never
    counts as a change.
    """
    if current < 0:
        raise ValueError(f"balance must be non-negative, got {current}")
    return BalanceChange(previous=previous, current=current)
