"""
Limit windows, validation results and the fee schedule.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNBOUNDED = -1
DISABLED = 0


class LimitCheck(str, Enum):
    OK = "ok"
    BELOW_MIN = "below_min"
    ABOVE_MAX = "above_max"


@dataclass(frozen=True)
class LimitWindow:
    """
    Allowed amount range (sats) for one venue.

    max == -1 means no upper bound; max == 0 means the venue is disabled.
    """

    min: int = 0
    max: int = UNBOUNDED

    def __post_init__(self) -> None:
        if self.min < 0:
            raise ValueError(f"min must be non-negative, got {self.min}")
        if self.max < UNBOUNDED:
            raise ValueError(f"max must be >= -1, got {self.max}")
        if self.max not in (UNBOUNDED, DISABLED) and self.min > self.max:
            raise ValueError(f"min {self.min} exceeds max {self.max}")

    @property
    def unbounded(self) -> bool:
        return self.max == UNBOUNDED

    @property
    def disabled(self) -> bool:
        return self.max == DISABLED


@dataclass(frozen=True)
class FeeSchedule:
    """
    Fee parameters reported by the Ark server and the swap provider.

    Percentages are plain percent values (1.0 == 1 %); everything else is sats.
    """

    submarine_percentage: float = 0.0
    submarine_miner_fees: int = 0
    reverse_percentage: float = 0.0
    reverse_claim_fee: int = 0
    reverse_lockup_fee: int = 0
    onchain_output_fee: int = 0
    onchain_input_fee: int = 0
    offchain_input_fee: int = 0
    offchain_output_fee: int = 0
    swap_fees_loaded: bool = False
