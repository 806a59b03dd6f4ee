"""
Lightning swap routing: submarine (pay) and reverse (receive) swaps.

Swap records live here; the routing service is swaps.service.SwapService.
"""

from ark_wallet_core.swaps.models import (
    REVERSE,
    SUBMARINE,
    ReverseSwap,
    SubmarineSwap,
    SwapRecord,
    swap_from_dict,
    swap_from_provider,
    swap_to_dict,
)

__all__ = [
    "REVERSE",
    "SUBMARINE",
    "ReverseSwap",
    "SubmarineSwap",
    "SwapRecord",
    "swap_from_dict",
    "swap_from_provider",
    "swap_to_dict",
]
