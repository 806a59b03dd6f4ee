"""
Limits and fee engine: per-venue amount validation and fee quotes.

Windows start at permissive defaults (ark/onchain unbounded, lightning disabled)
and are refreshed from server info on connect and from the swap provider while
it is connected. The engine never blocks on missing data; callers check
limits_loaded before trusting a validation result.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_CEILING, Decimal
from typing import Any

from ark_wallet_core.clients.server_info import ServerInfo
from ark_wallet_core.core.constants import DEFAULT_ARK_FEE
from ark_wallet_core.core.exceptions import LimitViolation
from ark_wallet_core.destination.models import Venue
from ark_wallet_core.limits.models import (
    DISABLED,
    UNBOUNDED,
    FeeSchedule,
    LimitCheck,
    LimitWindow,
)
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)


def _ceil_fee(amount: int, percentage: float, fixed: int) -> int:
    fee = Decimal(amount) * Decimal(str(percentage)) / Decimal(100) + Decimal(fixed)
    return int(fee.to_integral_value(rounding=ROUND_CEILING))


def _window_from_server(min_amount: int | None, max_amount: int | None, dust: int) -> LimitWindow:
    """Server minimum falls back to dust; a missing or zero maximum means unbounded."""
    minimum = min_amount if min_amount and min_amount > 0 else max(dust, 0)
    maximum = max_amount if max_amount else UNBOUNDED
    return LimitWindow(min=minimum, max=maximum)


class LimitsEngine:
    """Holds one LimitWindow per venue plus the current fee schedule."""

    def __init__(self) -> None:
        self._windows: dict[Venue, LimitWindow] = {
            Venue.ARK: LimitWindow(0, UNBOUNDED),
            Venue.ONCHAIN: LimitWindow(0, UNBOUNDED),
            Venue.LIGHTNING: LimitWindow(0, DISABLED),
        }
        self._fees = FeeSchedule()
        self.limits_loaded = False

    # --- Refresh ---

    def apply_server_info(self, info: ServerInfo) -> None:
        """Refresh ark/onchain windows and intent fees; invalid server values keep the last-known windows."""
        if info.unreachable or not info.network:
            logger.warning("limits_server_info_unavailable", url=info.url)
            return
        try:
            ark = _window_from_server(info.vtxo_min_amount, info.vtxo_max_amount, info.dust)
            onchain = _window_from_server(info.utxo_min_amount, info.utxo_max_amount, info.dust)
        except ValueError as e:
            logger.warning("limits_server_window_invalid", error=str(e))
            return
        self._windows[Venue.ARK] = ark
        self._windows[Venue.ONCHAIN] = onchain
        intent = info.fees.intent_fee
        self._fees = replace(
            self._fees,
            onchain_output_fee=intent.onchain_output,
            onchain_input_fee=intent.onchain_input,
            offchain_input_fee=intent.offchain_input,
            offchain_output_fee=intent.offchain_output,
        )
        self.limits_loaded = True
        logger.info(
            "limits_server_windows_applied",
            ark_min=ark.min,
            ark_max=ark.max,
            onchain_min=onchain.min,
            onchain_max=onchain.max,
        )

    def apply_swap_limits(self, minimum: int, maximum: int) -> None:
        try:
            window = LimitWindow(min=int(minimum), max=int(maximum))
        except (TypeError, ValueError) as e:
            logger.warning("limits_swap_window_invalid", error=str(e))
            return
        self._windows[Venue.LIGHTNING] = window
        logger.info("limits_swap_window_applied", min=window.min, max=window.max)

    def apply_swap_fees(self, fees: dict[str, Any]) -> None:
        """Fees as reported by the swap provider: submarine/reverse percentage and miner fees."""
        submarine = fees.get("submarine") or {}
        reverse = fees.get("reverse") or {}
        reverse_miner = reverse.get("minerFees") or {}
        self._fees = replace(
            self._fees,
            submarine_percentage=float(submarine.get("percentage", 0) or 0),
            submarine_miner_fees=int(submarine.get("minerFees", 0) or 0),
            reverse_percentage=float(reverse.get("percentage", 0) or 0),
            reverse_claim_fee=int(reverse_miner.get("claim", 0) or 0),
            reverse_lockup_fee=int(reverse_miner.get("lockup", 0) or 0),
            swap_fees_loaded=True,
        )

    def disconnect_swaps(self) -> None:
        """Swap provider disconnected: lightning venue disabled."""
        self._windows[Venue.LIGHTNING] = LimitWindow(0, DISABLED)

    # --- Queries ---

    @property
    def fees(self) -> FeeSchedule:
        return self._fees

    def window(self, venue: Venue) -> LimitWindow:
        return self._windows[venue]

    def venue_allowed(self, venue: Venue) -> bool:
        return not self._windows[venue].disabled

    def fee_for(self, amount: int, venue: Venue) -> int:
        """
        Fee in sats for sending amount through venue.

        ark: constant; lightning: ceil(amount * pct / 100 + miner fees), 0 for a
        zero amount; onchain: flat server-quoted output fee.
        """
        if venue == Venue.ARK:
            return DEFAULT_ARK_FEE
        if venue == Venue.ONCHAIN:
            return self._fees.onchain_output_fee
        if not amount:
            return 0
        return _ceil_fee(amount, self._fees.submarine_percentage, self._fees.submarine_miner_fees)

    def reverse_swap_fee(self, amount: int) -> int:
        """Fee for receiving amount over Lightning (reverse swap)."""
        if not amount:
            return 0
        return _ceil_fee(
            amount,
            self._fees.reverse_percentage,
            self._fees.reverse_claim_fee + self._fees.reverse_lockup_fee,
        )

    def validate(self, amount: int, venue: Venue) -> LimitCheck:
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        window = self._windows[venue]
        if amount == 0:
            if venue != Venue.LIGHTNING or window.min == 0:
                return LimitCheck.OK
            return LimitCheck.BELOW_MIN
        if amount < window.min:
            return LimitCheck.BELOW_MIN
        if not window.unbounded and amount > window.max:
            return LimitCheck.ABOVE_MAX
        return LimitCheck.OK

    def check(self, amount: int, venue: Venue) -> None:
        """Like validate() but raises LimitViolation."""
        result = self.validate(amount, venue)
        if result == LimitCheck.OK:
            return
        window = self._windows[venue]
        bound = window.min if result == LimitCheck.BELOW_MIN else window.max
        raise LimitViolation(result.value, venue.value, amount, bound)

    def combined_range(self) -> LimitWindow:
        """
        Intersect the onchain and offchain windows for UI guidance.

        A disabled window dominates; otherwise the tighter finite maximum wins
        and the range is unbounded only if both are. Minimum is the smaller one.
        """
        onchain = self._windows[Venue.ONCHAIN]
        offchain = self._windows[Venue.ARK]
        if offchain.disabled:
            return offchain
        if onchain.disabled:
            return onchain
        minimum = min(onchain.min, offchain.min)
        if onchain.unbounded and offchain.unbounded:
            return LimitWindow(minimum, UNBOUNDED)
        if onchain.unbounded:
            maximum = offchain.max
        elif offchain.unbounded:
            maximum = onchain.max
        else:
            maximum = min(onchain.max, offchain.max)
        return LimitWindow(min(minimum, maximum), maximum)

    def amount_above_max(self, amount: int) -> bool:
        combined = self.combined_range()
        return not combined.unbounded and amount > combined.max

    def amount_below_min(self, amount: int) -> bool:
        return amount < self.combined_range().min
