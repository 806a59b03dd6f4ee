"""
Swap routing service: Lightning payments and receipts through a swap provider.

Submarine swaps pay a Lightning invoice from off-chain funds: the wallet sends
the expected amount to the swap address and the provider pays the invoice.
Reverse swaps receive over Lightning: the provider locks funds the wallet
claims. Every swap is persisted in the swaps table; provider push updates keep
the stored status current and settled swaps trigger a wallet reload.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, cast

from ark_wallet_core.clients.protocols import SwapProvider, WalletEngine
from ark_wallet_core.core.exceptions import SwapProviderFailure
from ark_wallet_core.database.database import SwapRepository
from ark_wallet_core.destination.models import Venue
from ark_wallet_core.limits.engine import LimitsEngine
from ark_wallet_core.swaps.models import (
    REVERSE,
    SETTLED_STATUSES,
    STATUS_TX_CLAIMED,
    SUBMARINE,
    ReverseSwap,
    SubmarineSwap,
    SwapRecord,
    swap_from_provider,
)
from ark_wallet_core.wallet_logging import get_logger

logger = get_logger(__name__)


class SwapService:
    """Routes Lightning payments through the swap provider and records them."""

    def __init__(
        self,
        provider: SwapProvider,
        repository: SwapRepository,
        engine: WalletEngine,
        *,
        limits: LimitsEngine | None = None,
        on_settled: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._provider = provider
        self._repository = repository
        self._engine = engine
        self._limits = limits
        self._on_settled = on_settled

    async def _call(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            return await func(*args)
        except SwapProviderFailure:
            raise
        except Exception as e:
            logger.warning("swap_provider_call_failed", operation=operation, error=str(e))
            raise SwapProviderFailure(operation, str(e) or type(e).__name__) from e

    def _parse(self, operation: str, raw: Any) -> SwapRecord:
        """Provider payload to record; malformed payloads become SwapProviderFailure."""
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            return swap_from_provider(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("swap_provider_payload_invalid", operation=operation, error=str(e))
            raise SwapProviderFailure(operation, f"malformed swap record: {e}") from e

    def _parse_many(self, operation: str, raw: Any) -> list[SwapRecord]:
        """Parse a list of provider records, skipping and logging the ones that do not parse."""
        if not isinstance(raw, list):
            raise SwapProviderFailure(operation, "expected a list of swap records")
        records: list[SwapRecord] = []
        for item in raw:
            try:
                records.append(self._parse(operation, item))
            except SwapProviderFailure:
                logger.warning("swap_record_skipped", operation=operation, swap_id=_record_id(item))
        return records

    def subscribe(self) -> None:
        """Register for provider push status updates."""
        self._provider.subscribe_status(self.on_status_update)

    # --- Swap creation ---

    async def create_submarine_swap(self, invoice: str) -> SubmarineSwap:
        operation = "create submarine swap"
        raw = await self._call(operation, self._provider.create_submarine_swap, invoice)
        if not isinstance(raw, dict):
            raise SwapProviderFailure(operation, "expected a swap object")
        raw = {**raw, "type": SUBMARINE, "invoice": raw.get("invoice") or invoice}
        swap = cast(SubmarineSwap, self._parse(operation, raw))
        if self._limits is not None:
            self._limits.check(swap.expected_amount, Venue.LIGHTNING)
        self._repository.save_swaps(swap)
        logger.info("swap_submarine_created", swap_id=swap.id, expected_amount=swap.expected_amount)
        return swap

    async def create_reverse_swap(self, amount: int) -> ReverseSwap:
        if self._limits is not None:
            self._limits.check(amount, Venue.LIGHTNING)
        operation = "create reverse swap"
        raw = await self._call(operation, self._provider.create_reverse_swap, amount)
        if not isinstance(raw, dict):
            raise SwapProviderFailure(operation, "expected a swap object")
        raw = {**raw, "type": REVERSE, "amount": raw.get("amount") or amount}
        swap = cast(ReverseSwap, self._parse(operation, raw))
        self._repository.save_swaps(swap)
        logger.info("swap_reverse_created", swap_id=swap.id, amount=swap.amount)
        return swap

    # --- Swap completion ---

    async def claim(self, swap: ReverseSwap) -> None:
        await self._call("claim", self._provider.claim, swap.id)
        logger.info("swap_claimed", swap_id=swap.id)

    async def refund(self, swap: SubmarineSwap) -> None:
        await self._call("refund", self._provider.refund, swap.id)
        logger.info("swap_refunded", swap_id=swap.id)

    async def pay_invoice(self, swap: SubmarineSwap) -> str:
        """
        Fund the swap and wait for the provider to pay the invoice.

        Returns the payment preimage (hex). The stored record is marked claimed
        before the preimage is decoded, so a funded swap is never left stale.
        """
        txid = await self._engine.send(swap.expected_amount, swap.address)
        logger.info("swap_funded", swap_id=swap.id, txid=txid, amount=swap.expected_amount)
        preimage = await self._call("pay invoice", self._provider.wait_for_settlement, swap.id)
        swap.status = STATUS_TX_CLAIMED
        self._repository.save_swaps(swap)
        await self._notify_settled()
        try:
            swap.preimage = bytes.fromhex(str(preimage))
        except ValueError as e:
            logger.warning("swap_preimage_invalid", swap_id=swap.id, error=str(e))
            raise SwapProviderFailure("pay invoice", f"invalid preimage: {e}") from e
        self._repository.save_swaps(swap)
        return preimage

    # --- History ---

    async def get_swap_history(self) -> list[SwapRecord]:
        """Provider history merged into the local table; newest first."""
        raw = await self._call("get swap history", self._provider.get_swap_history)
        self._repository.save_swaps(self._parse_many("get swap history", raw))
        return self._repository.get_swaps(order_by="created_at", order_direction="desc")

    async def restore_swaps(self) -> int:
        raw = await self._call("restore swaps", self._provider.restore_swaps)
        records = self._parse_many("restore swaps", raw)
        self._repository.save_swaps(records)
        logger.info("swaps_restored", count=len(records))
        return len(records)

    async def on_status_update(self, swap_id: str, status: str) -> None:
        swap = self._repository.get_swap(swap_id)
        if swap is None:
            logger.debug("swap_status_unknown_swap", swap_id=swap_id, status=status)
        elif swap.status != status:
            swap.status = status
            self._repository.save_swaps(swap)
            logger.info("swap_status_updated", swap_id=swap_id, status=status)
        if status in SETTLED_STATUSES:
            await self._notify_settled()

    async def _notify_settled(self) -> None:
        if self._on_settled is not None:
            await self._on_settled()

    # --- Fees and limits ---

    async def refresh_fees(self) -> dict[str, Any]:
        fees = await self._call("get fees", self._provider.get_fees)
        if self._limits is not None:
            self._limits.apply_swap_fees(fees)
        return fees

    async def refresh_limits(self) -> dict[str, Any]:
        limits = await self._call("get limits", self._provider.get_limits)
        if self._limits is not None:
            self._limits.apply_swap_limits(limits.get("min", 0), limits.get("max", 0))
        return limits


def _record_id(raw: Any) -> Any:
    return raw.get("id") if isinstance(raw, dict) else None
