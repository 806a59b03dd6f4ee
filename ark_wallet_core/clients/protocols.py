"""
Collaborator surfaces consumed by the wallet core.

The wallet engine (signing, protocol execution) and the swap provider
(Lightning swap state machine) live outside this package. These protocols
list the minimal methods the core calls; any object providing them works.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, Sequence

from ark_wallet_core.database.models import ArkTransaction, Utxo, Vtxo


class WalletEngine(Protocol):
    """Signing and protocol engine for one unlocked wallet."""

    async def get_vtxos(self) -> list[Vtxo]: ...

    async def get_boarding_utxos(self) -> list[Utxo]: ...

    async def get_balance(self) -> int: ...

    async def get_tx_history(self) -> list[ArkTransaction]: ...

    async def send(self, amount: int, address: str) -> str:
        """Send amount sats off-chain to address; returns the Ark txid."""
        ...

    async def settle(self, vtxos: Sequence[Vtxo]) -> str:
        """Renew the given coins in the next batch; returns the commitment txid."""
        ...


class SwapProvider(Protocol):
    """Lightning swap provider (submarine and reverse swaps)."""

    async def create_submarine_swap(self, invoice: str) -> dict[str, Any]: ...

    async def create_reverse_swap(self, amount: int) -> dict[str, Any]: ...

    async def claim(self, swap_id: str) -> None: ...

    async def refund(self, swap_id: str) -> None: ...

    async def wait_for_settlement(self, swap_id: str) -> str:
        """Block until the submarine swap is paid; returns the preimage hex."""
        ...

    async def get_swap_history(self) -> list[dict[str, Any]]: ...

    async def restore_swaps(self) -> list[dict[str, Any]]:
        """Recover swaps known to the provider for this wallet (after a restore)."""
        ...

    def subscribe_status(self, callback: Callable[[str, str], Awaitable[None]]) -> None:
        """Register callback(swap_id, status) for push status updates."""
        ...

    async def get_fees(self) -> dict[str, Any]: ...

    async def get_limits(self) -> dict[str, Any]: ...


class CommitmentIndexer(Protocol):
    async def get_commitment_tx_ended_at(self, txid: str) -> int | None: ...
