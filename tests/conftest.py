"""
Pytest fixtures for Ark Wallet Core tests.

Temporary SQLite database, in-memory fakes for the wallet engine and the swap
provider, and builders for invoices, Ark addresses and coins.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence

import pytest

from ark_wallet_core.database import get_database
from ark_wallet_core.database.models import (
    VTXO_STATE_SETTLED,
    ArkTransaction,
    RelativeTimelock,
    Utxo,
    UtxoStatus,
    VirtualStatus,
    Vtxo,
)
from ark_wallet_core.destination import bech32
from ark_wallet_core.destination.classifier import encode_ark_address

SERVER_KEY = bytes.fromhex("11" * 32)
OTHER_SERVER_KEY = bytes.fromhex("22" * 32)
VTXO_KEY = bytes.fromhex("33" * 32)


def _int_to_words(value: int, length: int) -> list[int]:
    return [(value >> (5 * (length - 1 - i))) & 31 for i in range(length)]


def _tagged(tag: int, words: list[int]) -> list[int]:
    return [tag, len(words) // 32, len(words) % 32] + words


def build_invoice(
    hrp: str = "lnbcrt10u",
    timestamp: int = 1_700_000_000,
    expiry: int | None = None,
    description: str | None = None,
) -> str:
    """BOLT11-shaped string with a valid bech32 checksum and a zero signature."""
    data = _int_to_words(timestamp, 7)
    data += _tagged(1, bech32.convertbits(bytes.fromhex("ab" * 32), 8, 5))
    if expiry is not None:
        data += _tagged(6, _int_to_words(expiry, 4))
    if description is not None:
        data += _tagged(13, bech32.convertbits(description.encode(), 8, 5))
    data += [0] * 104
    return bech32.encode(hrp, data, bech32.BECH32)


def build_ark_address(server_key: bytes = SERVER_KEY, hrp: str = "tark") -> str:
    return encode_ark_address(server_key, VTXO_KEY, hrp=hrp)


def build_vtxo(
    txid: str = "aa" * 32,
    vout: int = 0,
    value: int = 10_000,
    batch_expiry: int = 0,
    state: str = VTXO_STATE_SETTLED,
    is_spent: bool = False,
    settled_by: list[str] | None = None,
    commitment_txids: list[str] | None = None,
    address: str = "tark1wallet",
) -> Vtxo:
    return Vtxo(
        address=address,
        txid=txid,
        vout=vout,
        value=value,
        script=b"\x51\x20" + VTXO_KEY,
        virtual_status=VirtualStatus(
            state=state,
            batch_expiry=batch_expiry,
            commitment_txids=list(commitment_txids or []),
        ),
        is_spent=is_spent,
        settled_by=list(settled_by or []),
    )


def build_utxo(
    txid: str = "bb" * 32,
    vout: int = 0,
    value: int = 50_000,
    block_time: int | None = 1000,
    confirmed: bool = True,
    exit_timelock: RelativeTimelock | None = None,
) -> Utxo:
    return Utxo(
        address="bcrt1pboarding",
        txid=txid,
        vout=vout,
        value=value,
        status=UtxoStatus(confirmed=confirmed, block_time=block_time),
        exit_timelock=exit_timelock,
    )


class FakeEngine:
    """In-memory wallet engine; set fail_on to a method name to make it raise."""

    def __init__(self) -> None:
        self.vtxos: list[Vtxo] = []
        self.utxos: list[Utxo] = []
        self.balance = 0
        self.txs: list[ArkTransaction] = []
        self.fail_on: str | None = None
        self.sent: list[tuple[int, str]] = []
        self.settled: list[list[Vtxo]] = []
        self.calls = 0

    def _check(self, name: str) -> None:
        self.calls += 1
        if self.fail_on == name:
            raise RuntimeError(f"{name} unavailable")

    async def get_vtxos(self) -> list[Vtxo]:
        self._check("get_vtxos")
        return list(self.vtxos)

    async def get_boarding_utxos(self) -> list[Utxo]:
        self._check("get_boarding_utxos")
        return list(self.utxos)

    async def get_balance(self) -> int:
        self._check("get_balance")
        return self.balance

    async def get_tx_history(self) -> list[ArkTransaction]:
        self._check("get_tx_history")
        return list(self.txs)

    async def send(self, amount: int, address: str) -> str:
        self._check("send")
        self.sent.append((amount, address))
        return "ark-tx-" + str(len(self.sent))

    async def settle(self, vtxos: Sequence[Vtxo]) -> str:
        self._check("settle")
        self.settled.append(list(vtxos))
        return "commitment-" + str(len(self.settled))


class FakeSwapProvider:
    def __init__(self) -> None:
        self.callback: Callable[[str, str], Awaitable[None]] | None = None
        self.history: list[dict[str, Any]] = []
        self.fees: dict[str, Any] = {
            "submarine": {"percentage": 1, "minerFees": 100},
            "reverse": {"percentage": 0.5, "minerFees": {"claim": 100, "lockup": 200}},
        }
        self.limits: dict[str, Any] = {"min": 1000, "max": 5_000_000}
        self.preimage = "cd" * 32
        self.fail_with: Exception | None = None
        self.claimed: list[str] = []
        self.refunded: list[str] = []

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def create_submarine_swap(self, invoice: str) -> dict[str, Any]:
        self._check()
        return {
            "id": "sub-1",
            "status": "invoice.set",
            "createdAt": 1_700_000_100,
            "address": "tark1swapaddress",
            "expectedAmount": 1110,
        }

    async def create_reverse_swap(self, amount: int) -> dict[str, Any]:
        self._check()
        return {
            "id": "rev-1",
            "status": "swap.created",
            "createdAt": 1_700_000_200,
            "invoice": build_invoice(),
            "lockupAddress": "tark1lockup",
            "preimage": "ef" * 32,
        }

    async def claim(self, swap_id: str) -> None:
        self._check()
        self.claimed.append(swap_id)

    async def refund(self, swap_id: str) -> None:
        self._check()
        self.refunded.append(swap_id)

    async def wait_for_settlement(self, swap_id: str) -> str:
        self._check()
        return self.preimage

    async def get_swap_history(self) -> list[dict[str, Any]]:
        self._check()
        return list(self.history)

    async def restore_swaps(self) -> list[dict[str, Any]]:
        self._check()
        return list(self.history)

    def subscribe_status(self, callback: Callable[[str, str], Awaitable[None]]) -> None:
        self.callback = callback

    async def get_fees(self) -> dict[str, Any]:
        self._check()
        return self.fees

    async def get_limits(self) -> dict[str, Any]:
        self._check()
        return self.limits


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def payment_received(self, sats: int) -> None:
        self.events.append(("payment_received", sats))

    def payment_sent(self, sats: int) -> None:
        self.events.append(("payment_sent", sats))

    def tx_settled(self) -> None:
        self.events.append(("tx_settled", None))

    def vtxos_rolled_over(self) -> None:
        self.events.append(("vtxos_rolled_over", None))


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with schema in a temporary directory."""
    return get_database(tmp_path / "wallet.db")


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def provider():
    return FakeSwapProvider()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_invoice():
    return build_invoice


@pytest.fixture
def make_ark_address():
    return build_ark_address


@pytest.fixture
def make_vtxo():
    return build_vtxo


@pytest.fixture
def make_utxo():
    return build_utxo
