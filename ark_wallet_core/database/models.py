"""
Domain models for persisted entities.

Coins (VTXOs, boarding UTXOs), transaction history, contracts and the wallet
state singleton. Plain dataclasses with to_dict/from_dict so the repository
layer stays free of ORM coupling; bytes and datetimes are kept as-is and
encoded by database.serialization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

VTXO_STATE_PRECONFIRMED = "preconfirmed"
VTXO_STATE_SETTLED = "settled"
VTXO_STATE_SWEPT = "swept"
VTXO_STATE_SPENT = "spent"

TIMELOCK_BLOCKS = "blocks"
TIMELOCK_SECONDS = "seconds"

TX_SENT = "sent"
TX_RECEIVED = "received"


@dataclass(frozen=True)
class CoinKey:
    """Primary key shared by VTXO and UTXO rows."""

    address: str
    txid: str
    vout: int


@dataclass
class VirtualStatus:
    state: str = VTXO_STATE_PRECONFIRMED
    batch_expiry: int = 0
    """Epoch milliseconds when the batch expires; 0 if unknown/unset."""
    commitment_txids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "VirtualStatus":
        return cls(
            state=d.get("state", VTXO_STATE_PRECONFIRMED),
            batch_expiry=int(d.get("batch_expiry") or 0),
            commitment_txids=list(d.get("commitment_txids") or []),
        )


@dataclass
class Vtxo:
    """Off-chain coin (virtual transaction output)."""

    address: str
    txid: str
    vout: int
    value: int
    script: bytes = b""
    """Output script / serialized tap tree."""
    virtual_status: VirtualStatus = field(default_factory=VirtualStatus)
    is_spent: bool = False
    settled_by: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def key(self) -> CoinKey:
        return CoinKey(self.address, self.txid, self.vout)

    @property
    def batch_expiry(self) -> int:
        return self.virtual_status.batch_expiry

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Vtxo":
        return cls(
            address=d["address"],
            txid=d["txid"],
            vout=int(d["vout"]),
            value=int(d["value"]),
            script=d.get("script") or b"",
            virtual_status=VirtualStatus.from_dict(d.get("virtual_status") or {}),
            is_spent=bool(d.get("is_spent", False)),
            settled_by=list(d.get("settled_by") or []),
            created_at=d.get("created_at"),
        )


@dataclass(frozen=True)
class RelativeTimelock:
    value: int
    type: str = TIMELOCK_BLOCKS

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "RelativeTimelock":
        return cls(value=int(d["value"]), type=d.get("type", TIMELOCK_BLOCKS))


@dataclass
class UtxoStatus:
    confirmed: bool = False
    block_time: int | None = None
    """Unix timestamp (seconds) of the confirming block."""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "UtxoStatus":
        return cls(confirmed=bool(d.get("confirmed", False)), block_time=d.get("block_time"))


@dataclass
class Utxo:
    """On-chain boarding output waiting to enter the off-chain system."""

    address: str
    txid: str
    vout: int
    value: int
    status: UtxoStatus = field(default_factory=UtxoStatus)
    exit_timelock: RelativeTimelock | None = None
    """Earliest unilateral exit path of the boarding script; None if unknown."""

    @property
    def key(self) -> CoinKey:
        return CoinKey(self.address, self.txid, self.vout)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Utxo":
        timelock = d.get("exit_timelock")
        return cls(
            address=d["address"],
            txid=d["txid"],
            vout=int(d["vout"]),
            value=int(d["value"]),
            status=UtxoStatus.from_dict(d.get("status") or {}),
            exit_timelock=RelativeTimelock.from_dict(timelock) if timelock else None,
        )


@dataclass(frozen=True)
class TxKey:
    boarding_txid: str = ""
    commitment_txid: str = ""
    ark_txid: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TxKey":
        return cls(
            boarding_txid=d.get("boarding_txid", ""),
            commitment_txid=d.get("commitment_txid", ""),
            ark_txid=d.get("ark_txid", ""),
        )


@dataclass
class ArkTransaction:
    """Entry of the wallet's transaction history."""

    address: str
    key: TxKey
    type: str
    amount: int
    settled: bool = False
    created_at: int = 0
    """Epoch milliseconds."""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ArkTransaction":
        return cls(
            address=d["address"],
            key=TxKey.from_dict(d.get("key") or {}),
            type=d.get("type", TX_RECEIVED),
            amount=int(d.get("amount", 0)),
            settled=bool(d.get("settled", False)),
            created_at=int(d.get("created_at", 0)),
        )


@dataclass
class Contract:
    """Script the wallet watches (e.g. a swap VHTLC or a boarding script)."""

    script: str
    type: str
    state: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Contract":
        return cls(
            script=d["script"],
            type=d["type"],
            state=d["state"],
            data=dict(d.get("data") or {}),
        )


@dataclass
class WalletState:
    """Singleton wallet state; written by the reconciliation loop and the session."""

    pubkey: str = ""
    network: str = ""
    next_rollover: int = 0
    """Epoch seconds of the next renewal deadline; 0 when nothing is pending."""
    threshold_ms: int = 0
    """Renew coins whose batch expires within this many milliseconds."""
    last_balance: int | None = None
    last_sync_ms: int | None = None

    def __post_init__(self) -> None:
        if self.next_rollover < 0:
            raise ValueError("next_rollover must be non-negative")
        if self.threshold_ms < 0:
            raise ValueError("threshold_ms must be non-negative")

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "WalletState":
        return cls(
            pubkey=d.get("pubkey", ""),
            network=d.get("network", ""),
            next_rollover=int(d.get("next_rollover", 0)),
            threshold_ms=int(d.get("threshold_ms", 0)),
            last_balance=d.get("last_balance"),
            last_sync_ms=d.get("last_sync_ms"),
        )
