"""
Swap records: an explicit tagged union of submarine and reverse swaps.

Each kind carries only the fields valid for it. Dispatch goes through
swap_from_dict / the SWAP_TYPES registry on the persisted "type" tag, never
through field presence.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Union

SUBMARINE = "submarine"
REVERSE = "reverse"

# Swap provider status strings
STATUS_CREATED = "swap.created"
STATUS_INVOICE_SET = "invoice.set"
STATUS_TX_MEMPOOL = "transaction.mempool"
STATUS_TX_CONFIRMED = "transaction.confirmed"
STATUS_INVOICE_PAID = "invoice.paid"
STATUS_INVOICE_SETTLED = "invoice.settled"
STATUS_INVOICE_EXPIRED = "invoice.expired"
STATUS_INVOICE_FAILED = "invoice.failedToPay"
STATUS_TX_CLAIMED = "transaction.claimed"
STATUS_TX_REFUNDED = "transaction.refunded"
STATUS_TX_FAILED = "transaction.failed"
STATUS_LOCKUP_FAILED = "transaction.lockupFailed"
STATUS_SWAP_EXPIRED = "swap.expired"

# Statuses after which wallet balances changed and a reload is due
SETTLED_STATUSES = frozenset({STATUS_TX_CLAIMED, STATUS_INVOICE_SETTLED, STATUS_TX_REFUNDED})
REFUNDABLE_STATUSES = frozenset({STATUS_INVOICE_FAILED, STATUS_LOCKUP_FAILED, STATUS_SWAP_EXPIRED})
CLAIMABLE_STATUSES = frozenset({STATUS_TX_MEMPOOL, STATUS_TX_CONFIRMED})


@dataclass
class SubmarineSwap:
    """Off-chain → Lightning: the wallet funds `address` and the provider pays `invoice`."""

    type: ClassVar[str] = SUBMARINE

    id: str
    status: str
    created_at: int
    """Epoch seconds."""
    invoice: str
    address: str = ""
    expected_amount: int = 0
    preimage: bytes | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def refundable(self) -> bool:
        return self.status in REFUNDABLE_STATUSES


@dataclass
class ReverseSwap:
    """Lightning → off-chain: the provider locks funds the wallet claims with `preimage`."""

    type: ClassVar[str] = REVERSE

    id: str
    status: str
    created_at: int
    """Epoch seconds."""
    amount: int
    invoice: str = ""
    lockup_address: str = ""
    preimage: bytes = b""
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def claimable(self) -> bool:
        return self.status in CLAIMABLE_STATUSES


SwapRecord = Union[SubmarineSwap, ReverseSwap]


def swap_to_dict(swap: SwapRecord) -> dict[str, Any]:
    return {"type": swap.type, **asdict(swap)}


def _submarine_from_dict(d: dict[str, Any]) -> SubmarineSwap:
    return SubmarineSwap(
        id=d["id"],
        status=d["status"],
        created_at=int(d["created_at"]),
        invoice=d.get("invoice", ""),
        address=d.get("address", ""),
        expected_amount=int(d.get("expected_amount", 0)),
        preimage=d.get("preimage"),
        payload=dict(d.get("payload") or {}),
    )


def _reverse_from_dict(d: dict[str, Any]) -> ReverseSwap:
    return ReverseSwap(
        id=d["id"],
        status=d["status"],
        created_at=int(d["created_at"]),
        amount=int(d["amount"]),
        invoice=d.get("invoice", ""),
        lockup_address=d.get("lockup_address", ""),
        preimage=d.get("preimage") or b"",
        payload=dict(d.get("payload") or {}),
    )


SWAP_TYPES = {
    SUBMARINE: _submarine_from_dict,
    REVERSE: _reverse_from_dict,
}


def swap_from_dict(d: dict[str, Any]) -> SwapRecord:
    try:
        factory = SWAP_TYPES[d["type"]]
    except KeyError:
        raise ValueError(f"unknown swap type: {d.get('type')!r}") from None
    return factory(d)


def swap_from_provider(raw: dict[str, Any]) -> SwapRecord:
    """
    Build a record from the provider's camelCase swap object.

    Expected keys: id, type, status, createdAt, plus invoice/address/expectedAmount
    (submarine) or amount/invoice/lockupAddress/preimage hex (reverse).
    """
    kind = raw.get("type")
    preimage_hex = raw.get("preimage") or ""
    common = {
        "id": str(raw["id"]),
        "type": kind,
        "status": str(raw.get("status") or STATUS_CREATED),
        "created_at": int(raw.get("createdAt") or 0),
        "invoice": str(raw.get("invoice") or ""),
        "preimage": bytes.fromhex(preimage_hex) if preimage_hex else None,
        "payload": dict(raw),
    }
    if kind == SUBMARINE:
        common.update(
            address=str(raw.get("address") or ""),
            expected_amount=int(raw.get("expectedAmount") or 0),
        )
    elif kind == REVERSE:
        common.update(
            amount=int(raw.get("amount") or 0),
            lockup_address=str(raw.get("lockupAddress") or ""),
        )
    return swap_from_dict(common)
