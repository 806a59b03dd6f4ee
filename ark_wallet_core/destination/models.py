"""
Payment destination variants produced by the classifier.

Each variant is an immutable dataclass; a Destination is exactly one of them.
Callers dispatch with isinstance and read venue_for() to pick the limit window.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Venue(str, Enum):
    """Where a payment is executed; each venue has its own limits and fees."""

    ARK = "ark"
    ONCHAIN = "onchain"
    LIGHTNING = "lightning"


REASON_SERVER_KEY_MISMATCH = "server key mismatch"
REASON_AMOUNT_REQUIRED = "amount required"
REASON_UNRECOGNIZED = "unrecognized"
REASON_INVALID_AMOUNT = "invalid amount"
REASON_MALFORMED_URI = "malformed payment URI"


@dataclass(frozen=True)
class ArkTarget:
    address: str
    server_key: str
    """Hex x-only public key of the Ark server embedded in the address."""


@dataclass(frozen=True)
class OnchainTarget:
    address: str


@dataclass(frozen=True)
class LightningInvoiceTarget:
    invoice: str
    amount_sats: int


@dataclass(frozen=True)
class PayHandleTarget:
    """LNURL-pay style handle; the amount is negotiated later by the routing caller."""

    handle: str
    url: str
    """HTTPS endpoint that returns the pay request parameters."""


@dataclass(frozen=True)
class NoteTarget:
    token: str


@dataclass(frozen=True)
class CompositeTarget:
    """Payment URI wrapping one primitive target plus an optional amount."""

    target: "PrimitiveTarget"
    amount_sats: int | None = None


@dataclass(frozen=True)
class InvalidTarget:
    reason: str


PrimitiveTarget = Union[ArkTarget, OnchainTarget, LightningInvoiceTarget, PayHandleTarget, NoteTarget]
Destination = Union[PrimitiveTarget, CompositeTarget, InvalidTarget]


def venue_for(destination: Destination) -> Venue | None:
    """Return the venue that executes a payment to destination, or None if it cannot be paid."""
    if isinstance(destination, CompositeTarget):
        return venue_for(destination.target)
    if isinstance(destination, ArkTarget):
        return Venue.ARK
    if isinstance(destination, OnchainTarget):
        return Venue.ONCHAIN
    if isinstance(destination, (LightningInvoiceTarget, PayHandleTarget)):
        return Venue.LIGHTNING
    return None


def fixed_amount(destination: Destination) -> int | None:
    """Amount the destination itself dictates (invoice amount or URI amount), if any."""
    if isinstance(destination, LightningInvoiceTarget):
        return destination.amount_sats
    if isinstance(destination, CompositeTarget):
        inner = fixed_amount(destination.target)
        return inner if inner is not None else destination.amount_sats
    return None
