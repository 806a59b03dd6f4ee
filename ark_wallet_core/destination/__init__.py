"""
Destination classifier: raw text to payment target.

Recognizes payment URIs, Ark addresses, on-chain addresses, BOLT11 invoices,
LNURL pay handles and Ark notes. Classification is pure; LNURL resolution
lives in destination.lnurl and is driven by the routing caller.
"""

from ark_wallet_core.destination.classifier import ClassifierContext, classify
from ark_wallet_core.destination.models import (
    ArkTarget,
    CompositeTarget,
    Destination,
    InvalidTarget,
    LightningInvoiceTarget,
    NoteTarget,
    OnchainTarget,
    PayHandleTarget,
    Venue,
    fixed_amount,
    venue_for,
)

__all__ = [
    "ArkTarget",
    "ClassifierContext",
    "CompositeTarget",
    "Destination",
    "InvalidTarget",
    "LightningInvoiceTarget",
    "NoteTarget",
    "OnchainTarget",
    "PayHandleTarget",
    "Venue",
    "classify",
    "fixed_amount",
    "venue_for",
]
