"""
BOLT11 Lightning invoice decoding.

Only the fields the wallet needs to route a payment are extracted: network,
amount, timestamp, expiry, payment hash and description. The signature is
not verified (the swap provider does that when the submarine swap is created).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ark_wallet_core.destination import bech32

_HRP_RE = re.compile(r"^ln(bcrt|bc|tbs|tb|sb)(\d*)([munp]?)$")

NETWORK_BY_PREFIX = {
    "bc": "bitcoin",
    "tb": "testnet",
    "tbs": "signet",
    "bcrt": "regtest",
    "sb": "simnet",
}

# Millisatoshis per unit of each amount multiplier
_MSAT_PER_UNIT = {
    "": 100_000_000_000,
    "m": 100_000_000,
    "u": 100_000,
    "n": 100,
}

TIMESTAMP_WORDS = 7
SIGNATURE_WORDS = 104
DEFAULT_EXPIRY_SEC = 3600

TAG_PAYMENT_HASH = 1
TAG_EXPIRY = 6
TAG_DESCRIPTION = 13


class InvoiceError(ValueError):
    """String is not a decodable BOLT11 invoice."""


@dataclass(frozen=True)
class DecodedInvoice:
    """Routing-relevant fields of a BOLT11 invoice."""

    network: str
    amount_msat: int | None
    timestamp: int
    """Unix timestamp (seconds) when the invoice was created."""
    expiry_sec: int = DEFAULT_EXPIRY_SEC
    payment_hash: str | None = None
    description: str | None = None

    @property
    def amount_sats(self) -> int | None:
        if self.amount_msat is None:
            return None
        return self.amount_msat // 1000

    def is_expired(self, now_sec: int) -> bool:
        return now_sec >= self.timestamp + self.expiry_sec


def _words_to_int(words: list[int]) -> int:
    value = 0
    for w in words:
        value = (value << 5) | w
    return value


def _words_to_bytes(words: list[int]) -> bytes:
    full = bech32.convertbits(words, 5, 8, True)
    return bytes(full[: len(words) * 5 // 8])


def _parse_amount_msat(digits: str, multiplier: str) -> int | None:
    if not digits:
        if multiplier:
            raise InvoiceError("multiplier without amount")
        return None
    value = int(digits)
    if multiplier == "p":
        if value % 10:
            raise InvoiceError("sub-millisatoshi amount")
        return value // 10
    return value * _MSAT_PER_UNIT[multiplier]


def decode_invoice(invoice: str) -> DecodedInvoice:
    """Decode a BOLT11 invoice. Raises InvoiceError when it is not one."""
    text = invoice.strip()
    if text.lower().startswith("lightning:"):
        text = text[len("lightning:"):]
    try:
        hrp, data, encoding = bech32.decode(text)
    except bech32.Bech32Error as e:
        raise InvoiceError(str(e)) from e
    if encoding != bech32.BECH32:
        raise InvoiceError("invoice must use bech32 checksum")
    match = _HRP_RE.match(hrp)
    if match is None:
        raise InvoiceError(f"not a lightning hrp: {hrp}")
    prefix, digits, multiplier = match.groups()
    amount_msat = _parse_amount_msat(digits, multiplier)
    if len(data) < TIMESTAMP_WORDS + SIGNATURE_WORDS:
        raise InvoiceError("invoice too short")

    timestamp = _words_to_int(data[:TIMESTAMP_WORDS])
    fields = data[TIMESTAMP_WORDS:-SIGNATURE_WORDS]
    expiry = DEFAULT_EXPIRY_SEC
    payment_hash = None
    description = None
    pos = 0
    while pos < len(fields):
        if pos + 3 > len(fields):
            raise InvoiceError("truncated tagged field")
        tag = fields[pos]
        length = fields[pos + 1] * 32 + fields[pos + 2]
        value = fields[pos + 3:pos + 3 + length]
        if len(value) != length:
            raise InvoiceError("tagged field overruns invoice")
        pos += 3 + length
        if tag == TAG_PAYMENT_HASH and length == 52:
            payment_hash = _words_to_bytes(value).hex()
        elif tag == TAG_EXPIRY:
            expiry = _words_to_int(value)
        elif tag == TAG_DESCRIPTION:
            description = _words_to_bytes(value).decode("utf-8", errors="replace")

    return DecodedInvoice(
        network=NETWORK_BY_PREFIX[prefix],
        amount_msat=amount_msat,
        timestamp=timestamp,
        expiry_sec=expiry,
        payment_hash=payment_hash,
        description=description,
    )
