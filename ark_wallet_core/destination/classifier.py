"""
Destination classifier: raw user text → payment target.

Pure and total: classify() never raises and returns exactly one Destination
variant for any input, InvalidTarget included. Detection order (first match wins):
payment URI → Ark address → on-chain address → Lightning invoice → pay handle
(LNURL / lightning address) → Ark note → unrecognized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from urllib.parse import parse_qsl, urlsplit

from ark_wallet_core.core.constants import ARKNOTE_HRP, ARKNOTE_MIN_LENGTH, SATS_PER_BTC
from ark_wallet_core.destination import bech32
from ark_wallet_core.destination.invoice import InvoiceError, decode_invoice
from ark_wallet_core.destination.models import (
    REASON_AMOUNT_REQUIRED,
    REASON_INVALID_AMOUNT,
    REASON_MALFORMED_URI,
    REASON_SERVER_KEY_MISMATCH,
    REASON_UNRECOGNIZED,
    ArkTarget,
    CompositeTarget,
    Destination,
    InvalidTarget,
    LightningInvoiceTarget,
    NoteTarget,
    OnchainTarget,
    PayHandleTarget,
)

ARK_HRPS = frozenset({"ark", "tark"})
ARK_ADDRESS_VERSION = 0
ARK_ADDRESS_PAYLOAD_LEN = 65

_SEGWIT_RE = re.compile(r"^(bc1|tb1|bcrt1)[qpzry9x8gf2tvdw0s3jn54khce6mua7l]{39,87}$")
# Mainnet (1, 3) and testnet (m, n, 2) base58 prefixes
_LEGACY_RE = re.compile(r"^[13mn2][a-km-zA-HJ-NP-Z1-9]{25,34}$")
_LIGHTNING_ADDRESS_RE = re.compile(r"^[A-Za-z0-9._+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

_LIGHTNING_PREFIX = "lightning:"
_BIP21_SCHEME = "bitcoin"


@dataclass(frozen=True)
class ClassifierContext:
    """Server configuration the classification depends on."""

    expected_server_key: str | None = None
    """Hex public key (x-only or compressed) of the Ark server this wallet uses."""


@dataclass(frozen=True)
class ArkAddress:
    hrp: str
    version: int
    server_pubkey: bytes
    vtxo_taproot_key: bytes


def decode_ark_address(address: str) -> ArkAddress:
    """Decode a bech32m Ark address. Raises ValueError if it is not one."""
    hrp, data, encoding = bech32.decode(address)
    if hrp not in ARK_HRPS:
        raise ValueError(f"not an ark hrp: {hrp}")
    if encoding != bech32.BECH32M:
        raise ValueError("ark address must use bech32m")
    payload = bytes(bech32.convertbits(data, 5, 8, False))
    if len(payload) != ARK_ADDRESS_PAYLOAD_LEN:
        raise ValueError(f"unexpected ark address payload length {len(payload)}")
    if payload[0] != ARK_ADDRESS_VERSION:
        raise ValueError(f"unsupported ark address version {payload[0]}")
    return ArkAddress(
        hrp=hrp,
        version=payload[0],
        server_pubkey=payload[1:33],
        vtxo_taproot_key=payload[33:65],
    )


def encode_ark_address(server_pubkey: bytes, vtxo_taproot_key: bytes, hrp: str = "tark") -> str:
    """Inverse of decode_ark_address; used for receive addresses and fixtures."""
    payload = bytes([ARK_ADDRESS_VERSION]) + server_pubkey + vtxo_taproot_key
    return bech32.encode(hrp, bech32.convertbits(payload, 8, 5), bech32.BECH32M)


def x_only_key(pubkey_hex: str) -> str:
    """Normalize a compressed (33-byte) or x-only (32-byte) hex key to x-only lowercase hex."""
    key = pubkey_hex.strip().lower()
    if len(key) == 66 and key[:2] in ("02", "03"):
        return key[2:]
    return key


def is_onchain_address(text: str) -> bool:
    return bool(_SEGWIT_RE.match(text.lower()) or _LEGACY_RE.match(text))


def is_note(text: str) -> bool:
    return text.lower().startswith(ARKNOTE_HRP) and len(text) >= ARKNOTE_MIN_LENGTH


def _pay_handle_url(text: str) -> str | None:
    """Return the LNURL-pay endpoint for a pay handle, or None if text is not one."""
    lowered = text.lower()
    if lowered.startswith("lnurl1"):
        try:
            hrp, data, _ = bech32.decode(lowered)
            url = bytes(bech32.convertbits(data, 5, 8, False)).decode("utf-8")
        except (bech32.Bech32Error, UnicodeDecodeError):
            return None
        if hrp != "lnurl" or not url.startswith(("https://", "http://")):
            return None
        return url
    if lowered.startswith("lnurlp://"):
        rest = text[len("lnurlp://"):]
        return f"https://{rest}" if rest else None
    if _LIGHTNING_ADDRESS_RE.match(text):
        user, _, domain = lowered.partition("@")
        return f"https://{domain}/.well-known/lnurlp/{user}"
    return None


def _btc_to_sats(raw: str) -> int:
    try:
        btc = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"bad amount {raw!r}") from None
    if not btc.is_finite() or btc < 0:
        raise ValueError(f"bad amount {raw!r}")
    sats = btc * SATS_PER_BTC
    if sats != sats.to_integral_value():
        raise ValueError(f"amount {raw!r} has sub-satoshi precision")
    return int(sats)


def _classify_primitive(text: str, ctx: ClassifierContext) -> Destination:
    """Steps 2-7: everything except payment URIs."""
    try:
        decoded = decode_ark_address(text)
    except ValueError:
        decoded = None
    if decoded is not None:
        server_key = decoded.server_pubkey.hex()
        if ctx.expected_server_key and x_only_key(ctx.expected_server_key) != server_key:
            return InvalidTarget(REASON_SERVER_KEY_MISMATCH)
        return ArkTarget(address=text.lower(), server_key=server_key)

    if is_onchain_address(text):
        address = text.lower() if _SEGWIT_RE.match(text.lower()) else text
        return OnchainTarget(address=address)

    try:
        invoice = decode_invoice(text)
    except InvoiceError:
        invoice = None
    if invoice is not None:
        if not invoice.amount_sats:
            return InvalidTarget(REASON_AMOUNT_REQUIRED)
        return LightningInvoiceTarget(invoice=text.lower(), amount_sats=invoice.amount_sats)

    url = _pay_handle_url(text)
    if url is not None:
        return PayHandleTarget(handle=text.lower(), url=url)

    if is_note(text):
        return NoteTarget(token=text)

    return InvalidTarget(REASON_UNRECOGNIZED)


def _classify_uri(text: str, ctx: ClassifierContext) -> Destination | None:
    """Step 1: decompose BIP21 / http URIs. Returns None when text is not a payment URI."""
    lowered = text.lower()
    is_bip21 = lowered.startswith(_BIP21_SCHEME + ":")
    is_http = lowered.startswith(("http://", "https://"))
    if not (is_bip21 or is_http):
        return None
    try:
        parts = urlsplit(text)
        params = {k.lower(): v for k, v in parse_qsl(parts.query)}
    except ValueError:
        return InvalidTarget(REASON_MALFORMED_URI) if is_bip21 else None
    if is_http and "lightning" not in params:
        return None

    amount: int | None = None
    if is_bip21 and params.get("amount"):
        try:
            amount = _btc_to_sats(params["amount"])
        except ValueError:
            return InvalidTarget(REASON_INVALID_AMOUNT)

    if is_bip21 and params.get("ark"):
        embedded = params["ark"]
    elif params.get("lightning"):
        embedded = params["lightning"]
    elif is_bip21 and parts.path:
        embedded = parts.path
    else:
        return InvalidTarget(REASON_MALFORMED_URI)

    inner = _classify_primitive(embedded.strip(), ctx)
    if isinstance(inner, InvalidTarget):
        return inner
    return CompositeTarget(target=inner, amount_sats=amount)


def classify(raw: str, ctx: ClassifierContext | None = None) -> Destination:
    """
    Classify free text entered or scanned by the user.

    Deterministic for a given (raw, ctx); never raises.
    """
    ctx = ctx or ClassifierContext()
    text = (raw or "").strip()
    if text.lower().startswith(_LIGHTNING_PREFIX):
        text = text[len(_LIGHTNING_PREFIX):].strip()
    if not text:
        return InvalidTarget(REASON_UNRECOGNIZED)
    composite = _classify_uri(text, ctx)
    if composite is not None:
        return composite
    return _classify_primitive(text, ctx)
