"""
Bech32 / bech32m codec (BIP-173, BIP-350) without the 90-character limit.

Ark addresses and Lightning invoices are longer than segwit addresses, so the
length cap from BIP-173 is not enforced here. Callers check the hrp.
"""

from __future__ import annotations

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)

BECH32 = 1
BECH32M = 0x2BC830A3

CHECKSUM_LENGTH = 6


class Bech32Error(ValueError):
    """String is not valid bech32/bech32m."""


def _polymod(values: list[int]) -> int:
    chk = 1
    for v in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ v
        for i in range(5):
            chk ^= _GENERATOR[i] if (top >> i) & 1 else 0
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _create_checksum(hrp: str, data: list[int], encoding: int) -> list[int]:
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * CHECKSUM_LENGTH) ^ encoding
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(CHECKSUM_LENGTH)]


def encode(hrp: str, data: list[int], encoding: int = BECH32M) -> str:
    """Encode 5-bit words under hrp with the given checksum constant."""
    combined = data + _create_checksum(hrp, data, encoding)
    return hrp + "1" + "".join(CHARSET[d] for d in combined)


def decode(text: str) -> tuple[str, list[int], int]:
    """
    Decode a bech32 or bech32m string.

    Returns (hrp, 5-bit data words without checksum, encoding constant).
    Raises Bech32Error on mixed case, bad characters, or a bad checksum.
    """
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise Bech32Error("invalid character")
    if text.lower() != text and text.upper() != text:
        raise Bech32Error("mixed case")
    text = text.lower()
    pos = text.rfind("1")
    if pos < 1 or pos + CHECKSUM_LENGTH + 1 > len(text):
        raise Bech32Error("missing separator or data")
    hrp = text[:pos]
    try:
        data = [CHARSET.index(c) for c in text[pos + 1:]]
    except ValueError:
        raise Bech32Error("character outside charset") from None
    const = _polymod(_hrp_expand(hrp) + data)
    if const not in (BECH32, BECH32M):
        raise Bech32Error("bad checksum")
    return hrp, data[:-CHECKSUM_LENGTH], const


def convertbits(data: list[int] | bytes, frombits: int, tobits: int, pad: bool = True) -> list[int]:
    """Regroup a sequence of frombits-wide values into tobits-wide values."""
    acc = 0
    bits = 0
    ret: list[int] = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1
    for value in data:
        if value < 0 or value >> frombits:
            raise Bech32Error("value out of range")
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        raise Bech32Error("invalid padding")
    return ret
