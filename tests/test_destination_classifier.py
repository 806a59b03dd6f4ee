"""
Tests for destination classification: ordering, composite URIs, server key
checks, invoices, pay handles, notes and totality.
"""

from __future__ import annotations

import pytest

from ark_wallet_core.destination import (
    ArkTarget,
    ClassifierContext,
    CompositeTarget,
    InvalidTarget,
    LightningInvoiceTarget,
    NoteTarget,
    OnchainTarget,
    PayHandleTarget,
    Venue,
    classify,
)
from ark_wallet_core.destination import bech32
from ark_wallet_core.destination.invoice import InvoiceError, decode_invoice
from ark_wallet_core.destination.models import venue_for

SERVER_KEY = bytes.fromhex("11" * 32)
OTHER_SERVER_KEY = bytes.fromhex("22" * 32)

SEGWIT_MAINNET = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"
SEGWIT_TESTNET = "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"
LEGACY = "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2"
NOTE = "arknote" + "x" * 60


def test_ark_address(make_ark_address):
    address = make_ark_address()
    result = classify(address)
    assert isinstance(result, ArkTarget)
    assert result.server_key == SERVER_KEY.hex()
    assert venue_for(result) == Venue.ARK


def test_ark_address_matching_server_key_compressed(make_ark_address):
    ctx = ClassifierContext(expected_server_key="03" + SERVER_KEY.hex())
    assert isinstance(classify(make_ark_address(), ctx), ArkTarget)


def test_ark_address_server_key_mismatch(make_ark_address):
    ctx = ClassifierContext(expected_server_key=SERVER_KEY.hex())
    result = classify(make_ark_address(OTHER_SERVER_KEY), ctx)
    assert result == InvalidTarget("server key mismatch")


@pytest.mark.parametrize("address", [SEGWIT_MAINNET, SEGWIT_TESTNET, SEGWIT_MAINNET.upper(), LEGACY])
def test_onchain_addresses(address):
    result = classify(address)
    assert isinstance(result, OnchainTarget)
    assert venue_for(result) == Venue.ONCHAIN


def test_invoice_with_amount(make_invoice):
    invoice = make_invoice("lnbcrt10u")
    result = classify(invoice)
    assert result == LightningInvoiceTarget(invoice=invoice, amount_sats=1000)
    assert venue_for(result) == Venue.LIGHTNING


def test_invoice_with_lightning_prefix(make_invoice):
    invoice = make_invoice("lnbc2500n")
    result = classify("  lightning:" + invoice + "\n")
    assert isinstance(result, LightningInvoiceTarget)
    assert result.amount_sats == 250


def test_invoice_without_amount_requires_one(make_invoice):
    assert classify(make_invoice("lnbcrt")) == InvalidTarget("amount required")


def test_decode_invoice_fields(make_invoice):
    decoded = decode_invoice(make_invoice("lntbs1m", timestamp=1_700_000_000, expiry=600, description="coffee"))
    assert decoded.network == "signet"
    assert decoded.amount_sats == 100_000
    assert decoded.timestamp == 1_700_000_000
    assert decoded.expiry_sec == 600
    assert decoded.description == "coffee"
    assert decoded.payment_hash == "ab" * 32
    assert decoded.is_expired(1_700_000_600)
    assert not decoded.is_expired(1_700_000_599)


def test_decode_invoice_rejects_bech32m(make_invoice):
    text = make_invoice()
    hrp, data, _ = bech32.decode(text)
    with pytest.raises(InvoiceError):
        decode_invoice(bech32.encode(hrp, data, bech32.BECH32M))


def test_lightning_address_pay_handle():
    result = classify("Alice@Example.com")
    assert result == PayHandleTarget(
        handle="alice@example.com",
        url="https://example.com/.well-known/lnurlp/alice",
    )


def test_bech32_lnurl_pay_handle():
    url = "https://service.example/lnurlp/abc"
    lnurl = bech32.encode("lnurl", bech32.convertbits(url.encode(), 8, 5), bech32.BECH32)
    result = classify(lnurl.upper())
    assert isinstance(result, PayHandleTarget)
    assert result.url == url


def test_lnurlp_scheme_pay_handle():
    result = classify("lnurlp://service.example/pay/bob")
    assert isinstance(result, PayHandleTarget)
    assert result.url == "https://service.example/pay/bob"


def test_note_token():
    assert classify(NOTE) == NoteTarget(token=NOTE)
    assert venue_for(classify(NOTE)) is None


def test_short_note_is_unrecognized():
    assert classify("arknote" + "x" * 10) == InvalidTarget("unrecognized")


def test_bip21_onchain_with_amount():
    result = classify(f"bitcoin:{SEGWIT_MAINNET}?amount=0.0001&label=shop")
    assert result == CompositeTarget(target=OnchainTarget(SEGWIT_MAINNET), amount_sats=10_000)
    assert venue_for(result) == Venue.ONCHAIN


def test_bip21_prefers_ark_over_lightning_and_path(make_ark_address, make_invoice):
    ark = make_ark_address()
    uri = f"bitcoin:{SEGWIT_MAINNET}?amount=0.00002&lightning={make_invoice()}&ark={ark}"
    result = classify(uri)
    assert isinstance(result, CompositeTarget)
    assert isinstance(result.target, ArkTarget)
    assert result.amount_sats == 2000


def test_bip21_prefers_lightning_over_path(make_invoice):
    result = classify(f"bitcoin:{SEGWIT_MAINNET}?lightning={make_invoice()}")
    assert isinstance(result, CompositeTarget)
    assert isinstance(result.target, LightningInvoiceTarget)
    assert result.amount_sats is None


def test_bip21_embedded_invalid_propagates(make_ark_address):
    ctx = ClassifierContext(expected_server_key=SERVER_KEY.hex())
    uri = f"bitcoin:{SEGWIT_MAINNET}?ark={make_ark_address(OTHER_SERVER_KEY)}"
    assert classify(uri, ctx) == InvalidTarget("server key mismatch")


@pytest.mark.parametrize("amount", ["abc", "-1", "0.000000001", "NaN"])
def test_bip21_bad_amount(amount):
    assert classify(f"bitcoin:{SEGWIT_MAINNET}?amount={amount}") == InvalidTarget("invalid amount")


def test_http_url_with_lightning_param(make_invoice):
    result = classify(f"https://pay.example/checkout?lightning={make_invoice()}")
    assert isinstance(result, CompositeTarget)
    assert isinstance(result.target, LightningInvoiceTarget)


def test_http_url_without_lightning_param_is_unrecognized():
    assert classify("https://example.com/page") == InvalidTarget("unrecognized")


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "hello",
        "€€€",
        "bitcoin:",
        "bitcoin:?amount=1",
        "http://",
        "lnbc1",
        "lnurl1xyz",
        "1" * 100,
        "tark1" + "q" * 100,
        "lightning:",
        "@example.com",
    ],
)
def test_classify_is_total_and_deterministic(raw):
    first = classify(raw)
    assert first == classify(raw)
    assert isinstance(
        first,
        (ArkTarget, OnchainTarget, LightningInvoiceTarget, PayHandleTarget, NoteTarget, CompositeTarget, InvalidTarget),
    )


def test_none_input_is_unrecognized():
    assert classify(None) == InvalidTarget("unrecognized")  # type: ignore[arg-type]
