"""
Tests for display helpers: address shortening, amount/gas thresholds, token scaling, coins, timestamps.
"""

from __future__ import annotations

from txexplainer.explain.formatting import (
    coin_symbol,
    display_name,
    extract_token_type,
    format_amount,
    format_gas,
    format_hbar,
    format_token_amount,
    is_coin_object,
    parse_hedera_timestamp,
    parse_timestamp_ms,
    short_address,
    timestamp_fields,
)
from txexplainer.labels.known import normalize_package, package_label

LONG = "0x1234567890abcdef1234567890abcdef"


def test_short_address():
    assert short_address(LONG) == "0x1234...cdef"
    assert short_address(LONG, 8, 6) == "0x123456...abcdef"
    assert short_address("0x2") == "0x2"
    assert short_address("") == "Unknown"
    assert short_address(None) == "Unknown"


def test_display_name_with_and_without_name():
    assert display_name(LONG, {LONG: "Alice"}) == "Alice (0x1234...cdef)"
    assert display_name(LONG, {}) == "0x1234...cdef (account name not available)"


def test_format_amount_thresholds():
    assert format_amount(0) == "0"
    # >= 1e6 is treated as MIST
    assert format_amount(1_500_000_000) == "1.5"
    assert format_amount(2_000_000_000_000) == "2,000"
    assert format_amount(5_000_000) == "0.005000"
    # below 1e-6 switches to exponential notation
    assert format_amount(0.0000001) == "1.00e-7"
    assert format_amount(995) == "995"
    assert format_amount(12345.5) == "12,345.5"
    assert format_amount("250") == "250"


def test_format_gas():
    assert format_gas(1_515_000) == "0.001515000 SUI"
    assert format_gas(750) == "750 MIST"
    assert format_gas(0) == "0 MIST"


def test_format_hbar_and_token_amounts():
    assert format_hbar(-100_000_000) == "1.000000000"
    assert format_hbar(84_000) == "0.000840000"
    assert format_token_amount(1_050_000, 6) == "1.05"
    assert format_token_amount(-2500, 2) == "25"
    assert format_token_amount(42, 0) == "42"


def test_coin_helpers():
    assert coin_symbol("0x2::sui::SUI") == "SUI"
    assert coin_symbol("0x2::coin::Coin<0xabc::usdc::USDC>") == "USDC"
    assert coin_symbol(None) == "SUI"
    assert extract_token_type("0x2::coin::Coin<0xabc::reward::reward>") == "Reward"
    assert extract_token_type("0xdead::nft::Kiosk") == "Token"
    assert is_coin_object("0x2::coin::Coin<0x2::sui::SUI>")
    assert not is_coin_object("0xdead::nft::Kiosk")


def test_package_labels():
    assert normalize_package("0x0000000000000000000000000000000000000000000000000000000000000002") == "0x2"
    assert package_label("0x2") == "Sui Framework (0x2)"
    assert package_label("0x" + "f" * 64) == "0xffff...ffff"


def test_hedera_timestamp_to_millis():
    assert parse_hedera_timestamp("1699000000.500000000") == 1699000000500
    assert parse_hedera_timestamp("not-a-timestamp") is None
    assert parse_hedera_timestamp(None) is None


def test_parse_timestamp_ms_variants():
    assert parse_timestamp_ms(1699000000500) == 1699000000500
    assert parse_timestamp_ms("1699000000500") == 1699000000500
    assert parse_timestamp_ms("2023-11-03T08:26:40.500Z") == 1699000000500
    assert parse_timestamp_ms("yesterday") is None
    assert parse_timestamp_ms("") is None


def test_timestamp_fields():
    iso, formatted = timestamp_fields(1699000000500)
    assert iso == "2023-11-03T08:26:40.500Z"
    assert formatted == "11/3/2023, 8:26:40 AM UTC"
    assert timestamp_fields(None) == (None, None)
