from __future__ import annotations

import base64
from datetime import datetime, timezone

import pytest

from sealverify.errors import SignatureFormatError, SignatureMissing
from sealverify.signature import decode_signature, signature_date_to_datetime, split_signature_date


def test_hex_signature() -> None:
    decoded = decode_signature("deadbeef", "hex")
    assert decoded.signature_bytes == bytes([0xDE, 0xAD, 0xBE, 0xEF])
    assert decoded.encoding == "hex"
    assert decoded.date is None


def test_upper_hex_signature() -> None:
    decoded = decode_signature("DEADBEEF", "HEX")
    assert decoded.signature_bytes == bytes([0xDE, 0xAD, 0xBE, 0xEF])
    assert decoded.encoding == "HEX"


def test_hex_case_is_enforced() -> None:
    with pytest.raises(SignatureFormatError):
        decode_signature("DEADBEEF", "hex")
    with pytest.raises(SignatureFormatError):
        decode_signature("deadbeef", "HEX")


def test_odd_length_hex_is_rejected() -> None:
    with pytest.raises(SignatureFormatError):
        decode_signature("abc", "hex")


def test_date_with_fraction_and_hex() -> None:
    decoded = decode_signature("20240326164401.50deadbeef", "date2:hex")
    assert decoded.date == "20240326164401.50"
    assert decoded.residual == "deadbeef"
    assert decoded.signature_bytes == bytes.fromhex("deadbeef")


def test_date_with_separator() -> None:
    decoded = decode_signature("20240326164401.5:deadbeef", "date1:hex")
    assert decoded.date == "20240326164401.5"
    assert decoded.signature_bytes == bytes.fromhex("deadbeef")


def test_plain_date_uses_fourteen_characters() -> None:
    decoded = decode_signature("20240326164401:3q2+7w", "date:base64")
    assert decoded.date == "20240326164401"
    assert decoded.signature_bytes == bytes.fromhex("deadbeef")


def test_date_zero_matches_plain_date() -> None:
    assert split_signature_date("20240326164401:abcd", "date0") == ("20240326164401", "abcd")


def test_base64_padding_is_optional() -> None:
    raw = bytes(range(1, 41))
    padded = base64.b64encode(raw).decode("ascii")
    assert padded.endswith("=")

    assert decode_signature(padded, None).signature_bytes == raw
    assert decode_signature(padded.rstrip("="), None).signature_bytes == raw


def test_default_encoding_is_base64() -> None:
    decoded = decode_signature("3q2+7w==", None)
    assert decoded.encoding == "base64"
    assert decoded.date is None


def test_encoding_prefix_is_stripped() -> None:
    decoded = decode_signature("hex:deadbeef", "hex")
    assert decoded.signature_bytes == bytes.fromhex("deadbeef")


def test_trailing_space_padding_is_ignored() -> None:
    assert decode_signature("deadbeef    ", "hex").signature_bytes == bytes.fromhex("deadbeef")


def test_bin_passes_bytes_through() -> None:
    decoded = decode_signature("\x00\xff\x10", "bin")
    assert decoded.encoding == "bin"
    assert decoded.signature_bytes == b"\x00\xff\x10"


def test_missing_signature() -> None:
    with pytest.raises(SignatureMissing):
        decode_signature("", "hex")


def test_invalid_base64() -> None:
    with pytest.raises(SignatureFormatError):
        decode_signature("not base64!", None)


def test_signature_date_to_datetime() -> None:
    assert signature_date_to_datetime("20240326164401") == datetime(2024, 3, 26, 16, 44, 1, tzinfo=timezone.utc)
    assert signature_date_to_datetime("20240326164401.50") == datetime(
        2024, 3, 26, 16, 44, 1, 500000, tzinfo=timezone.utc
    )
    with pytest.raises(SignatureFormatError):
        signature_date_to_datetime("2024-03-26")


@pytest.mark.parametrize(
    ("token", "date"),
    [
        ("date", "20240326164401"),
        ("date0", "20240326164401"),
        ("date1", "20240326164401.5"),
        ("date3", "20240326164401.500"),
        ("date9", "20240326164401.500000000"),
        ("date²", "20240326164401"),
    ],
)
def test_date_token_length(token: str, date: str) -> None:
    assert split_signature_date(f"{date}:abcd", token) == (date, "abcd")
