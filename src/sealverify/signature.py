"""Signature format (``sf=``) handling and signature decoding."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from sealverify.errors import SignatureFormatError, SignatureMissing
from sealverify.types import SignatureEncoding

ENCODING_TOKENS: tuple[SignatureEncoding, ...] = ("base64", "hex", "HEX", "bin")
DEFAULT_ENCODING: SignatureEncoding = "base64"
DATE_LENGTH = 14
DATE_SEPARATOR = ":"

_LOWER_HEX = re.compile(r"^(?:[0-9a-f]{2})*$")
_UPPER_HEX = re.compile(r"^(?:[0-9A-F]{2})*$")
_SIGNATURE_DATE = re.compile(r"^(\d{14})(?:\.(\d+))?$")


@dataclass(frozen=True)
class DecodedSignature:
    encoding: SignatureEncoding
    date: str | None
    residual: str
    signature_bytes: bytes


def _date_length(token: str) -> int:
    accuracy = token[-1]
    if accuracy not in "123456789":
        return DATE_LENGTH
    # 14 digits, the decimal point, then the fraction.
    return DATE_LENGTH + 1 + int(accuracy)


def split_signature_date(signature_text: str, token: str) -> tuple[str, str]:
    """Return ``(date, residual)`` for a ``date``/``dateN`` format token."""
    date_length = _date_length(token)
    date = signature_text[:date_length]
    offset = date_length
    if signature_text[offset:offset + 1] == DATE_SEPARATOR:
        offset += 1
    return date, signature_text[offset:]


def _pad_base64(value: str) -> str:
    pad = len(value) % 4
    return value if pad == 0 else value + ("=" * (4 - pad))


def decode_signature_bytes(residual: str, encoding: SignatureEncoding) -> bytes:
    if encoding == "bin":
        return residual.encode("latin-1")

    value = residual.rstrip(" ")
    if encoding == "hex":
        if not _LOWER_HEX.match(value):
            raise SignatureFormatError("The signature is not lowercase hexadecimal")
        return bytes.fromhex(value)
    if encoding == "HEX":
        if not _UPPER_HEX.match(value):
            raise SignatureFormatError("The signature is not uppercase hexadecimal")
        return bytes.fromhex(value)

    try:
        return base64.b64decode(_pad_base64(value), validate=True)
    except (binascii.Error, ValueError) as error:
        raise SignatureFormatError("The signature is not valid base64", cause=error) from error


def decode_signature(signature_text: str, signature_format: str | None) -> DecodedSignature:
    if not signature_text:
        raise SignatureMissing("The signature is missing")

    encoding: SignatureEncoding | None = None
    date: str | None = None
    residual = signature_text

    tokens = signature_format.split(":") if signature_format else []
    for token in tokens:
        if token in ENCODING_TOKENS:
            encoding = token  # type: ignore[assignment]
            residual = residual.removeprefix(f"{token}:")
        elif token.startswith("date"):
            date, residual = split_signature_date(signature_text, token)

    if encoding is None:
        encoding = DEFAULT_ENCODING

    return DecodedSignature(
        encoding=encoding,
        date=date,
        residual=residual,
        signature_bytes=decode_signature_bytes(residual, encoding),
    )


def signature_date_to_datetime(value: str) -> datetime:
    """Convert ``YYYYMMDDhhmmss[.fff]`` (GMT) into an aware datetime."""
    match = _SIGNATURE_DATE.match(value)
    if not match:
        raise SignatureFormatError(f"Invalid signature date {value!r}")
    whole, fraction = match.groups()
    try:
        parsed = datetime.strptime(whole, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError as error:
        raise SignatureFormatError(f"Invalid signature date {value!r}", cause=error) from error
    if fraction:
        microseconds = int(fraction[:6].ljust(6, "0"))
        parsed = parsed.replace(microsecond=microseconds)
    return parsed
