"""SEAL record parsing.

A record is a run of ``key="value"`` attributes wrapped in an envelope::

    <seal seal="1" d="example.com" ka="rsa" s="..."/>
    <?seal seal="1" d="example.com" ka="rsa" s="..."?>
    &lt;seal seal=&quot;1&quot; ... /&gt;

The attribute grammar is intentionally small:

    record    := envelope? attribute* close?
    attribute := key '="' value '"'
    key       := [A-Za-z0-9_-]+
    value     := any characters except '"'

Characters between attributes that do not form an attribute are skipped.
Entities are decoded before scanning, so ``&quot;`` delimiters behave like
literal quotes. Callers computing byte ranges from an entity-escaped segment
must shift the segment's signature end offset themselves (see
``sealverify.verify.adjusted_signature_end``).
"""

from __future__ import annotations

import html
import logging
from datetime import datetime, timezone
from typing import Iterator

from sealverify.errors import RecordIncomplete
from sealverify.types import DigestAlgorithm, SealRecord

logger = logging.getLogger(__name__)

ENVELOPE_OPENERS = ("<?seal ", "<seal ")
ENVELOPE_CLOSERS = ("/>", "?>")
REQUIRED_KEYS = ("seal", "d", "ka", "s")

_DIGEST_ALGORITHMS: dict[str, DigestAlgorithm] = {
    "sha1": "SHA-1",
    "sha256": "SHA-256",
    "sha384": "SHA-384",
    "sha512": "SHA-512",
}


def _is_key_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch in "_-")


def strip_envelope(text: str) -> str:
    """Decode entities and drop everything before the envelope opener."""
    unescaped = html.unescape(text)
    positions = [
        (unescaped.find(opener), opener)
        for opener in ENVELOPE_OPENERS
        if opener in unescaped
    ]
    if not positions:
        return unescaped
    index, opener = min(positions)
    return unescaped[index + len(opener):]


def scan_attributes(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs left to right until the envelope closes."""
    pos = 0
    length = len(text)
    while pos < length:
        if text[pos].isspace():
            pos += 1
            continue
        if text.startswith(ENVELOPE_CLOSERS, pos):
            return

        key_start = pos
        while pos < length and _is_key_char(text[pos]):
            pos += 1
        key = text[key_start:pos]

        if key and text.startswith('="', pos):
            value_start = pos + 2
            value_end = text.find('"', value_start)
            if value_end == -1:
                # Unterminated value.
                return
            yield key, text[value_start:value_end]
            pos = value_end + 1
            continue

        if not key:
            pos += 1


def normalize_digest_algorithm(token: str | None) -> DigestAlgorithm:
    if not token:
        return "SHA-256"
    normalized = token.strip().lower().replace("-", "").replace("_", "")
    algorithm = _DIGEST_ALGORITHMS.get(normalized)
    if algorithm is None:
        logger.warning("unknown digest algorithm %r, falling back to SHA-256", token)
        return "SHA-256"
    return algorithm


def parse_revocation_date(value: str) -> datetime:
    """Parse ``r=`` values such as ``2024-04-03``, ``2024-04-03T12:34:56`` or ``2024-04-03 12:34:56``."""
    text = value.strip().replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional(attributes: dict[str, str], key: str) -> str | None:
    value = attributes.get(key)
    return value if value else None


def parse_record(text: str) -> SealRecord:
    attributes: dict[str, str] = {}
    for key, value in scan_attributes(strip_envelope(text)):
        attributes[key] = value

    missing = [key for key in REQUIRED_KEYS if not attributes.get(key)]
    if missing:
        raise RecordIncomplete(
            "The SEAL record is incomplete",
            cause=f"missing: {', '.join(missing)}",
        )

    revocation_date = None
    if attributes.get("r"):
        try:
            revocation_date = parse_revocation_date(attributes["r"])
        except ValueError as error:
            raise RecordIncomplete("The SEAL record has an invalid revocation date", cause=error) from error

    signature_length_hint = None
    if attributes.get("sl"):
        raw_length = attributes["sl"].strip()
        if not (raw_length.isascii() and raw_length.isdigit()):
            raise RecordIncomplete("The SEAL record has an invalid signature length", cause=raw_length)
        signature_length_hint = int(raw_length)

    return SealRecord(
        seal_version=attributes["seal"],
        domain=attributes["d"],
        key_algorithm=attributes["ka"],
        signature_text=attributes["s"],
        key_version=attributes.get("kv") or "1",
        signature_format=_optional(attributes, "sf"),
        digest_algorithm=normalize_digest_algorithm(attributes.get("da")),
        byte_range_expr=_optional(attributes, "b"),
        unique_id=attributes.get("uid", ""),
        signer_id=_optional(attributes, "id"),
        comment=_optional(attributes, "info"),
        copyright=_optional(attributes, "copyright"),
        revocation_date=revocation_date,
        public_key_b64=_optional(attributes, "p"),
        signature_length_hint=signature_length_hint,
    )
