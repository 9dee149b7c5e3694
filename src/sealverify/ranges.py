"""Byte range expressions (``b=``).

``b="F~S,s~f"`` is a comma-separated list of ``start~stop`` pairs. Each
endpoint is an anchor optionally followed by ``+N`` or ``-N``:

    F  start of file          f  end of file
    S  start of signature     s  end of signature
    P  start of previous      p  end of previous  (reserved, resolve to 0)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sealverify.errors import RangeSyntaxError
from sealverify.types import ByteRange

logger = logging.getLogger(__name__)

RESERVED_ANCHORS = frozenset("Pp")

_START_LABELS = {
    "F": "Start of file",
    "f": "End of file",
    "S": "Start of signature",
    "s": "End of signature",
}

_STOP_LABELS = {
    "F": "Start of file",
    "f": "End of file",
    "S": "start of signature",
    "s": "end of signature",
}


@dataclass(frozen=True)
class RangeGeometry:
    asset_size: int
    signature_start: int
    signature_end: int

    def anchor(self, name: str) -> int:
        if name == "F":
            return 0
        if name == "f":
            return self.asset_size
        if name == "S":
            return self.signature_start
        if name == "s":
            return self.signature_end
        if name in RESERVED_ANCHORS:
            # TODO: resolve against the previous SEAL record once multi-record chaining is supported.
            return 0
        raise RangeSyntaxError(f"Unknown byte range anchor {name!r}")


def parse_endpoint(token: str) -> tuple[str, int]:
    """Split ``S+12`` into ``("S", 12)``, ``f-20`` into ``("f", -20)``."""
    token = token.strip()
    if not token:
        raise RangeSyntaxError("Empty byte range endpoint")

    anchor, rest = token[0], token[1:].strip()
    if anchor not in _START_LABELS and anchor not in RESERVED_ANCHORS:
        raise RangeSyntaxError(f"Unknown byte range anchor {anchor!r}", cause=token)
    if not rest:
        return anchor, 0

    op, digits = rest[0], rest[1:].strip()
    if op not in "+-":
        raise RangeSyntaxError(f"Invalid byte range operator in {token!r}")
    if not digits:
        return anchor, 0
    if not (digits.isascii() and digits.isdigit()):
        raise RangeSyntaxError(f"Invalid byte range offset in {token!r}")

    offset = int(digits)
    return anchor, offset if op == "+" else -offset


def resolve_ranges(
    expr: str,
    *,
    asset_size: int,
    signature_text: str,
    signature_end: int,
) -> tuple[list[ByteRange], str]:
    geometry = RangeGeometry(
        asset_size=asset_size,
        signature_start=signature_end - len(signature_text),
        signature_end=signature_end,
    )

    ranges: list[ByteRange] = []
    start_label: str | None = None
    stop_label: str | None = None
    summary = ""

    for pair in expr.split(","):
        if "~" not in pair:
            raise RangeSyntaxError(f"Byte range {pair.strip()!r} is missing '~'")
        start_token, stop_token = pair.split("~", 1)

        start_anchor, start_offset = parse_endpoint(start_token)
        stop_anchor, stop_offset = parse_endpoint(stop_token)

        if start_label is None:
            start_label = _START_LABELS.get(start_anchor)
        stop_label = _STOP_LABELS.get(stop_anchor, stop_label)

        byte_range = ByteRange(
            start=geometry.anchor(start_anchor) + start_offset,
            end=geometry.anchor(stop_anchor) + stop_offset,
        )
        ranges.append(byte_range)
        summary = f"{start_label or 'Unknown'} to {stop_label or 'unknown'}"

    logger.debug("resolved byte ranges %s (%s)", [r.describe() for r in ranges], summary)
    return ranges, summary
