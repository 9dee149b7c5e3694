"""Locate SEAL record segments in raw asset bytes.

This is a plain byte scan for SEAL envelopes, usable on any file whose
record is stored as text. It does not understand container structure.
"""

from __future__ import annotations

from pathlib import Path

from sealverify.types import MediaAsset, RecordSegment

_OPENERS = (b"<seal ", b"<?seal ", b"&lt;seal ")
_CLOSERS = (b"/>", b"?>", b"/&gt;", b"?&gt;")
_SIGNATURE_ATTRIBUTES = ((b's="', b'"'), (b"s=&quot;", b"&quot;"))


def _next_opener(data: bytes, pos: int) -> tuple[int, bytes] | None:
    found = [(data.find(opener, pos), opener) for opener in _OPENERS]
    found = [item for item in found if item[0] != -1]
    return min(found) if found else None


def _find_signature(data: bytes, pos: int, limit: int) -> tuple[int, int] | None:
    """Return ``(value_end, signature_end)`` for the ``s`` attribute."""
    best: tuple[int, int] | None = None
    for attribute, delimiter in _SIGNATURE_ATTRIBUTES:
        search = pos
        while True:
            index = data.find(attribute, search, limit)
            if index == -1:
                break
            # Must be a whole attribute name, not the tail of e.g. ``ds="``.
            if index > 0 and data[index - 1:index] in (b" ", b"\t", b"\r", b"\n"):
                value_start = index + len(attribute)
                value_end = data.find(delimiter, value_start)
                if value_end != -1:
                    candidate = (value_end, value_end + len(delimiter) - 1)
                    if best is None or candidate[0] < best[0]:
                        best = candidate
                break
            search = index + 1
    return best


def _find_close(data: bytes, pos: int) -> int:
    ends = [data.find(closer, pos) for closer in _CLOSERS]
    hits = [(index, closer) for index, closer in zip(ends, _CLOSERS) if index != -1]
    if not hits:
        return len(data)
    index, closer = min(hits)
    return index + len(closer)


def locate_segments(data: bytes) -> list[RecordSegment]:
    """Find every SEAL record in ``data``.

    ``signature_end`` is the offset of the last byte of the delimiter closing
    the ``s`` value: the value end for ``"``, five bytes further for
    ``&quot;``.
    """
    segments: list[RecordSegment] = []
    pos = 0
    while True:
        hit = _next_opener(data, pos)
        if hit is None:
            return segments
        start, opener = hit
        following = _next_opener(data, start + len(opener))
        limit = following[0] if following else len(data)

        signature = _find_signature(data, start, limit)
        if signature is None:
            pos = start + len(opener)
            continue
        value_end, signature_end = signature
        end = _find_close(data, value_end)
        segments.append(
            RecordSegment(
                text=data[start:end].decode("latin-1"),
                signature_end=signature_end,
            )
        )
        pos = end


def load_asset(path: str | Path) -> MediaAsset:
    file_path = Path(path)
    data = file_path.read_bytes()
    return MediaAsset(data=data, segments=locate_segments(data), name=file_path.name)
