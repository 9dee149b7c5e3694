"""First-stage digest and the double-digest (signed value) construction."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Sequence

from sealverify.errors import DigestError, DigestMissing
from sealverify.types import ByteRange, DigestAlgorithm

logger = logging.getLogger(__name__)

DigestFn = Callable[[DigestAlgorithm, bytes], Awaitable[bytes]]


def assemble_ranges(data: bytes, ranges: Sequence[ByteRange]) -> bytes:
    size = len(data)
    for byte_range in ranges:
        if not byte_range.within(size):
            raise DigestError(
                f"Byte range {byte_range.start}~{byte_range.end} is outside the asset ({size} bytes)",
            )
    return b"".join(data[r.start:r.end] for r in ranges)


async def compute_digest(
    data: bytes,
    ranges: Sequence[ByteRange],
    algorithm: DigestAlgorithm,
    digest_fn: DigestFn,
) -> bytes:
    started = time.perf_counter()
    payload = assemble_ranges(data, ranges)
    try:
        digest = await digest_fn(algorithm, payload)
    except Exception as error:
        raise DigestError("Digest can not be processed", cause=error) from error
    logger.debug(
        "digest %s over %d bytes in %.2fms",
        algorithm,
        len(payload),
        (time.perf_counter() - started) * 1000,
    )
    return digest


def signed_value_prefix(signature_date: str | None, signer_id: str | None) -> str:
    prefix = ""
    if signature_date:
        prefix = f"{signature_date}:"
    if signer_id:
        prefix = f"{prefix}{signer_id}:"
    return prefix


def build_signed_value(
    first_stage_digest: bytes | None,
    signature_date: str | None = None,
    signer_id: str | None = None,
) -> bytes:
    """Prefix the digest with ``date:`` and ``id:`` context.

    The verify capability hashes this value itself, so it is returned as-is.
    """
    if not first_stage_digest:
        raise DigestMissing("The digest is missing")
    return signed_value_prefix(signature_date, signer_id).encode("utf-8") + first_stage_digest
