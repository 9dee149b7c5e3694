"""SEAL verification pipeline.

Stages run strictly in order and the first failure aborts the pass:

    parse record -> resolve key -> resolve ranges -> digest
        -> decode signature -> build signed value -> verify
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from sealverify.crypto import DefaultCrypto
from sealverify.digest import build_signed_value, compute_digest
from sealverify.errors import (
    DigestMissing,
    DnsLookupError,
    KeyImportError,
    KeyNotFound,
    SignatureFormatError,
    SignatureVerifyError,
)
from sealverify.key_cache import KeyCache, default_key_cache
from sealverify.ranges import resolve_ranges
from sealverify.record import parse_record
from sealverify.signature import decode_signature, signature_date_to_datetime
from sealverify.types import (
    CryptoProvider,
    MediaAsset,
    RecordSegment,
    SealRecord,
    TxtResolver,
    ValidationContext,
    VerificationResult,
)

logger = logging.getLogger(__name__)

NO_SIGNATURE_MESSAGE = "no signature found"
ESCAPED_QUOTE = "&quot;"
# len("&quot;") - len('"')
ESCAPED_QUOTE_PADDING = 5


def adjusted_signature_end(segment: RecordSegment) -> int:
    """Signature end offset in un-escaped terms."""
    if ESCAPED_QUOTE in segment.text:
        return segment.signature_end - ESCAPED_QUOTE_PADDING
    return segment.signature_end


async def resolve_public_key(
    record: SealRecord,
    resolver: TxtResolver,
    key_cache: KeyCache,
) -> str:
    entry = key_cache.lookup(record.domain)
    if entry is None:
        logger.debug("key cache miss for %s", record.domain)
        try:
            records = await resolver(record.domain)
        except DnsLookupError:
            raise
        except Exception as error:
            raise DnsLookupError(
                f"Querying DoH {record.domain} DNS for a TXT record failed",
                cause=error,
            ) from error
        entry = key_cache.store(record.domain, records)
        if entry is None:
            raise KeyNotFound("Public key not found or corrupted", cause=records)
    else:
        logger.debug("key cache hit for %s", record.domain)

    public_key = entry.get(record.key_algorithm)
    if not public_key:
        raise KeyNotFound(
            f"No {record.key_algorithm!r} public key published for {record.domain}",
        )
    return public_key


def _message(index: int, valid: bool) -> str:
    if valid:
        return f"SEAL record #{index + 1} is valid."
    return f"SEAL record #{index + 1} is NOT valid."


async def _verify_segment(
    asset: MediaAsset,
    index: int,
    *,
    resolver: TxtResolver,
    crypto: CryptoProvider,
    key_cache: KeyCache,
    verbose: bool,
) -> VerificationResult:
    started = time.perf_counter()
    segment = asset.segments[index]
    context = ValidationContext()

    record = parse_record(segment.text)
    public_key = await resolve_public_key(record, resolver, key_cache)

    if not record.byte_range_expr:
        raise DigestMissing("The SEAL record has no byte range to digest")
    context.digest_ranges, context.digest_summary = resolve_ranges(
        record.byte_range_expr,
        asset_size=asset.size,
        signature_text=record.signature_text,
        signature_end=adjusted_signature_end(segment),
    )

    first_stage_digest = await compute_digest(
        asset.data,
        context.digest_ranges,
        record.digest_algorithm,
        crypto.digest,
    )
    context.first_stage_digest = first_stage_digest

    decoded = decode_signature(record.signature_text, record.signature_format)
    context.signature_encoding = decoded.encoding
    context.signature_date = decoded.date
    context.decoded_signature = decoded.signature_bytes

    signed_value = build_signed_value(
        first_stage_digest,
        context.signature_date,
        record.signer_id,
    )
    context.signed_value = signed_value

    params = crypto.algorithm_parameters(public_key, record.digest_algorithm, record.key_algorithm)
    try:
        key = await crypto.import_key(public_key, params)
    except Exception as error:
        raise KeyImportError("The public key could not be imported", cause=error) from error

    try:
        valid = await crypto.verify(signed_value, decoded.signature_bytes, key, params)
    except Exception as error:
        raise SignatureVerifyError("The signature can not be verified", cause=error) from error

    logger.debug(
        "SEAL record #%d for %s verified in %.2fms: %s",
        index + 1,
        record.domain,
        (time.perf_counter() - started) * 1000,
        valid,
    )

    if not verbose:
        return VerificationResult(valid=bool(valid), message=_message(index, bool(valid)), filename=asset.name)
    return await _verbose_result(
        asset, index, bool(valid), record, context, first_stage_digest, signed_value, public_key, key, crypto
    )


async def _verbose_result(
    asset: MediaAsset,
    index: int,
    valid: bool,
    record: SealRecord,
    context: ValidationContext,
    first_stage_digest: bytes,
    signed_value: bytes,
    public_key: str,
    key: Any,
    crypto: CryptoProvider,
) -> VerificationResult:
    double_digest = await crypto.digest(record.digest_algorithm, signed_value)
    key_bits = crypto.key_bit_length(key)
    signed_on = None
    if context.signature_date:
        try:
            signed_on = signature_date_to_datetime(context.signature_date).isoformat().replace("+00:00", "Z")
        except SignatureFormatError:
            logger.warning("unparseable signature date %r on SEAL record #%d", context.signature_date, index + 1)
            signed_on = context.signature_date

    return VerificationResult(
        valid=valid,
        message=_message(index, valid),
        filename=asset.name,
        filesize=asset.size,
        domain=record.domain,
        signed_on=signed_on,
        digest=first_stage_digest.hex(),
        double_digest=double_digest.hex(),
        key_algorithm=f"{record.key_algorithm.upper()}, {key_bits} bits",
        key_bits=key_bits,
        digest_algorithm=record.digest_algorithm,
        key_base64=public_key,
        signed_bytes=[byte_range.describe() for byte_range in context.digest_ranges],
        spans=context.digest_summary,
        user=record.signer_id,
        copyright=record.copyright,
        comment=record.comment,
        revocation_date=record.revocation_date.isoformat() if record.revocation_date else None,
    )


async def verify_asset(
    asset: MediaAsset,
    *,
    resolver: TxtResolver,
    crypto: CryptoProvider | None = None,
    key_cache: KeyCache | None = None,
    verbose: bool = False,
    record_index: int = 0,
) -> VerificationResult:
    """Verify one SEAL record of ``asset``.

    Returns an informational result with ``valid=None`` when the asset has no
    record. Any stage failure raises the matching ``SealError`` subclass.
    """
    if not asset.segments:
        return VerificationResult(valid=None, message=NO_SIGNATURE_MESSAGE, filename=asset.name)
    if not 0 <= record_index < len(asset.segments):
        raise IndexError(f"Asset has {len(asset.segments)} SEAL record(s), no index {record_index}")

    return await _verify_segment(
        asset,
        record_index,
        resolver=resolver,
        crypto=crypto if crypto is not None else DefaultCrypto(),
        key_cache=key_cache if key_cache is not None else default_key_cache(),
        verbose=verbose,
    )


async def verify_all(
    asset: MediaAsset,
    *,
    resolver: TxtResolver,
    crypto: CryptoProvider | None = None,
    key_cache: KeyCache | None = None,
    verbose: bool = False,
) -> list[VerificationResult]:
    """Verify every SEAL record in ``asset``, in order."""
    if not asset.segments:
        return [VerificationResult(valid=None, message=NO_SIGNATURE_MESSAGE, filename=asset.name)]

    results: list[VerificationResult] = []
    for index in range(len(asset.segments)):
        results.append(
            await verify_asset(
                asset,
                resolver=resolver,
                crypto=crypto,
                key_cache=key_cache,
                verbose=verbose,
                record_index=index,
            )
        )
    return results


def verify_asset_sync(asset: MediaAsset, **kwargs: Any) -> VerificationResult:
    return asyncio.run(verify_asset(asset, **kwargs))
