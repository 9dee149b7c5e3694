"""sealverify: verification of SEAL provenance signatures embedded in media."""

from sealverify.crypto import DefaultCrypto
from sealverify.digest import build_signed_value, compute_digest
from sealverify.doh import DohResolver, parse_txt_record
from sealverify.errors import (
    DigestError,
    DigestMissing,
    DnsLookupError,
    KeyImportError,
    KeyNotFound,
    RangeSyntaxError,
    RecordIncomplete,
    SealError,
    SignatureFormatError,
    SignatureMissing,
    SignatureVerifyError,
)
from sealverify.key_cache import KeyCache, default_key_cache
from sealverify.ranges import resolve_ranges
from sealverify.record import parse_record
from sealverify.segments import load_asset, locate_segments
from sealverify.signature import decode_signature
from sealverify.types import (
    AlgorithmParameters,
    ByteRange,
    DnsKeyRecord,
    MediaAsset,
    PublicKeyEntry,
    RecordSegment,
    SealRecord,
    ValidationContext,
    VerificationResult,
)
from sealverify.verify import verify_all, verify_asset, verify_asset_sync

__all__ = [
    "AlgorithmParameters",
    "ByteRange",
    "DefaultCrypto",
    "DigestError",
    "DigestMissing",
    "DnsKeyRecord",
    "DnsLookupError",
    "DohResolver",
    "KeyCache",
    "KeyImportError",
    "KeyNotFound",
    "MediaAsset",
    "PublicKeyEntry",
    "RangeSyntaxError",
    "RecordIncomplete",
    "RecordSegment",
    "SealError",
    "SealRecord",
    "SignatureFormatError",
    "SignatureMissing",
    "SignatureVerifyError",
    "ValidationContext",
    "VerificationResult",
    "build_signed_value",
    "compute_digest",
    "decode_signature",
    "default_key_cache",
    "load_asset",
    "locate_segments",
    "parse_record",
    "parse_txt_record",
    "resolve_ranges",
    "verify_all",
    "verify_asset",
    "verify_asset_sync",
]

__version__ = "0.1.0"
