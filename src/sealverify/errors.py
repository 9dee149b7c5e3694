"""Typed verification errors, one per failing pipeline stage."""

from __future__ import annotations

from typing import Any


class SealError(Exception):
    """Base class for every SEAL verification failure."""

    code = "SEAL_ERROR"

    def __init__(self, message: str, cause: Any = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.cause is not None:
            payload["cause"] = str(self.cause)
        return payload


class RecordIncomplete(SealError):
    code = "SEAL_RECORD_MISSING_PARAMETERS"


class DnsLookupError(SealError):
    code = "DNS_LOOKUP"


class KeyNotFound(SealError):
    code = "KEY_NOT_FOUND"


class RangeSyntaxError(SealError):
    code = "RANGE_SYNTAX"


class DigestError(SealError):
    code = "DIGEST_ERROR"


class DigestMissing(SealError):
    code = "DIGEST_MISSING"


class SignatureMissing(SealError):
    code = "SIGNATURE_MISSING"


class SignatureFormatError(SealError):
    code = "SIGNATURE_FORMAT"


class KeyImportError(SealError):
    code = "KEY_IMPORT_ERROR"


class SignatureVerifyError(SealError):
    code = "SIGNATURE_VERIFY_ERROR"
