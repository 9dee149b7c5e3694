"""Shared datatypes for the SEAL verification library."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Literal, Optional, Protocol

DigestAlgorithm = Literal["SHA-1", "SHA-256", "SHA-384", "SHA-512"]
SignatureEncoding = Literal["hex", "HEX", "base64", "bin"]


@dataclass(frozen=True)
class SealRecord:
    seal_version: str
    domain: str
    key_algorithm: str
    signature_text: str
    key_version: str = "1"
    signature_format: str | None = None
    digest_algorithm: DigestAlgorithm = "SHA-256"
    byte_range_expr: str | None = None
    unique_id: str = ""
    signer_id: str | None = None
    comment: str | None = None
    copyright: str | None = None
    revocation_date: datetime | None = None
    public_key_b64: str | None = None
    signature_length_hint: int | None = None


@dataclass(frozen=True)
class ByteRange:
    """Half-open ``[start, end)`` span of asset bytes."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def within(self, size: int) -> bool:
        return 0 <= self.start <= self.end <= size

    def describe(self) -> str:
        # Inclusive bounds, the way sealtool prints signed ranges.
        return f"{self.start}-{self.end - 1}"


@dataclass
class ValidationContext:
    """Scratch state for a single verification pass."""

    digest_ranges: list[ByteRange] = field(default_factory=list)
    digest_summary: str = ""
    first_stage_digest: bytes | None = None
    signature_encoding: SignatureEncoding | None = None
    signature_date: str | None = None
    signed_value: bytes | None = None
    decoded_signature: bytes | None = None


@dataclass(frozen=True)
class PublicKeyEntry:
    rsa: str | None = None
    ec: str | None = None

    def get(self, key_algorithm: str) -> str | None:
        if key_algorithm == "rsa":
            return self.rsa
        if key_algorithm == "ec":
            return self.ec
        return None


@dataclass(frozen=True)
class DnsKeyRecord:
    seal_version: str | None = None
    key_algorithm: str | None = None
    key_version: str | None = None
    unique_id: str | None = None
    revocation: str | None = None
    public_key_b64: str | None = None


@dataclass(frozen=True)
class RecordSegment:
    text: str
    signature_end: int


@dataclass(frozen=True)
class MediaAsset:
    data: bytes
    segments: List[RecordSegment] = field(default_factory=list)
    name: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AlgorithmParameters:
    key_algorithm: str
    digest_algorithm: DigestAlgorithm


@dataclass(frozen=True)
class VerificationResult:
    valid: bool | None
    message: str
    filename: str | None = None
    filesize: int | None = None
    domain: str | None = None
    signed_on: str | None = None
    digest: str | None = None
    double_digest: str | None = None
    key_algorithm: str | None = None
    key_bits: int | None = None
    digest_algorithm: str | None = None
    key_base64: str | None = None
    signed_bytes: Optional[List[str]] = None
    spans: str | None = None
    user: str | None = None
    copyright: str | None = None
    comment: str | None = None
    revocation_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        return {
            key: value
            for key, value in payload.items()
            if value is not None or key in ("valid", "message")
        }


TxtResolver = Callable[[str], Awaitable[List[DnsKeyRecord]]]


class CryptoProvider(Protocol):
    async def digest(self, algorithm: DigestAlgorithm, data: bytes) -> bytes: ...

    def algorithm_parameters(
        self,
        public_key_b64: str,
        digest_algorithm: DigestAlgorithm,
        key_algorithm: str,
    ) -> AlgorithmParameters: ...

    async def import_key(self, public_key_b64: str, params: AlgorithmParameters) -> Any: ...

    async def verify(
        self,
        signed_value: bytes,
        signature: bytes,
        key: Any,
        params: AlgorithmParameters,
    ) -> bool: ...

    def key_bit_length(self, key: Any) -> int: ...
