from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from sealverify.types import DnsKeyRecord

_HASHES = {
    "sha1": (hashes.SHA1, "sha1"),
    "sha256": (hashes.SHA256, "sha256"),
    "sha384": (hashes.SHA384, "sha384"),
    "sha512": (hashes.SHA512, "sha512"),
}


def public_key_b64(private_key: Any) -> str:
    der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode("ascii")


@dataclass
class FakeResolver:
    records: list[DnsKeyRecord]
    calls: list[str] = field(default_factory=list)

    async def __call__(self, domain: str) -> list[DnsKeyRecord]:
        self.calls.append(domain)
        return self.records


@dataclass(frozen=True)
class SignedAsset:
    data: bytes
    signature_text: str
    public_key: str


def _sign(private_key: Any, payload: bytes, da: str, raw_ec: bool) -> bytes:
    hash_algorithm = _HASHES[da][0]()
    if isinstance(private_key, rsa.RSAPrivateKey):
        return private_key.sign(payload, padding.PKCS1v15(), hash_algorithm)
    signature = private_key.sign(payload, ec.ECDSA(hash_algorithm))
    if not raw_ec:
        return signature
    r, s = decode_dss_signature(signature)
    size = (private_key.curve.key_size + 7) // 8
    return r.to_bytes(size, "big") + s.to_bytes(size, "big")


def _encode(signature: bytes, encoding: str, strip_padding: bool) -> str:
    if encoding == "hex":
        return signature.hex()
    if encoding == "HEX":
        return signature.hex().upper()
    text = base64.b64encode(signature).decode("ascii")
    return text.rstrip("=") if strip_padding else text


def build_signed_asset(
    private_key: Any,
    *,
    domain: str = "example.com",
    da: str = "sha256",
    encoding: str = "base64",
    sf: str | None = None,
    signer_id: str | None = None,
    date: str | None = None,
    escaped: bool = False,
    strip_padding: bool = False,
    raw_ec: bool = False,
    header: bytes = b"\x89FAKE-MEDIA-HEADER\x00\x01\x02\n",
    trailer: bytes = b"\nIEND-TRAILER\xff",
) -> SignedAsset:
    """Build ``header <seal ... s="SIG"/> trailer`` signed over ``F~S,s~f``.

    The ranges skip exactly the signature, so the digest covers
    ``header + record-before-signature + record-after-signature + trailer``.
    """
    ka = "rsa" if isinstance(private_key, rsa.RSAPrivateKey) else "ec"
    quote = "&quot;" if escaped else '"'
    attributes = [("seal", "1"), ("ka", ka), ("d", domain), ("da", da)]
    if sf:
        attributes.append(("sf", sf))
    if signer_id:
        attributes.append(("id", signer_id))
    attributes.append(("b", "F~S,s~f"))

    opener = "&lt;seal " if escaped else "<seal "
    closer = "/&gt;" if escaped else "/>"
    record_head = opener + " ".join(f"{key}={quote}{value}{quote}" for key, value in attributes)
    prefix = header + f"{record_head} s={quote}".encode("latin-1")
    suffix = f"{quote}{closer}".encode("latin-1") + trailer

    first_stage = hashlib.new(_HASHES[da][1], prefix + suffix).digest()
    context = ""
    if date:
        context += f"{date}:"
    if signer_id:
        context += f"{signer_id}:"
    signature = _sign(private_key, context.encode("utf-8") + first_stage, da, raw_ec)

    signature_text = _encode(signature, encoding, strip_padding)
    if date:
        signature_text = f"{date}:{signature_text}"

    return SignedAsset(
        data=prefix + signature_text.encode("latin-1") + suffix,
        signature_text=signature_text,
        public_key=public_key_b64(private_key),
    )


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def signed_asset() -> Callable[..., SignedAsset]:
    return build_signed_asset


@pytest.fixture
def resolver_for() -> Callable[..., FakeResolver]:
    def _make(public_key: str, key_algorithm: str = "rsa") -> FakeResolver:
        return FakeResolver(
            records=[DnsKeyRecord(seal_version="1", key_algorithm=key_algorithm, public_key_b64=public_key)],
        )

    return _make
