"""Default cryptographic collaborator backed by hashlib and ``cryptography``."""

from __future__ import annotations

import base64
import binascii
import hashlib
from typing import Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from sealverify.types import AlgorithmParameters, DigestAlgorithm

_HASHLIB_NAMES: dict[str, str] = {
    "SHA-1": "sha1",
    "SHA-256": "sha256",
    "SHA-384": "sha384",
    "SHA-512": "sha512",
}

_HASH_CLASSES: dict[str, type[hashes.HashAlgorithm]] = {
    "SHA-1": hashes.SHA1,
    "SHA-256": hashes.SHA256,
    "SHA-384": hashes.SHA384,
    "SHA-512": hashes.SHA512,
}


def _from_b64(value: str) -> bytes:
    compact = "".join(value.split()).replace('"', "")
    pad = len(compact) % 4
    padded = compact if pad == 0 else compact + ("=" * (4 - pad))
    return base64.b64decode(padded, validate=True)


def digest_bytes(algorithm: DigestAlgorithm, data: bytes) -> bytes:
    name = _HASHLIB_NAMES.get(algorithm)
    if name is None:
        raise ValueError(f"Unsupported digest algorithm: {algorithm}")
    return hashlib.new(name, data).digest()


def load_public_key(public_key_b64: str, key_algorithm: str) -> Any:
    try:
        der = _from_b64(public_key_b64)
    except (binascii.Error, ValueError) as error:
        raise ValueError("Public key is not valid base64") from error

    try:
        key = serialization.load_der_public_key(der)
    except UnsupportedAlgorithm as error:
        raise ValueError("Public key algorithm is not supported") from error

    if key_algorithm == "rsa" and not isinstance(key, rsa.RSAPublicKey):
        raise ValueError("Public key is not an RSA key")
    if key_algorithm == "ec" and not isinstance(key, ec.EllipticCurvePublicKey):
        raise ValueError("Public key is not an elliptic curve key")
    if key_algorithm not in ("rsa", "ec"):
        raise ValueError(f"Unsupported key algorithm: {key_algorithm}")
    return key


def _ec_signature_to_der(key: ec.EllipticCurvePublicKey, signature: bytes) -> bytes:
    # Web Crypto style signatures are raw r||s; OpenSSL style are DER.
    coordinate_size = (key.curve.key_size + 7) // 8
    if len(signature) != 2 * coordinate_size:
        return signature
    r = int.from_bytes(signature[:coordinate_size], "big")
    s = int.from_bytes(signature[coordinate_size:], "big")
    return encode_dss_signature(r, s)


def verify_signed_value(
    signed_value: bytes,
    signature: bytes,
    key: Any,
    params: AlgorithmParameters,
) -> bool:
    hash_algorithm = _HASH_CLASSES[params.digest_algorithm]()
    try:
        if isinstance(key, rsa.RSAPublicKey):
            key.verify(signature, signed_value, padding.PKCS1v15(), hash_algorithm)
        elif isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(_ec_signature_to_der(key, signature), signed_value, ec.ECDSA(hash_algorithm))
        else:
            raise ValueError(f"Unsupported key type: {type(key).__name__}")
    except InvalidSignature:
        return False
    return True


class DefaultCrypto:
    """``CryptoProvider`` implementation used when callers inject nothing."""

    async def digest(self, algorithm: DigestAlgorithm, data: bytes) -> bytes:
        return digest_bytes(algorithm, data)

    def algorithm_parameters(
        self,
        public_key_b64: str,
        digest_algorithm: DigestAlgorithm,
        key_algorithm: str,
    ) -> AlgorithmParameters:
        return AlgorithmParameters(key_algorithm=key_algorithm, digest_algorithm=digest_algorithm)

    async def import_key(self, public_key_b64: str, params: AlgorithmParameters) -> Any:
        return load_public_key(public_key_b64, params.key_algorithm)

    async def verify(
        self,
        signed_value: bytes,
        signature: bytes,
        key: Any,
        params: AlgorithmParameters,
    ) -> bool:
        return verify_signed_value(signed_value, signature, key, params)

    def key_bit_length(self, key: Any) -> int:
        return int(key.key_size)
