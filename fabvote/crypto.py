"""fabvote — Hashing and Signing.

SHA-256 message digests and a private-key signer for gateway
requests. EC keys sign with ECDSA over the pre-hashed digest
(low-S normalized, DER encoded); Ed25519 keys sign the digest bytes.
"""

from __future__ import annotations

import hashlib

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from fabvote.exceptions import InvalidKey

# Curve orders, used to fold high-S signatures into the lower half.
_CURVE_ORDERS = {
    "secp256r1": 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    "secp384r1": int(
        "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF"
        "C7634D81F4372DDF581A0DB248B0A77AECEC196ACCC52973",
        16,
    ),
}

# Prehash algorithm, selected by digest length.
_PREHASH = {
    32: hashes.SHA256(),
    48: hashes.SHA384(),
    64: hashes.SHA512(),
}


def sha256(message: bytes) -> bytes:
    """Default hash function for gateway sessions."""
    return hashlib.sha256(message).digest()


def load_private_key(pem: bytes):
    """Parse PEM private key bytes, raising :class:`InvalidKey` on failure."""
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKey(f"Cannot parse private key: {e}") from e
    if isinstance(key, ec.EllipticCurvePrivateKey):
        if key.curve.name not in _CURVE_ORDERS:
            raise InvalidKey(f"Unsupported curve: {key.curve.name}")
        return key
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return key
    raise InvalidKey(f"Unsupported private key type: {type(key).__name__}")


class Signer:
    """Signs message digests with a private key held only in memory."""

    def __init__(self, private_key):
        self._key = private_key

    @classmethod
    def from_pem(cls, pem: bytes) -> Signer:
        return cls(load_private_key(pem))

    def sign(self, digest: bytes) -> bytes:
        if isinstance(self._key, ed25519.Ed25519PrivateKey):
            return self._key.sign(digest)

        algorithm = _PREHASH.get(len(digest))
        if algorithm is None:
            raise ValueError(f"Unsupported digest length: {len(digest)}")
        curve = self._key.curve.name
        der = self._key.sign(digest, ec.ECDSA(Prehashed(algorithm)))
        r, s = decode_dss_signature(der)
        order = _CURVE_ORDERS[curve]
        if s > order // 2:
            s = order - s
        return encode_dss_signature(r, s)

    def public_key(self):
        return self._key.public_key()

    def __repr__(self) -> str:
        return f"Signer({type(self._key).__name__})"
