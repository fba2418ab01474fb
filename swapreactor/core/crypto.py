"""
swapreactor/core/crypto.py

Ed25519 signing keys for offerers and the fill journal.

    key.address         0x + last 20 bytes of SHA-256(raw public key)
    key.public_key_hex  64-char lowercase hex
    key.sign(data)      base64url signature, '=' padding stripped
    verify_detached()   checks a signature from a public key hex alone

A signature cannot be turned back into a key, so verifiers hold an
address → public key registry (chain/custody.py) or carry the public key
next to the signature (ledger/journal.py).
"""

import base64
import hashlib

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat


def address_from_public_key(public_key_hex: str) -> str:
    """Raises ValueError unless public_key_hex is 64 hex characters."""
    if not isinstance(public_key_hex, str) or len(public_key_hex) != 64:
        raise ValueError(f"public key must be 64 hex chars, got {public_key_hex!r}")
    return "0x" + hashlib.sha256(bytes.fromhex(public_key_hex)).digest()[-20:].hex()


def _b64decode(signature_b64: str) -> bytes:
    return base64.urlsafe_b64decode(signature_b64 + "=" * (-len(signature_b64) % 4))


class Ed25519KeyManager:
    """One Ed25519 private key and the address it controls."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key    = private_key
        self._public_key_hex = (
            private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
        )
        self._address = address_from_public_key(self._public_key_hex)

    @classmethod
    def generate(cls) -> "Ed25519KeyManager":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, seed: bytes) -> "Ed25519KeyManager":
        """Deterministic key from a 32-byte seed. Raises ValueError otherwise."""
        if len(seed) != 32:
            raise ValueError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @property
    def public_key_hex(self) -> str:
        return self._public_key_hex

    @property
    def address(self) -> str:
        return self._address

    def sign(self, data: bytes) -> str:
        """Orders and journal entries sign the ASCII bytes of their hex hash."""
        raw = self._private_key.sign(data)
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @staticmethod
    def verify_detached(data: bytes, signature_b64: str, public_key_hex: str) -> bool:
        """
        True only for a valid signature over data by public_key_hex.
        Malformed keys or signatures return False; this never raises.
        """
        if not isinstance(public_key_hex, str) or len(public_key_hex) != 64:
            return False
        if not isinstance(signature_b64, str):
            return False
        try:
            public_key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
            raw        = _b64decode(signature_b64)
        except ValueError:
            return False
        if len(raw) != 64:
            return False
        try:
            public_key.verify(raw, data)
        except InvalidSignature:
            return False
        return True

    def __repr__(self) -> str:
        return f"Ed25519KeyManager(address={self._address})"
