"""
Ed25519 keypairs and Sui signature serialization.

Transaction signatures are computed over ``blake2b256(intent || tx_bytes)``
and serialized the way the ledger expects them::

    base64(flag || signature || public_key)

where ``flag`` is ``0x00`` for Ed25519.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from dataclasses import dataclass
from typing import Final

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from sui_kit.bcs import Serializer

__all__ = [
    "ED25519_FLAG",
    "Ed25519Keypair",
    "ParsedSignature",
    "intent_digest",
    "parse_serialized_signature",
    "public_key_to_address",
    "verify_transaction_signature",
]

ED25519_FLAG: Final[int] = 0x00
_SIGNATURE_LENGTH: Final[int] = 64
_PUBLIC_KEY_LENGTH: Final[int] = 32

# (scope, version, app_id)
TRANSACTION_INTENT: Final[bytes] = bytes([0, 0, 0])
PERSONAL_MESSAGE_INTENT: Final[bytes] = bytes([3, 0, 0])


def _blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def intent_digest(tx_bytes: bytes, intent: bytes = TRANSACTION_INTENT) -> bytes:
    """Return the 32-byte digest that signers commit to."""

    return _blake2b256(intent + tx_bytes)


def public_key_to_address(public_key: bytes, flag: int = ED25519_FLAG) -> str:
    """Derive the Sui address of a single-key account."""

    return "0x" + _blake2b256(bytes([flag]) + public_key).hex()


def _decode_secret_key(secret_key: str | bytes) -> bytes:
    """Accept hex, base64, or raw bytes and return the 32-byte Ed25519 seed."""

    if isinstance(secret_key, bytes):
        raw = secret_key
    else:
        text = secret_key.strip()
        if text.startswith(("0x", "0X")):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raw = b""
        if len(raw) not in (32, 33, 64):
            try:
                raw = base64.b64decode(text, validate=True)
            except binascii.Error as exc:
                raise ValueError("secret key must be hex or base64 encoded") from exc

    # Keystore entries carry a leading scheme flag; legacy exports append the public key.
    if len(raw) == _PUBLIC_KEY_LENGTH + 1 and raw[0] == ED25519_FLAG:
        raw = raw[1:]
    elif len(raw) == 64:
        raw = raw[:32]
    if len(raw) != 32:
        raise ValueError("secret key must be exactly 32 bytes for Ed25519")
    return raw


@dataclass(frozen=True, slots=True)
class ParsedSignature:
    """A single Sui serialized signature split into its parts."""

    flag: int
    signature: bytes
    public_key: bytes


def parse_serialized_signature(serialized: str) -> ParsedSignature:
    """Split a base64 ``flag || sig || pk`` signature.

    Raises:
        ValueError: If the payload is not a well-formed Ed25519 signature.
    """

    try:
        raw = base64.b64decode(serialized, validate=True)
    except binascii.Error as exc:
        raise ValueError("serialized signature is not valid base64") from exc
    if len(raw) != 1 + _SIGNATURE_LENGTH + _PUBLIC_KEY_LENGTH or raw[0] != ED25519_FLAG:
        raise ValueError("only Ed25519 serialized signatures are supported")
    return ParsedSignature(
        flag=raw[0],
        signature=raw[1 : 1 + _SIGNATURE_LENGTH],
        public_key=raw[1 + _SIGNATURE_LENGTH :],
    )


def verify_transaction_signature(tx_bytes: bytes, signature: bytes, public_key: bytes) -> bool:
    """Return ``True`` when ``signature`` is a valid Ed25519 signature over ``tx_bytes``."""

    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, intent_digest(tx_bytes))
    except (InvalidSignature, ValueError):
        return False
    return True


class Ed25519Keypair:
    """
    Signing identity backed by an Ed25519 private key.

    Args:
    ----
        secret_key: 32-byte seed, or its hex/base64 text form. When ``None``,
            a random key is generated if ``ephemeral=True``; otherwise a
            :class:`ValueError` is raised.
        ephemeral: Allow generating a throwaway key. Defaults to ``False``.

    """

    def __init__(self, secret_key: str | bytes | None = None, ephemeral: bool = False) -> None:
        if secret_key is None:
            if not ephemeral:
                raise ValueError(
                    "secret_key is required. Provide a stable key, or set ephemeral=True for testing."
                )
            secret_key = os.urandom(32)
        self._raw = _decode_secret_key(secret_key)
        self._priv = Ed25519PrivateKey.from_private_bytes(self._raw)
        self.public_key: bytes = self._priv.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.address: str = public_key_to_address(self.public_key)

    def __repr__(self) -> str:
        return f"Ed25519Keypair(address={self.address!r})"

    def export_secret_key(self) -> str:
        """Return the secret key as base64, in the same form it is accepted."""

        return base64.b64encode(self._raw).decode("ascii")

    def sign_raw(self, digest: bytes) -> bytes:
        return self._priv.sign(digest)

    def serialize_signature(self, signature: bytes) -> str:
        return base64.b64encode(bytes([ED25519_FLAG]) + signature + self.public_key).decode("ascii")

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Sign BCS transaction data and return the serialized signature."""

        return self.serialize_signature(self.sign_raw(intent_digest(tx_bytes)))

    def sign_personal_message(self, message: bytes) -> str:
        payload = Serializer().bytes(message).output()
        return self.serialize_signature(
            self.sign_raw(intent_digest(payload, PERSONAL_MESSAGE_INTENT))
        )
