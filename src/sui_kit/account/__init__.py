"""Signing identities: keypairs, derivation paths and the account cache."""

from __future__ import annotations

from sui_kit.account.derivation import DerivePathParams
from sui_kit.account.keypair import Ed25519Keypair, parse_serialized_signature
from sui_kit.account.manager import AccountManager

__all__ = [
    "AccountManager",
    "DerivePathParams",
    "Ed25519Keypair",
    "parse_serialized_signature",
]
