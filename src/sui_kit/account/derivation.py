"""BIP-39 seeds and SLIP-0010 Ed25519 path derivation.

Sui derives Ed25519 accounts along ``m/44'/784'/{account}'/{change}'/{index}'``.
SLIP-0010 only defines hardened derivation for Ed25519, so every segment of
the path must be hardened.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from bip_utils import (
    Bip32Slip10Ed25519,
    Bip39MnemonicGenerator,
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
    Bip39WordsNum,
)

__all__ = [
    "DerivePathParams",
    "derive_ed25519_key",
    "generate_mnemonic",
    "mnemonic_to_seed",
    "parse_derivation_path",
]

SUI_BIP44_COIN_TYPE: Final[int] = 784
_HARDENED: Final[int] = 0x80000000


@dataclass(frozen=True, slots=True)
class DerivePathParams:
    """Selector for one account of a mnemonic, following BIP-44.

    Attributes:
        account_index: BIP-44 account.
        is_external: Selects the change level (``1`` when external).
        address_index: Address within the account.
    """

    account_index: int = 0
    is_external: bool = False
    address_index: int = 0

    def __post_init__(self) -> None:
        if self.account_index < 0 or self.address_index < 0:
            raise ValueError("derivation indices must be non-negative")

    @property
    def path(self) -> str:
        change = 1 if self.is_external else 0
        return f"m/44'/{SUI_BIP44_COIN_TYPE}'/{self.account_index}'/{change}'/{self.address_index}'"


def generate_mnemonic() -> str:
    """Return a fresh random 24-word English mnemonic."""

    return Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum.WORDS_NUM_24).ToStr()


def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """Return the 64-byte BIP-39 seed for ``mnemonic``.

    Raises:
        ValueError: If a word is not in the wordlist or the checksum does not match.
    """

    words = " ".join(mnemonic.split())
    if not Bip39MnemonicValidator().IsValid(words):
        raise ValueError("mnemonic is not a valid BIP-39 phrase (unknown word or bad checksum)")
    return bytes(Bip39SeedGenerator(words).Generate(passphrase))


def parse_derivation_path(path: str) -> list[int]:
    """Return hardened child indices for a path such as ``m/44'/784'/0'/0'/0'``.

    Raises:
        ValueError: When the path is malformed or contains a non-hardened segment.
    """

    segments = path.strip().split("/")
    if not segments or segments[0] != "m":
        raise ValueError(f"derivation path must start with 'm': {path!r}")
    indices: list[int] = []
    for segment in segments[1:]:
        if not segment.endswith("'"):
            raise ValueError(f"Ed25519 derivation requires hardened segments: {path!r}")
        body = segment[:-1]
        if not body.isdigit():
            raise ValueError(f"invalid derivation path segment {segment!r}")
        index = int(body)
        if index >= _HARDENED:
            raise ValueError(f"derivation index out of range: {segment!r}")
        indices.append(index + _HARDENED)
    return indices


def derive_ed25519_key(path: str, seed: bytes) -> tuple[bytes, bytes]:
    """Derive ``(private_key, chain_code)`` for ``path`` from a BIP-39 seed."""

    context = Bip32Slip10Ed25519.FromSeed(seed)
    for index in parse_derivation_path(path):
        context = context.ChildKey(index)
    return context.PrivateKey().Raw().ToBytes(), context.ChainCode().ToBytes()
