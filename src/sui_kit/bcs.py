"""Binary Canonical Serialization (BCS) helpers.

BCS is the deterministic encoding Sui uses for transaction data, signatures
and multisig public keys. Only the writer side is needed client-side: the
ledger hands results back as JSON.
"""

from __future__ import annotations

import re
from typing import Callable, Final, Iterable, TypeVar

__all__ = [
    "ADDRESS_LENGTH",
    "Serializer",
    "b58decode",
    "is_valid_address",
    "normalize_address",
]

T = TypeVar("T")

ADDRESS_LENGTH: Final[int] = 32
_MAX_U8: Final[int] = 2**8 - 1
_MAX_U16: Final[int] = 2**16 - 1
_MAX_U32: Final[int] = 2**32 - 1
_MAX_U64: Final[int] = 2**64 - 1
_MAX_U128: Final[int] = 2**128 - 1
_MAX_U256: Final[int] = 2**256 - 1

_HEX_ADDRESS = re.compile(r"^(0x)?[0-9a-fA-F]{1,64}$")
_B58_ALPHABET: Final[str] = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX: Final[dict[str, int]] = {ch: idx for idx, ch in enumerate(_B58_ALPHABET)}


def is_valid_address(value: str) -> bool:
    """Return ``True`` when ``value`` looks like a hex Sui address or object id."""

    return bool(_HEX_ADDRESS.match(value))


def normalize_address(value: str) -> str:
    """Return ``value`` as a lowercase, ``0x``-prefixed, 64 hex char address.

    Raises:
        ValueError: If ``value`` is not a hex address.
    """

    if not is_valid_address(value):
        raise ValueError(f"Invalid Sui address: {value!r}")
    body = value[2:] if value[:2].lower() == "0x" else value
    return "0x" + body.lower().rjust(ADDRESS_LENGTH * 2, "0")


def b58decode(value: str) -> bytes:
    """Decode a Base58 (Bitcoin alphabet) string, as used for object digests."""

    number = 0
    for ch in value:
        try:
            number = number * 58 + _B58_INDEX[ch]
        except KeyError as exc:
            raise ValueError(f"Invalid base58 character {ch!r}") from exc
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    leading = len(value) - len(value.lstrip("1"))
    return b"\x00" * leading + body


class Serializer:
    """Append-only BCS writer.

    Example:
        >>> ser = Serializer()
        >>> _ = ser.uleb128(300).u64(1)
        >>> ser.output().hex()
        'ac020100000000000000'
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def output(self) -> bytes:
        return bytes(self._buffer)

    def _int(self, value: int, size: int, upper: int) -> "Serializer":
        if not 0 <= value <= upper:
            raise ValueError(f"{value} does not fit in u{size * 8}")
        self._buffer.extend(value.to_bytes(size, "little"))
        return self

    def u8(self, value: int) -> "Serializer":
        return self._int(value, 1, _MAX_U8)

    def u16(self, value: int) -> "Serializer":
        return self._int(value, 2, _MAX_U16)

    def u32(self, value: int) -> "Serializer":
        return self._int(value, 4, _MAX_U32)

    def u64(self, value: int) -> "Serializer":
        return self._int(value, 8, _MAX_U64)

    def u128(self, value: int) -> "Serializer":
        return self._int(value, 16, _MAX_U128)

    def u256(self, value: int) -> "Serializer":
        return self._int(value, 32, _MAX_U256)

    def bool(self, value: bool) -> "Serializer":
        self._buffer.append(1 if value else 0)
        return self

    def uleb128(self, value: int) -> "Serializer":
        """Write an unsigned LEB128 integer (used for lengths and enum tags)."""

        if value < 0 or value > _MAX_U32:
            raise ValueError(f"{value} is out of range for a ULEB128 length")
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                self._buffer.append(byte | 0x80)
            else:
                self._buffer.append(byte)
                return self

    def fixed_bytes(self, value: bytes) -> "Serializer":
        """Write raw bytes without a length prefix."""

        self._buffer.extend(value)
        return self

    def bytes(self, value: bytes) -> "Serializer":
        """Write a length-prefixed ``vector<u8>``."""

        self.uleb128(len(value))
        self._buffer.extend(value)
        return self

    def str(self, value: str) -> "Serializer":
        return self.bytes(value.encode("utf-8"))

    def address(self, value: str) -> "Serializer":
        return self.fixed_bytes(bytes.fromhex(normalize_address(value)[2:]))

    def sequence(self, items: Iterable[T], encode: Callable[["Serializer", T], object]) -> "Serializer":
        """Write a length-prefixed vector, encoding each item with ``encode``."""

        values = list(items)
        self.uleb128(len(values))
        for item in values:
            encode(self, item)
        return self

    def option(self, value: T | None, encode: Callable[["Serializer", T], object]) -> "Serializer":
        if value is None:
            self._buffer.append(0)
        else:
            self._buffer.append(1)
            encode(self, value)
        return self
