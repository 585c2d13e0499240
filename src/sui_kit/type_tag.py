"""Move type tags: parsing from strings and BCS encoding."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final, Union

from sui_kit.bcs import Serializer, normalize_address

__all__ = [
    "PrimitiveTag",
    "StructTag",
    "TypeTag",
    "VectorTag",
    "encode_type_tag",
    "parse_type_tag",
]

# Variant indices of the ``TypeTag`` enum.
_PRIMITIVE_VARIANTS: Final[dict[str, int]] = {
    "bool": 0,
    "u8": 1,
    "u64": 2,
    "u128": 3,
    "address": 4,
    "signer": 5,
    "u16": 8,
    "u32": 9,
    "u256": 10,
}
_VECTOR_VARIANT: Final[int] = 6
_STRUCT_VARIANT: Final[int] = 7

_TOKEN = re.compile(r"\s*(::|<|>|,|[A-Za-z0-9_]+)")


@dataclass(frozen=True, slots=True)
class PrimitiveTag:
    name: str


@dataclass(frozen=True, slots=True)
class VectorTag:
    element: "TypeTag"


@dataclass(frozen=True, slots=True)
class StructTag:
    address: str
    module: str
    name: str
    type_params: tuple["TypeTag", ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        base = f"{self.address}::{self.module}::{self.name}"
        if not self.type_params:
            return base
        return base + "<" + ", ".join(_format(p) for p in self.type_params) + ">"


TypeTag = Union[PrimitiveTag, VectorTag, StructTag]


def _format(tag: TypeTag) -> str:
    if isinstance(tag, PrimitiveTag):
        return tag.name
    if isinstance(tag, VectorTag):
        return f"vector<{_format(tag.element)}>"
    return str(tag)


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = text.strip()
    while pos < len(stripped):
        match = _TOKEN.match(stripped, pos)
        if match is None:
            raise ValueError(f"Unexpected character in type tag {text!r} at {pos}")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._pos = 0

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _take(self, expected: str | None = None) -> str:
        token = self._peek()
        if token is None or (expected is not None and token != expected):
            raise ValueError(
                f"Malformed type tag {self._text!r}: expected {expected or 'token'}, got {token!r}"
            )
        self._pos += 1
        return token

    def parse(self) -> TypeTag:
        tag = self._parse_tag()
        if self._peek() is not None:
            raise ValueError(f"Trailing input in type tag {self._text!r}")
        return tag

    def _parse_tag(self) -> TypeTag:
        head = self._take()
        if head in _PRIMITIVE_VARIANTS:
            return PrimitiveTag(head)
        if head == "vector":
            self._take("<")
            element = self._parse_tag()
            self._take(">")
            return VectorTag(element)
        address = normalize_address(head)
        self._take("::")
        module = self._take()
        self._take("::")
        name = self._take()
        params: list[TypeTag] = []
        if self._peek() == "<":
            self._take("<")
            params.append(self._parse_tag())
            while self._peek() == ",":
                self._take(",")
                params.append(self._parse_tag())
            self._take(">")
        return StructTag(address, module, name, tuple(params))


def parse_type_tag(text: str) -> TypeTag:
    """Parse a Move type such as ``0x2::coin::Coin<0x2::sui::SUI>``.

    Raises:
        ValueError: When ``text`` is not a well-formed type.
    """

    return _Parser(text).parse()


def encode_type_tag(ser: Serializer, tag: TypeTag) -> Serializer:
    """Write ``tag`` in its BCS enum form."""

    if isinstance(tag, PrimitiveTag):
        return ser.uleb128(_PRIMITIVE_VARIANTS[tag.name])
    if isinstance(tag, VectorTag):
        ser.uleb128(_VECTOR_VARIANT)
        return encode_type_tag(ser, tag.element)
    ser.uleb128(_STRUCT_VARIANT)
    ser.address(tag.address)
    ser.str(tag.module)
    ser.str(tag.name)
    return ser.sequence(tag.type_params, encode_type_tag)
