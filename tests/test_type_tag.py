"""Tests for Move type tag parsing and encoding."""

from __future__ import annotations

import pytest

from sui_kit.bcs import Serializer
from sui_kit.type_tag import (
    PrimitiveTag,
    StructTag,
    VectorTag,
    encode_type_tag,
    parse_type_tag,
)

SUI = "0x" + "0" * 63 + "2"


def test_parse_primitive_and_vector() -> None:
    assert parse_type_tag("u64") == PrimitiveTag("u64")
    assert parse_type_tag("vector<vector<u8>>") == VectorTag(VectorTag(PrimitiveTag("u8")))


def test_parse_nested_generic_struct() -> None:
    tag = parse_type_tag("0x2::coin::Coin<0x2::sui::SUI>")
    assert isinstance(tag, StructTag)
    assert tag.address == SUI
    assert (tag.module, tag.name) == ("coin", "Coin")
    assert tag.type_params == (StructTag(SUI, "sui", "SUI"),)
    assert str(tag) == f"{SUI}::coin::Coin<{SUI}::sui::SUI>"


def test_parse_multiple_type_params() -> None:
    tag = parse_type_tag("0x1::table::Table<address, vector<u64>>")
    assert isinstance(tag, StructTag)
    assert tag.type_params == (PrimitiveTag("address"), VectorTag(PrimitiveTag("u64")))


@pytest.mark.parametrize("text", ["0x2::coin", "vector<u8", "u64 u8", "0x2::coin::Coin<>"])
def test_malformed_type_tags(text: str) -> None:
    with pytest.raises(ValueError):
        parse_type_tag(text)


def test_encode_struct_tag() -> None:
    out = encode_type_tag(Serializer(), parse_type_tag("0x2::sui::SUI")).output()
    assert out[0] == 7
    assert out[1:33] == bytes.fromhex(SUI[2:])
    assert out[33:] == b"\x03sui" + b"\x03SUI" + b"\x00"


def test_encode_vector_tag() -> None:
    assert encode_type_tag(Serializer(), parse_type_tag("vector<u8>")).output() == b"\x06\x01"
