"""Tests for the BCS writer and address helpers."""

from __future__ import annotations

import pytest

from sui_kit.bcs import Serializer, b58decode, is_valid_address, normalize_address


def test_uleb128_multi_byte_lengths() -> None:
    assert Serializer().uleb128(0).output() == b"\x00"
    assert Serializer().uleb128(127).output() == b"\x7f"
    assert Serializer().uleb128(128).output() == b"\x80\x01"
    assert Serializer().uleb128(300).output() == b"\xac\x02"


def test_integers_are_little_endian() -> None:
    out = Serializer().u16(0x0102).u64(1).output()
    assert out == b"\x02\x01" + b"\x01" + b"\x00" * 7


def test_integer_overflow_is_rejected() -> None:
    with pytest.raises(ValueError):
        Serializer().u8(256)
    with pytest.raises(ValueError):
        Serializer().u64(-1)


def test_vectors_strings_and_options() -> None:
    ser = Serializer()
    ser.str("sui").sequence([1, 2], Serializer.u8).option(None, Serializer.u8).option(7, Serializer.u8)
    assert ser.output() == b"\x03sui" + b"\x02\x01\x02" + b"\x00" + b"\x01\x07"


def test_address_is_left_padded_to_32_bytes() -> None:
    out = Serializer().address("0x2").output()
    assert len(out) == 32
    assert out[-1] == 2 and not any(out[:-1])


def test_normalize_address() -> None:
    assert normalize_address("0x2") == "0x" + "0" * 63 + "2"
    assert normalize_address("ABC") == "0x" + "0" * 61 + "abc"
    assert is_valid_address("0x5")
    assert not is_valid_address("0xZZ")
    with pytest.raises(ValueError):
        normalize_address("not-an-address")


def test_b58decode_digest_forms() -> None:
    assert b58decode("1" * 32) == bytes(32)
    assert b58decode("2") == b"\x01"
    assert b58decode("z") == bytes([57])
    assert b58decode("21") == bytes([58])
    with pytest.raises(ValueError):
        b58decode("0OIl")
