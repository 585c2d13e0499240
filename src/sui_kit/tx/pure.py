"""BCS encoding of pure (non-object) transaction arguments."""

from __future__ import annotations

from typing import Final

from sui_kit.bcs import Serializer, normalize_address

__all__ = ["encode_pure", "infer_pure_type"]

_INT_TYPES: Final[frozenset[str]] = frozenset({"u8", "u16", "u32", "u64", "u128", "u256"})
_STRING_TYPES: Final[frozenset[str]] = frozenset(
    {"string", "0x1::string::String", "0x1::ascii::String"}
)


def infer_pure_type(value: object) -> str:
    """Guess the Move type of a Python value when the caller gives none."""

    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "u64"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (bytes, bytearray)):
        return "vector<u8>"
    if isinstance(value, (list, tuple)):
        if not value:
            raise ValueError("cannot infer the element type of an empty vector")
        return f"vector<{infer_pure_type(value[0])}>"
    raise TypeError(f"cannot encode {type(value).__name__} as a pure argument")


def _write(ser: Serializer, value: object, type_: str) -> None:
    type_ = type_.strip()
    if type_ in _INT_TYPES:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{type_} argument must be an int, got {value!r}")
        getattr(ser, type_)(value)
    elif type_ == "bool":
        if not isinstance(value, bool):
            raise TypeError(f"bool argument must be a bool, got {value!r}")
        ser.bool(value)
    elif type_ == "address":
        if not isinstance(value, str):
            raise TypeError(f"address argument must be a str, got {value!r}")
        ser.address(normalize_address(value))
    elif type_ in _STRING_TYPES:
        if not isinstance(value, str):
            raise TypeError(f"string argument must be a str, got {value!r}")
        ser.str(value)
    elif type_ == "vector<u8>" and isinstance(value, (bytes, bytearray)):
        ser.bytes(bytes(value))
    elif type_.startswith("vector<") and type_.endswith(">"):
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"{type_} argument must be a list, got {value!r}")
        inner = type_[len("vector<") : -1]
        ser.uleb128(len(value))
        for item in value:
            _write(ser, item, inner)
    else:
        raise ValueError(f"unsupported pure argument type {type_!r}")


def encode_pure(value: object, type_: str | None = None) -> bytes:
    """Return the BCS bytes of ``value`` typed as ``type_`` (inferred when omitted)."""

    ser = Serializer()
    _write(ser, value, type_ or infer_pure_type(value))
    return ser.output()
