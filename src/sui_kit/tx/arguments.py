"""Handles and inputs used inside a programmable transaction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sui_kit.bcs import Serializer, b58decode
from sui_kit.schemas import ObjectRef

__all__ = [
    "Argument",
    "GasCoin",
    "Input",
    "NestedResult",
    "ObjectInput",
    "PureInput",
    "Result",
    "TransactionInput",
    "encode_argument",
    "encode_call_arg",
    "encode_object_ref",
]


@dataclass(frozen=True, slots=True)
class GasCoin:
    """The coin paying for gas, usable as a split source."""


@dataclass(frozen=True, slots=True)
class Input:
    index: int


@dataclass(frozen=True, slots=True)
class NestedResult:
    index: int
    result_index: int


@dataclass(frozen=True, slots=True)
class Result:
    """All outputs of the command at ``index``.

    Indexing yields a :class:`NestedResult` for commands with several
    outputs, for example ``coin = split_result[0]``.
    """

    index: int

    def __getitem__(self, result_index: int) -> NestedResult:
        if result_index < 0:
            raise IndexError("result index must be non-negative")
        return NestedResult(self.index, result_index)


Argument = Union[GasCoin, Input, Result, NestedResult]


@dataclass(frozen=True, slots=True)
class PureInput:
    """BCS-encoded pure value."""

    value: bytes


@dataclass(slots=True)
class ObjectInput:
    """Object input; refs are resolved against the ledger at build time."""

    object_id: str
    ref: ObjectRef | None = None
    initial_shared_version: int | None = None
    mutable: bool = True

    @property
    def resolved(self) -> bool:
        return self.ref is not None or self.initial_shared_version is not None


TransactionInput = Union[PureInput, ObjectInput]


def encode_object_ref(ser: Serializer, ref: ObjectRef) -> Serializer:
    ser.address(ref.object_id)
    ser.u64(ref.version)
    return ser.bytes(b58decode(ref.digest))


def encode_argument(ser: Serializer, arg: Argument) -> Serializer:
    if isinstance(arg, GasCoin):
        return ser.uleb128(0)
    if isinstance(arg, Input):
        return ser.uleb128(1).u16(arg.index)
    if isinstance(arg, Result):
        return ser.uleb128(2).u16(arg.index)
    return ser.uleb128(3).u16(arg.index).u16(arg.result_index)


def encode_call_arg(ser: Serializer, value: TransactionInput) -> Serializer:
    if isinstance(value, PureInput):
        return ser.uleb128(0).bytes(value.value)
    ser.uleb128(1)
    if value.initial_shared_version is not None:
        ser.uleb128(1)
        ser.address(value.object_id)
        ser.u64(value.initial_shared_version)
        return ser.bool(value.mutable)
    if value.ref is None:
        raise ValueError(f"object {value.object_id} has not been resolved")
    ser.uleb128(0)
    return encode_object_ref(ser, value.ref)
