"""Tagged-variant commands of a programmable transaction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from sui_kit.bcs import Serializer
from sui_kit.tx.arguments import Argument, encode_argument
from sui_kit.type_tag import TypeTag, encode_type_tag

__all__ = [
    "Command",
    "MakeMoveVec",
    "MergeCoins",
    "MoveCall",
    "Publish",
    "SplitCoins",
    "TransferObjects",
    "command_arguments",
    "encode_command",
]


@dataclass(frozen=True, slots=True)
class MoveCall:
    package: str
    module: str
    function: str
    type_arguments: tuple[TypeTag, ...] = ()
    arguments: tuple[Argument, ...] = ()


@dataclass(frozen=True, slots=True)
class TransferObjects:
    objects: tuple[Argument, ...]
    recipient: Argument


@dataclass(frozen=True, slots=True)
class SplitCoins:
    coin: Argument
    amounts: tuple[Argument, ...]


@dataclass(frozen=True, slots=True)
class MergeCoins:
    destination: Argument
    sources: tuple[Argument, ...]


@dataclass(frozen=True, slots=True)
class Publish:
    modules: tuple[bytes, ...]
    dependencies: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class MakeMoveVec:
    type_tag: TypeTag | None
    elements: tuple[Argument, ...]


Command = Union[MoveCall, TransferObjects, SplitCoins, MergeCoins, Publish, MakeMoveVec]


def command_arguments(command: Command) -> tuple[Argument, ...]:
    """Return every argument ``command`` references, in encoding order."""

    if isinstance(command, MoveCall):
        return command.arguments
    if isinstance(command, TransferObjects):
        return (*command.objects, command.recipient)
    if isinstance(command, SplitCoins):
        return (command.coin, *command.amounts)
    if isinstance(command, MergeCoins):
        return (command.destination, *command.sources)
    if isinstance(command, MakeMoveVec):
        return command.elements
    return ()


def encode_command(ser: Serializer, command: Command) -> Serializer:
    if isinstance(command, MoveCall):
        ser.uleb128(0)
        ser.address(command.package)
        ser.str(command.module)
        ser.str(command.function)
        ser.sequence(command.type_arguments, encode_type_tag)
        return ser.sequence(command.arguments, encode_argument)
    if isinstance(command, TransferObjects):
        ser.uleb128(1)
        ser.sequence(command.objects, encode_argument)
        return encode_argument(ser, command.recipient)
    if isinstance(command, SplitCoins):
        ser.uleb128(2)
        encode_argument(ser, command.coin)
        return ser.sequence(command.amounts, encode_argument)
    if isinstance(command, MergeCoins):
        ser.uleb128(3)
        encode_argument(ser, command.destination)
        return ser.sequence(command.sources, encode_argument)
    if isinstance(command, Publish):
        ser.uleb128(4)
        ser.sequence(command.modules, Serializer.bytes)
        return ser.sequence(command.dependencies, Serializer.address)
    ser.uleb128(5)
    ser.option(command.type_tag, encode_type_tag)
    return ser.sequence(command.elements, encode_argument)
