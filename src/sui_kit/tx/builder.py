"""Programmable transaction builder.

Operations are appended to an ordered command list and may consume the
outputs of earlier commands through :class:`~sui_kit.tx.arguments.Result`
handles. The payload stays mutable until :meth:`TransactionBuilder.build`
serializes it for signing; from then on every append raises
:class:`~sui_kit.errors.PayloadFinalizedError`.

Reference well-formedness (no forward references, no dangling inputs) is
checked once, at finalization, rather than on every append.
"""

from __future__ import annotations

import logging
from typing import Final, Sequence, Union

from sui_kit.bcs import Serializer, is_valid_address, normalize_address
from sui_kit.errors import (
    InvalidCoinSetError,
    InvalidTransactionError,
    LengthMismatchError,
    PayloadFinalizedError,
)
from sui_kit.rpc.base import ChainReader
from sui_kit.rpc.coin_selector import CoinSelector
from sui_kit.schemas import SUI_COIN_TYPE, ObjectRef
from sui_kit.settings import DEFAULT_GAS_BUDGET
from sui_kit.tx.arguments import (
    Argument,
    GasCoin,
    Input,
    NestedResult,
    ObjectInput,
    PureInput,
    Result,
    TransactionInput,
    encode_call_arg,
    encode_object_ref,
)
from sui_kit.tx.commands import (
    Command,
    MakeMoveVec,
    MergeCoins,
    MoveCall,
    Publish,
    SplitCoins,
    TransferObjects,
    command_arguments,
    encode_command,
)
from sui_kit.tx.pure import encode_pure
from sui_kit.type_tag import TypeTag, parse_type_tag

__all__ = ["TransactionBuilder", "ArgumentLike"]

LOGGER = logging.getLogger(__name__)

SUI_SYSTEM_STATE_OBJECT_ID: Final[str] = "0x5"
ADD_STAKE_TARGET: Final[str] = "0x3::sui_system::request_add_stake"
_MAX_U16: Final[int] = 2**16 - 1

ArgumentLike = Union[Argument, str, int, bool, bytes, list, tuple]


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"amount must be a positive integer, got {amount!r}")


def _check_amounts(amounts: Sequence[int | Argument]) -> None:
    for amount in amounts:
        if not isinstance(amount, (Input, Result, NestedResult)):
            _check_amount(amount)  # type: ignore[arg-type]


def _check_recipients(recipients: Sequence[str | Argument]) -> None:
    for recipient in recipients:
        if isinstance(recipient, str):
            normalize_address(recipient)


class TransactionBuilder:
    """Accumulate commands into a Sui programmable transaction."""

    gas = GasCoin()

    def __init__(self) -> None:
        self._inputs: list[TransactionInput] = []
        self._object_inputs: dict[str, int] = {}
        self._commands: list[Command] = []
        self._gas_budget: int | None = None
        self._gas_price: int | None = None
        self._gas_payment: list[ObjectRef] | None = None
        self._expiration_epoch: int | None = None
        self._built: bytes | None = None

    @property
    def finalized(self) -> bool:
        return self._built is not None

    @property
    def inputs(self) -> tuple[TransactionInput, ...]:
        return tuple(self._inputs)

    @property
    def commands(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def _ensure_open(self) -> None:
        if self._built is not None:
            raise PayloadFinalizedError(
                "transaction was already serialized for signing; start a new TransactionBuilder"
            )

    # -- inputs -----------------------------------------------------------

    def _add_input(self, value: TransactionInput) -> Input:
        self._inputs.append(value)
        return Input(len(self._inputs) - 1)

    def pure(self, value: object, type_: str | None = None) -> Input:
        """Add a pure value, BCS-encoded as ``type_`` (inferred when omitted)."""

        self._ensure_open()
        return self._add_input(PureInput(encode_pure(value, type_)))

    def pure_address(self, address: str) -> Input:
        return self.pure(address, "address")

    def object(self, object_id: str) -> Input:
        """Add an object input by id; its reference is resolved at build time.

        Adding the same object twice returns the existing input.
        """

        self._ensure_open()
        key = normalize_address(object_id)
        existing = self._object_inputs.get(key)
        if existing is not None:
            return Input(existing)
        handle = self._add_input(ObjectInput(object_id=key))
        self._object_inputs[key] = handle.index
        return handle

    def object_ref(self, ref: ObjectRef) -> Input:
        """Add an owned or immutable object whose reference is already known."""

        handle = self.object(ref.object_id)
        obj = self._inputs[handle.index]
        assert isinstance(obj, ObjectInput)
        obj.ref = ref
        return handle

    def shared_object(self, object_id: str, initial_shared_version: int, mutable: bool = True) -> Input:
        handle = self.object(object_id)
        obj = self._inputs[handle.index]
        assert isinstance(obj, ObjectInput)
        obj.initial_shared_version = initial_shared_version
        obj.mutable = mutable
        return handle

    def _to_argument(self, value: ArgumentLike) -> Argument:
        """Convert loose call arguments: ``0x`` ids become objects, the rest pure values."""

        if isinstance(value, (GasCoin, Input, Result, NestedResult)):
            return value
        if isinstance(value, str) and value.startswith(("0x", "0X")) and is_valid_address(value):
            return self.object(value)
        return self.pure(value)

    def _coin_key(self, coin: str | Argument) -> object:
        if isinstance(coin, str):
            return normalize_address(coin)
        if isinstance(coin, Input) and 0 <= coin.index < len(self._inputs):
            obj = self._inputs[coin.index]
            if isinstance(obj, ObjectInput):
                return obj.object_id
        return coin

    def _to_coins(self, coins: Sequence[ArgumentLike]) -> list[Argument]:
        """Convert coin ids and handles to arguments, checking every entry first.

        Raises:
            InvalidCoinSetError: If an entry is neither a coin handle nor an
                object id, refers to a pure input, or names a coin twice.
        """

        seen: set[object] = set()
        for coin in coins:
            if isinstance(coin, str):
                if not is_valid_address(coin):
                    raise InvalidCoinSetError(f"{coin!r} is not a coin object id")
            elif isinstance(coin, Input):
                if not 0 <= coin.index < len(self._inputs) or isinstance(
                    self._inputs[coin.index], PureInput
                ):
                    raise InvalidCoinSetError(f"{coin!r} does not refer to an object input")
            elif not isinstance(coin, (GasCoin, Result, NestedResult)):
                raise InvalidCoinSetError(f"{coin!r} is not a coin object id or handle")
            key = self._coin_key(coin)
            if key in seen:
                raise InvalidCoinSetError(f"coin {coin!r} appears more than once")
            seen.add(key)
        return [self.object(coin) if isinstance(coin, str) else coin for coin in coins]

    def _to_address(self, value: str | Argument) -> Argument:
        if isinstance(value, str):
            return self.pure_address(value)
        return value

    # -- primitive commands ------------------------------------------------

    def _add_command(self, command: Command) -> Result:
        self._ensure_open()
        self._commands.append(command)
        return Result(len(self._commands) - 1)

    def split_coins(self, coin: ArgumentLike, amounts: Sequence[int | Argument]) -> list[NestedResult]:
        """Split ``coin`` into one new coin per amount, returned in the same order."""

        self._ensure_open()
        if not amounts:
            raise ValueError("split_coins requires at least one amount")
        _check_amounts(amounts)
        [coin_arg] = self._to_coins([coin])
        amount_args = [
            self.pure(amount, "u64") if isinstance(amount, int) else amount for amount in amounts
        ]
        result = self._add_command(SplitCoins(coin_arg, tuple(amount_args)))
        return [result[i] for i in range(len(amount_args))]

    def merge_coins(self, destination: ArgumentLike, sources: Sequence[ArgumentLike]) -> Result:
        self._ensure_open()
        if not sources:
            raise InvalidCoinSetError("merge_coins requires at least one source coin")
        merged, *rest = self._to_coins([destination, *sources])
        return self._add_command(MergeCoins(merged, tuple(rest)))

    def transfer_objects(self, objects: Sequence[ArgumentLike], recipient: str | Argument) -> Result:
        self._ensure_open()
        if not objects:
            raise ValueError("transfer_objects requires at least one object")
        return self._add_command(
            TransferObjects(
                tuple(self._to_argument(obj) for obj in objects),
                self._to_address(recipient),
            )
        )

    def move_call(
        self,
        target: str,
        arguments: Sequence[ArgumentLike] = (),
        type_arguments: Sequence[str | TypeTag] = (),
    ) -> Result:
        """Call ``package::module::function``.

        Example:
            >>> tx = TransactionBuilder()
            >>> _ = tx.move_call("0x2::coin::zero", type_arguments=["0x2::sui::SUI"])
        """

        self._ensure_open()
        parts = target.split("::")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"move call target must be 'package::module::function', got {target!r}")
        package, module, function = parts
        return self._add_command(
            MoveCall(
                package=normalize_address(package),
                module=module,
                function=function,
                type_arguments=tuple(
                    parse_type_tag(t) if isinstance(t, str) else t for t in type_arguments
                ),
                arguments=tuple(self._to_argument(arg) for arg in arguments),
            )
        )

    def publish(self, modules: Sequence[bytes], dependencies: Sequence[str]) -> Result:
        """Publish compiled modules; the result is the package's UpgradeCap."""

        self._ensure_open()
        if not modules:
            raise ValueError("publish requires at least one compiled module")
        return self._add_command(
            Publish(tuple(modules), tuple(normalize_address(dep) for dep in dependencies))
        )

    def make_move_vec(self, elements: Sequence[ArgumentLike], type_: str | None = None) -> Result:
        self._ensure_open()
        return self._add_command(
            MakeMoveVec(
                parse_type_tag(type_) if type_ else None,
                tuple(self._to_argument(element) for element in elements),
            )
        )

    # -- composite operations ----------------------------------------------

    def transfer_sui(self, recipient: str, amount: int) -> Result:
        """Split ``amount`` off the gas coin and send it to ``recipient``."""

        _check_amount(amount)
        _check_recipients([recipient])
        [coin] = self.split_coins(self.gas, [amount])
        return self.transfer_objects([coin], recipient)

    def transfer_sui_to_many(self, recipients: Sequence[str], amounts: Sequence[int]) -> list[Result]:
        """Send ``amounts[i]`` to ``recipients[i]`` out of the gas coin.

        Every amount and recipient is checked before anything is appended.

        Raises:
            LengthMismatchError: If the two sequences differ in length.
        """

        self._ensure_open()
        if len(recipients) != len(amounts):
            raise LengthMismatchError("recipients", len(recipients), "amounts", len(amounts))
        if not recipients:
            raise ValueError("transfer_sui_to_many requires at least one recipient")
        _check_amounts(amounts)
        _check_recipients(recipients)
        coins = self.split_coins(self.gas, list(amounts))
        return [
            self.transfer_objects([coin], recipient)
            for coin, recipient in zip(coins, recipients)
        ]

    def _merge_into_first(self, coins: Sequence[str | Argument], operation: str) -> Argument:
        if not coins:
            raise InvalidCoinSetError(f"{operation} requires at least one coin")
        coin_args = self._to_coins(coins)
        merged = coin_args[0]
        if len(coin_args) > 1:
            self.merge_coins(merged, coin_args[1:])
        return merged

    def take_amount_from_coins(
        self, coins: Sequence[str | Argument], amount: int
    ) -> tuple[NestedResult, Argument]:
        """Merge ``coins`` into the first one and split ``amount`` off it.

        Returns ``(send_coin, merged_coin)``: a new coin worth exactly
        ``amount`` and the first coin, which keeps the remainder.

        Raises:
            InvalidCoinSetError: If ``coins`` is empty, names a coin twice or
                holds something other than coin ids and handles.
        """

        self._ensure_open()
        if not coins:
            raise InvalidCoinSetError("take_amount_from_coins requires at least one coin")
        _check_amount(amount)
        merged = self._merge_into_first(coins, "take_amount_from_coins")
        [send] = self.split_coins(merged, [amount])
        return send, merged

    def transfer_coin(self, coins: Sequence[str | Argument], sender: str, recipient: str, amount: int) -> None:
        """Send ``amount`` out of ``coins`` to ``recipient``, returning change to ``sender``."""

        _check_recipients([sender, recipient])
        send, merged = self.take_amount_from_coins(coins, amount)
        self.transfer_objects([send], recipient)
        self.transfer_objects([merged], sender)

    def transfer_coin_to_many(
        self,
        coins: Sequence[str | Argument],
        sender: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
    ) -> None:
        self._ensure_open()
        if len(recipients) != len(amounts):
            raise LengthMismatchError("recipients", len(recipients), "amounts", len(amounts))
        if not coins:
            raise InvalidCoinSetError("transfer_coin_to_many requires at least one coin")
        if not recipients:
            raise ValueError("transfer_coin_to_many requires at least one recipient")
        _check_amounts(amounts)
        _check_recipients([sender, *recipients])
        merged = self._merge_into_first(coins, "transfer_coin_to_many")
        pieces = self.split_coins(merged, list(amounts))
        for piece, recipient in zip(pieces, recipients):
            self.transfer_objects([piece], recipient)
        self.transfer_objects([merged], sender)

    def stake_sui(self, amount: int, validator: str) -> Result:
        """Stake ``amount`` MIST from the gas coin with ``validator``."""

        _check_amount(amount)
        _check_recipients([validator])
        [stake] = self.split_coins(self.gas, [amount])
        system_state = self.shared_object(SUI_SYSTEM_STATE_OBJECT_ID, 1, mutable=True)
        return self.move_call(
            ADD_STAKE_TARGET,
            [system_state, stake, self.pure_address(validator)],
        )

    # -- gas ---------------------------------------------------------------

    def set_gas_budget(self, budget: int) -> None:
        self._ensure_open()
        _check_amount(budget)
        self._gas_budget = budget

    def set_gas_price(self, price: int) -> None:
        self._ensure_open()
        _check_amount(price)
        self._gas_price = price

    def set_gas_payment(self, payment: Sequence[ObjectRef]) -> None:
        self._ensure_open()
        self._gas_payment = list(payment)

    def set_expiration(self, epoch: int | None) -> None:
        self._ensure_open()
        self._expiration_epoch = epoch

    # -- finalization ------------------------------------------------------

    def validate(self) -> None:
        """Check every command only references existing inputs and earlier results.

        Raises:
            InvalidTransactionError: On a dangling or forward reference.
        """

        if len(self._inputs) > _MAX_U16 or len(self._commands) > _MAX_U16:
            raise InvalidTransactionError("too many inputs or commands for one transaction")
        for position, command in enumerate(self._commands):
            for arg in command_arguments(command):
                if isinstance(arg, Input) and not 0 <= arg.index < len(self._inputs):
                    raise InvalidTransactionError(
                        f"command {position} references missing input {arg.index}"
                    )
                if isinstance(arg, (Result, NestedResult)) and not 0 <= arg.index < position:
                    raise InvalidTransactionError(
                        f"command {position} references result of command {arg.index}, "
                        "which does not precede it"
                    )
                if isinstance(arg, NestedResult):
                    produced = self._commands[arg.index]
                    if isinstance(produced, SplitCoins) and arg.result_index >= len(produced.amounts):
                        raise InvalidTransactionError(
                            f"command {position} references output {arg.result_index} of a "
                            f"split producing {len(produced.amounts)} coins"
                        )

    def _encode_kind(self, ser: Serializer) -> Serializer:
        ser.uleb128(0)  # ProgrammableTransaction
        ser.sequence(self._inputs, encode_call_arg)
        return ser.sequence(self._commands, encode_command)

    def build_kind(self) -> bytes:
        """Serialize only the ``TransactionKind``, for dev-inspect.

        Object inputs must already be resolved. Does not finalize the builder.
        """

        self.validate()
        return self._encode_kind(Serializer()).output()

    async def _resolve_objects(self, reader: ChainReader) -> None:
        pending = [
            obj for obj in self._inputs if isinstance(obj, ObjectInput) and not obj.resolved
        ]
        if not pending:
            return
        fetched = await reader.get_objects([obj.object_id for obj in pending])
        by_id = {normalize_address(obj.object_id): obj for obj in fetched}
        for obj in pending:
            data = by_id.get(obj.object_id)
            if data is None:
                raise InvalidTransactionError(f"object {obj.object_id} was not found on chain")
            shared_version = data.initial_shared_version
            if shared_version is not None:
                obj.initial_shared_version = shared_version
            else:
                obj.ref = data.ref

    async def prepare(self, reader: ChainReader) -> None:
        """Resolve object inputs so :meth:`build_kind` can serialize them."""

        await self._resolve_objects(reader)

    async def build(
        self,
        reader: ChainReader,
        sender: str,
        *,
        default_gas_budget: int = DEFAULT_GAS_BUDGET,
    ) -> bytes:
        """Resolve gas and objects, serialize ``TransactionData`` and finalize.

        Building twice returns the same bytes.
        """

        if self._built is not None:
            return self._built
        self.validate()
        owner = normalize_address(sender)
        await self._resolve_objects(reader)

        budget = self._gas_budget or default_gas_budget
        price = self._gas_price or await reader.get_reference_gas_price()
        payment = self._gas_payment
        if payment is None:
            selection = await CoinSelector(reader).select(
                owner, budget, SUI_COIN_TYPE, exclude=list(self._object_inputs)
            )
            payment = [coin.ref for coin in selection.coins]

        ser = Serializer()
        ser.uleb128(0)  # TransactionData::V1
        self._encode_kind(ser)
        ser.address(owner)
        ser.sequence(payment, encode_object_ref)
        ser.address(owner)
        ser.u64(price)
        ser.u64(budget)
        if self._expiration_epoch is None:
            ser.uleb128(0)
        else:
            ser.uleb128(1).u64(self._expiration_epoch)

        self._built = ser.output()
        LOGGER.debug(
            "Built transaction",
            extra={
                "sender": owner,
                "inputs": len(self._inputs),
                "commands": len(self._commands),
                "gas_budget": budget,
                "gas_price": price,
                "gas_coins": len(payment),
            },
        )
        return self._built
