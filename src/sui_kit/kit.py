"""High-level facade: resolve identity, build, sign and submit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence, Union

from sui_kit.account.derivation import DerivePathParams
from sui_kit.account.keypair import Ed25519Keypair
from sui_kit.account.manager import AccountManager
from sui_kit.multisig import MultiSigPolicy, SignaturePart, combine
from sui_kit.publisher import PackagePublisher, PublishOptions, PublishResult
from sui_kit.rpc.provider import SuiRpcProvider
from sui_kit.schemas import SUI_COIN_TYPE, Balance, TransactionResponse
from sui_kit.settings import SuiKitSettings, get_settings
from sui_kit.tx.builder import ArgumentLike, TransactionBuilder
from sui_kit.type_tag import parse_type_tag

__all__ = ["SuiKit", "TransactionLike"]

LOGGER = logging.getLogger(__name__)

TransactionLike = Union[bytes, TransactionBuilder]


class SuiKit:
    """Aggregate the account manager, RPC provider and package publisher.

    Identities come from ``mnemonics`` when given, else from ``secret_key``;
    with neither a fresh mnemonic is generated. Every operation accepts an
    optional :class:`DerivePathParams`; when omitted the current account is
    used, which only :meth:`switch_account` changes.

    Transactions may be passed as raw ``TransactionData`` bytes or as a
    :class:`TransactionBuilder`, which is built for the signing account.
    """

    def __init__(
        self,
        mnemonics: str | None = None,
        secret_key: str | None = None,
        *,
        fullnode_url: str | None = None,
        faucet_url: str | None = None,
        sui_bin: str | None = None,
        settings: SuiKitSettings | None = None,
        provider: SuiRpcProvider | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.account_manager = AccountManager(
            mnemonics=mnemonics or self.settings.mnemonics,
            secret_key=secret_key or self.settings.secret_key,
        )
        self.rpc_provider = provider or SuiRpcProvider(
            fullnode_url, faucet_url, settings=self.settings
        )
        self.package_publisher = PackagePublisher(
            self.rpc_provider,
            sui_bin or self.settings.sui_bin,
            default_gas_budget=self.settings.gas_budget,
        )

    # -- identity ------------------------------------------------------------

    def get_keypair(self, derive_path: DerivePathParams | None = None) -> Ed25519Keypair:
        return self.account_manager.get_keypair(derive_path)

    def get_address(self, derive_path: DerivePathParams | None = None) -> str:
        return self.account_manager.get_address(derive_path)

    def current_address(self) -> str:
        return self.account_manager.current_address

    def switch_account(self, derive_path: DerivePathParams) -> None:
        self.account_manager.switch_account(derive_path)

    # -- reads ---------------------------------------------------------------

    async def request_faucet(self, derive_path: DerivePathParams | None = None) -> bool:
        return await self.rpc_provider.request_faucet(self.get_address(derive_path))

    async def get_balance(
        self, coin_type: str | None = None, derive_path: DerivePathParams | None = None
    ) -> Balance:
        return await self.rpc_provider.get_balance(self.get_address(derive_path), coin_type)

    # -- signing -------------------------------------------------------------

    async def _to_bytes(self, tx: TransactionLike, sender: str) -> bytes:
        if isinstance(tx, TransactionBuilder):
            return await tx.build(
                self.rpc_provider, sender, default_gas_budget=self.settings.gas_budget
            )
        return bytes(tx)

    async def sign_txn(
        self, tx: TransactionLike, derive_path: DerivePathParams | None = None
    ) -> tuple[bytes, str]:
        """Return ``(tx_bytes, serialized_signature)`` without submitting."""

        keypair = self.get_keypair(derive_path)
        tx_bytes = await self._to_bytes(tx, keypair.address)
        return tx_bytes, keypair.sign_transaction(tx_bytes)

    async def sign_and_send_txn(
        self, tx: TransactionLike, derive_path: DerivePathParams | None = None
    ) -> TransactionResponse:
        tx_bytes, signature = await self.sign_txn(tx, derive_path)
        return await self.rpc_provider.execute_transaction(tx_bytes, [signature])

    async def build_multisig_txn(self, tx: TransactionLike, policy: MultiSigPolicy) -> bytes:
        """Serialize ``tx`` with the multisig address as sender, ready for members to sign."""

        return await self._to_bytes(tx, policy.address)

    async def send_multisig_txn(
        self,
        tx_bytes: bytes,
        policy: MultiSigPolicy,
        signatures: Sequence[SignaturePart | str],
    ) -> TransactionResponse:
        """Combine member signatures over ``tx_bytes`` and submit them as one."""

        parts = [
            SignaturePart.from_serialized(sig) if isinstance(sig, str) else sig
            for sig in signatures
        ]
        authorization = combine(policy, parts)
        LOGGER.info(
            "Submitting multisig transaction",
            extra={
                "multisig_address": policy.address,
                "weight": authorization.weight,
                "threshold": policy.threshold,
            },
        )
        return await self.rpc_provider.execute_transaction(tx_bytes, [authorization.serialize()])

    # -- operations ----------------------------------------------------------

    async def publish_package(
        self,
        package_path: str | Path,
        options: PublishOptions | None = None,
        derive_path: DerivePathParams | None = None,
    ) -> PublishResult:
        """Build the Move package at ``package_path`` in a temporary directory and publish it."""

        return await self.package_publisher.publish(
            package_path, self.get_keypair(derive_path), options
        )

    async def transfer_sui(
        self, recipient: str, amount: int, derive_path: DerivePathParams | None = None
    ) -> TransactionResponse:
        tx = TransactionBuilder()
        tx.transfer_sui(recipient, amount)
        return await self.sign_and_send_txn(tx, derive_path)

    async def transfer_sui_to_many(
        self,
        recipients: Sequence[str],
        amounts: Sequence[int],
        derive_path: DerivePathParams | None = None,
    ) -> TransactionResponse:
        """Send ``amounts[i]`` to ``recipients[i]``; the two lists must match in length."""

        tx = TransactionBuilder()
        tx.transfer_sui_to_many(recipients, amounts)
        return await self.sign_and_send_txn(tx, derive_path)

    async def transfer_coin(
        self,
        recipient: str,
        amount: int,
        coin_type: str,
        derive_path: DerivePathParams | None = None,
    ) -> TransactionResponse:
        """Send ``amount`` of a non-SUI ``coin_type``, merging owned coins as needed.

        Raises:
            ValueError: If ``coin_type`` is SUI; use :meth:`transfer_sui`, which pays
                out of the gas coin.
        """

        if parse_type_tag(coin_type) == parse_type_tag(SUI_COIN_TYPE):
            raise ValueError("transfer_coin is for non-SUI coins; use transfer_sui for SUI")
        owner = self.get_address(derive_path)
        selection = await self.rpc_provider.select_coins(owner, amount, coin_type)
        tx = TransactionBuilder()
        tx.transfer_coin(selection.object_ids, owner, recipient, amount)
        return await self.sign_and_send_txn(tx, derive_path)

    async def stake_sui(
        self, amount: int, validator: str, derive_path: DerivePathParams | None = None
    ) -> TransactionResponse:
        tx = TransactionBuilder()
        tx.stake_sui(amount, validator)
        return await self.sign_and_send_txn(tx, derive_path)

    async def move_call(
        self,
        target: str,
        arguments: Sequence[ArgumentLike] = (),
        type_arguments: Sequence[str] = (),
        derive_path: DerivePathParams | None = None,
    ) -> TransactionResponse:
        tx = TransactionBuilder()
        tx.move_call(target, arguments, type_arguments)
        return await self.sign_and_send_txn(tx, derive_path)

    async def inspect_txn(
        self, tx: TransactionLike, derive_path: DerivePathParams | None = None
    ) -> dict[str, Any]:
        """Dry-execute ``tx`` against current chain state without submitting or paying gas.

        Raw bytes must be a serialized ``TransactionKind``.
        """

        if isinstance(tx, TransactionBuilder):
            await tx.prepare(self.rpc_provider)
            kind_bytes = tx.build_kind()
        else:
            kind_bytes = bytes(tx)
        return await self.rpc_provider.dev_inspect(kind_bytes, self.get_address(derive_path))
