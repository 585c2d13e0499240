"""Protocols describing the ledger access the toolkit depends on."""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from sui_kit.schemas import CoinPage, SuiObject, TransactionResponse

__all__ = ["ChainClient", "ChainReader", "ChainWriter"]


class ChainReader(Protocol):
    """Read side of the ledger used by coin selection and transaction builds."""

    async def get_coins(
        self,
        owner: str,
        coin_type: str,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> CoinPage: ...

    async def get_objects(self, object_ids: Sequence[str]) -> list[SuiObject]: ...

    async def get_reference_gas_price(self) -> int: ...


class ChainWriter(Protocol):
    async def execute_transaction(
        self,
        tx_bytes: bytes,
        signatures: Sequence[str],
        options: Mapping[str, bool] | None = None,
    ) -> TransactionResponse: ...


class ChainClient(ChainReader, ChainWriter, Protocol):
    """Both sides, as needed to build and submit in one flow."""
