"""Pick owned coins that together cover a requested amount."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection

from sui_kit.bcs import normalize_address
from sui_kit.errors import InsufficientBalanceError
from sui_kit.rpc.base import ChainReader
from sui_kit.schemas import CoinObject

__all__ = ["CoinSelector", "SelectionResult"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Coins chosen to cover ``requested``, in the order the ledger listed them."""

    coins: tuple[CoinObject, ...]
    requested: int

    @property
    def total(self) -> int:
        return sum(coin.balance for coin in self.coins)

    @property
    def surplus(self) -> int:
        return self.total - self.requested

    @property
    def object_ids(self) -> list[str]:
        return [coin.coin_object_id for coin in self.coins]


class CoinSelector:
    """Accumulate coins page by page until their sum reaches the target.

    The result is correct (its sum covers the amount) but not necessarily
    minimal: coins are taken in provider order, not sorted by size. Selection
    is a plain read; a chosen coin may still be consumed elsewhere before the
    transaction lands, which then surfaces as a submission failure.
    """

    def __init__(self, reader: ChainReader, page_size: int | None = None) -> None:
        self._reader = reader
        self._page_size = page_size

    async def select(
        self,
        owner: str,
        amount: int,
        coin_type: str,
        *,
        exclude: Collection[str] = (),
    ) -> SelectionResult:
        """Return coins of ``coin_type`` owned by ``owner`` summing to at least ``amount``.

        Args:
            owner: Address whose coins are considered.
            amount: Positive target amount in the coin's base unit.
            coin_type: Fully qualified coin type, e.g. ``0x2::sui::SUI``.
            exclude: Object ids that must not be selected.

        Raises:
            ValueError: If ``owner`` is empty or ``amount`` is not positive.
            InsufficientBalanceError: If all coins together fall short.
        """

        if not owner:
            raise ValueError("owner address must not be empty")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError(f"amount must be a positive integer, got {amount!r}")

        skipped = {normalize_address(object_id) for object_id in exclude}
        selected: list[CoinObject] = []
        running = 0
        cursor: str | None = None
        while True:
            page = await self._reader.get_coins(owner, coin_type, cursor, self._page_size)
            for coin in page.data:
                if normalize_address(coin.coin_object_id) in skipped:
                    continue
                selected.append(coin)
                running += coin.balance
                if running >= amount:
                    LOGGER.debug(
                        "Selected coins",
                        extra={
                            "owner": owner,
                            "coin_type": coin_type,
                            "requested": amount,
                            "coin_count": len(selected),
                            "surplus": running - amount,
                        },
                    )
                    return SelectionResult(coins=tuple(selected), requested=amount)
            if not page.has_next_page or page.next_cursor is None:
                break
            cursor = page.next_cursor

        raise InsufficientBalanceError(owner, coin_type, amount, running)
