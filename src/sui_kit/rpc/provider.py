"""Async JSON-RPC client for a Sui fullnode."""

from __future__ import annotations

import base64
import itertools
import logging
from typing import Any, Mapping, Sequence

import httpx

from sui_kit.errors import RpcError, SubmissionRejectedError
from sui_kit.rpc.coin_selector import CoinSelector, SelectionResult
from sui_kit.schemas import (
    SUI_COIN_TYPE,
    Balance,
    CoinObject,
    CoinPage,
    SuiObject,
    TransactionResponse,
)
from sui_kit.settings import SuiKitSettings, get_settings

__all__ = ["DEFAULT_RESPONSE_OPTIONS", "SuiRpcProvider"]

LOGGER = logging.getLogger(__name__)

DEFAULT_RESPONSE_OPTIONS: Mapping[str, bool] = {
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
}


class SuiRpcProvider:
    """Thin pass-through over the fullnode JSON-RPC API.

    Reads never mutate anything: repeating them without an intervening
    submission returns the same answers. Errors are raised, never retried.
    """

    def __init__(
        self,
        fullnode_url: str | None = None,
        faucet_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        settings: SuiKitSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings_obj = settings or get_settings()
        self.fullnode_url = fullnode_url or settings_obj.effective_fullnode_url
        self.faucet_url = faucet_url or settings_obj.effective_faucet_url
        self._timeout = timeout_seconds or settings_obj.request_timeout
        self._transport = transport
        self._ids = itertools.count(1)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def call(self, method: str, params: Sequence[Any]) -> Any:
        """Issue one JSON-RPC request and return its ``result``.

        Raises:
            RpcError: On transport failure, HTTP error status or a JSON-RPC error.
        """

        request = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            async with self._client() as client:
                response = await client.post(self.fullnode_url, json=request)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "Fullnode HTTP error",
                extra={"method": method, "status_code": exc.response.status_code},
            )
            raise RpcError(method, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "Fullnode transport error",
                extra={"method": method, "url": self.fullnode_url},
                exc_info=exc,
            )
            raise RpcError(method, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise RpcError(method, "response is not valid JSON") from exc

        if not isinstance(payload, dict):
            raise RpcError(method, "response is not a JSON object")
        error = payload.get("error")
        if error is not None:
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise RpcError(method, message, code=code)
        if "result" not in payload:
            raise RpcError(method, "response carries neither result nor error")
        return payload["result"]

    # -- reads -------------------------------------------------------------

    async def get_balance(self, owner: str, coin_type: str | None = None) -> Balance:
        result = await self.call("suix_getBalance", [owner, coin_type or SUI_COIN_TYPE])
        return Balance.model_validate(result)

    async def get_coins(
        self,
        owner: str,
        coin_type: str,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> CoinPage:
        result = await self.call("suix_getCoins", [owner, coin_type, cursor, limit])
        return CoinPage.model_validate(result)

    async def list_owned_objects(self, owner: str, coin_type: str | None = None) -> list[CoinObject]:
        """Return every coin of ``coin_type`` owned by ``owner``, in ledger order."""

        coins: list[CoinObject] = []
        cursor: str | None = None
        while True:
            page = await self.get_coins(owner, coin_type or SUI_COIN_TYPE, cursor)
            coins.extend(page.data)
            if not page.has_next_page or page.next_cursor is None:
                return coins
            cursor = page.next_cursor

    async def select_coins(self, owner: str, amount: int, coin_type: str | None = None) -> SelectionResult:
        return await CoinSelector(self).select(owner, amount, coin_type or SUI_COIN_TYPE)

    async def get_objects(self, object_ids: Sequence[str]) -> list[SuiObject]:
        if not object_ids:
            return []
        result = await self.call(
            "sui_multiGetObjects",
            [list(object_ids), {"showOwner": True, "showType": True}],
        )
        objects: list[SuiObject] = []
        for entry in result or []:
            data = entry.get("data") if isinstance(entry, dict) else None
            if data is None:
                LOGGER.warning(
                    "Object lookup failed",
                    extra={"error": entry.get("error") if isinstance(entry, dict) else entry},
                )
                continue
            objects.append(SuiObject.model_validate(data))
        return objects

    async def get_reference_gas_price(self) -> int:
        return int(await self.call("suix_getReferenceGasPrice", []))

    # -- writes ------------------------------------------------------------

    async def execute_transaction(
        self,
        tx_bytes: bytes,
        signatures: Sequence[str],
        options: Mapping[str, bool] | None = None,
    ) -> TransactionResponse:
        """Submit signed transaction bytes and wait for local execution.

        Raises:
            SubmissionRejectedError: If the fullnode refuses the transaction
                (for example a stale object reference) or it executes with a
                failure status.
        """

        params = [
            base64.b64encode(tx_bytes).decode("ascii"),
            list(signatures),
            dict(options or DEFAULT_RESPONSE_OPTIONS),
            "WaitForLocalExecution",
        ]
        try:
            result = await self.call("sui_executeTransactionBlock", params)
        except RpcError as exc:
            if exc.code is None:
                raise
            raise SubmissionRejectedError(f"transaction rejected: {exc}") from exc

        response = TransactionResponse.model_validate(result)
        status = response.status
        if status is not None and status.status == "failure":
            LOGGER.warning(
                "Transaction execution failed",
                extra={"digest": response.digest, "error": status.error},
            )
            raise SubmissionRejectedError(
                f"transaction {response.digest} failed: {status.error or 'unknown error'}",
                digest=response.digest,
            )
        LOGGER.info("Transaction executed", extra={"digest": response.digest})
        return response

    async def dev_inspect(self, kind_bytes: bytes, sender: str) -> dict[str, Any]:
        """Simulate a ``TransactionKind`` without submitting it or paying gas."""

        result = await self.call(
            "sui_devInspectTransactionBlock",
            [sender, base64.b64encode(kind_bytes).decode("ascii"), None, None],
        )
        return dict(result)

    async def request_faucet(self, address: str) -> bool:
        """Ask the network faucet for gas; returns ``True`` when the request succeeded."""

        if not self.faucet_url:
            LOGGER.warning("No faucet configured for this network", extra={"address": address})
            return False
        body = {"FixedAmountRequest": {"recipient": address}}
        try:
            async with self._client() as client:
                response = await client.post(self.faucet_url, json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "Faucet request failed",
                extra={"address": address, "url": self.faucet_url},
                exc_info=exc,
            )
            return False
        except ValueError as exc:
            LOGGER.warning("Faucet response parsing error", extra={"address": address}, exc_info=exc)
            return False
        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            LOGGER.warning("Faucet refused request", extra={"address": address, "error": error})
            return False
        return True
