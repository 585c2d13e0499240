"""Tests for the fullnode JSON-RPC client using an in-process transport."""

from __future__ import annotations

import base64
import json
from typing import Any, Callable

import httpx
import pytest

from fakes import ZERO_DIGEST, object_id
from sui_kit.errors import InsufficientBalanceError, RpcError, SubmissionRejectedError
from sui_kit.rpc.provider import SuiRpcProvider
from sui_kit.settings import SuiKitSettings

FULLNODE = "http://fullnode.test"
FAUCET = "http://faucet.test/gas"
OWNER = "0x" + "ab" * 32


def _coin(n: int, balance: int) -> dict[str, Any]:
    return {
        "coinType": "0x2::sui::SUI",
        "coinObjectId": object_id(n),
        "version": "7",
        "digest": ZERO_DIGEST,
        "balance": str(balance),
        "previousTransaction": "Tx",
    }


class Node:
    """Route JSON-RPC methods to canned results and record every request."""

    def __init__(self, routes: dict[str, Callable[[list[Any]], Any]]) -> None:
        self.routes = routes
        self.requests: list[dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if request.url.path == "/gas":
            return httpx.Response(201, json={"transferredGasObjects": [], "error": None})
        handler = self.routes.get(body["method"])
        if handler is None:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "Method not found"}},
            )
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": handler(body["params"])})

    def methods(self) -> list[str]:
        return [req.get("method", "faucet") for req in self.requests]


def _provider(handler: Callable[[httpx.Request], httpx.Response], faucet: str | None = FAUCET) -> SuiRpcProvider:
    settings = SuiKitSettings(network="mainnet")
    return SuiRpcProvider(
        FULLNODE,
        faucet,
        settings=settings,
        transport=httpx.MockTransport(handler),
    )


def _pages(coins: list[dict[str, Any]], size: int = 2) -> Callable[[list[Any]], Any]:
    def handler(params: list[Any]) -> dict[str, Any]:
        start = int(params[2]) if params[2] else 0
        end = start + size
        return {
            "data": coins[start:end],
            "nextCursor": str(end) if end < len(coins) else None,
            "hasNextPage": end < len(coins),
        }

    return handler


async def test_get_balance_defaults_to_sui() -> None:
    node = Node(
        {
            "suix_getBalance": lambda params: {
                "coinType": params[1],
                "coinObjectCount": 3,
                "totalBalance": "1500",
                "lockedBalance": {},
            }
        }
    )
    balance = await _provider(node).get_balance(OWNER)

    assert balance.total_balance == 1500
    assert balance.coin_object_count == 3
    assert node.requests[0]["params"] == [OWNER, "0x2::sui::SUI"]


async def test_list_owned_objects_follows_cursor_and_repeats() -> None:
    coins = [_coin(i, 10 * i) for i in range(1, 6)]
    node = Node({"suix_getCoins": _pages(coins)})
    provider = _provider(node)

    first = await provider.list_owned_objects(OWNER)
    second = await provider.list_owned_objects(OWNER)

    assert [c.balance for c in first] == [10, 20, 30, 40, 50]
    assert first == second
    assert node.methods().count("suix_getCoins") == 6
    assert first[0].version == 7


async def test_select_coins_through_provider() -> None:
    node = Node({"suix_getCoins": _pages([_coin(1, 5), _coin(2, 5), _coin(3, 5)])})
    provider = _provider(node)

    selection = await provider.select_coins(OWNER, 8)
    assert selection.total == 10 and selection.object_ids == [object_id(1), object_id(2)]

    with pytest.raises(InsufficientBalanceError):
        await provider.select_coins(OWNER, 16)


async def test_get_objects_skips_missing_entries() -> None:
    node = Node(
        {
            "sui_multiGetObjects": lambda params: [
                {
                    "data": {
                        "objectId": params[0][0],
                        "version": "3",
                        "digest": ZERO_DIGEST,
                        "owner": {"Shared": {"initial_shared_version": 1}},
                        "type": "0x3::sui_system::SuiSystemState",
                    }
                },
                {"error": {"code": "notExists", "object_id": params[0][1]}},
            ]
        }
    )
    objects = await _provider(node).get_objects([object_id(5), object_id(6)])

    assert len(objects) == 1
    assert objects[0].initial_shared_version == 1
    assert await _provider(node).get_objects([]) == []


async def test_reference_gas_price_is_int() -> None:
    node = Node({"suix_getReferenceGasPrice": lambda params: "750"})
    assert await _provider(node).get_reference_gas_price() == 750


async def test_execute_transaction_sends_base64_payload() -> None:
    node = Node(
        {
            "sui_executeTransactionBlock": lambda params: {
                "digest": "D1",
                "effects": {"status": {"status": "success"}},
                "objectChanges": [{"type": "created", "objectId": object_id(9), "objectType": "0x2::coin::Coin"}],
            }
        }
    )
    response = await _provider(node).execute_transaction(b"\x00\x01", ["sig"])

    params = node.requests[0]["params"]
    assert params[0] == base64.b64encode(b"\x00\x01").decode()
    assert params[1] == ["sig"]
    assert params[3] == "WaitForLocalExecution"
    assert response.digest == "D1"
    assert [c.object_id for c in response.created_objects()] == [object_id(9)]


async def test_execution_failure_becomes_submission_rejected() -> None:
    node = Node(
        {
            "sui_executeTransactionBlock": lambda params: {
                "digest": "D2",
                "effects": {"status": {"status": "failure", "error": "InsufficientGas"}},
            }
        }
    )
    with pytest.raises(SubmissionRejectedError) as excinfo:
        await _provider(node).execute_transaction(b"\x00", ["sig"])
    assert excinfo.value.digest == "D2"
    assert "InsufficientGas" in str(excinfo.value)


async def test_node_refusal_becomes_submission_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": body["id"],
                "error": {"code": -32002, "message": "Object version unavailable for consumption"},
            },
        )

    with pytest.raises(SubmissionRejectedError):
        await _provider(handler).execute_transaction(b"\x00", ["sig"])


async def test_read_errors_raise_rpc_error() -> None:
    node = Node({})
    with pytest.raises(RpcError) as excinfo:
        await _provider(node).get_reference_gas_price()
    assert excinfo.value.code == -32601
    assert excinfo.value.method == "suix_getReferenceGasPrice"


async def test_http_status_and_transport_failures() -> None:
    def unavailable(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="busy")

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RpcError, match="HTTP 503"):
        await _provider(unavailable).get_balance(OWNER)
    with pytest.raises(RpcError, match="connection refused"):
        await _provider(unreachable).get_balance(OWNER)


async def test_request_faucet() -> None:
    node = Node({})
    assert await _provider(node).request_faucet(OWNER) is True
    assert node.requests[0] == {"FixedAmountRequest": {"recipient": OWNER}}


async def test_request_faucet_without_endpoint_or_on_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "Too many requests"})

    no_faucet = SuiRpcProvider(
        FULLNODE,
        settings=SuiKitSettings(network="mainnet"),
        transport=httpx.MockTransport(refuse),
    )
    assert await no_faucet.request_faucet(OWNER) is False
    assert await _provider(refuse).request_faucet(OWNER) is False


async def test_dev_inspect_passes_sender_and_kind() -> None:
    node = Node({"sui_devInspectTransactionBlock": lambda params: {"effects": {}, "results": []}})
    result = await _provider(node).dev_inspect(b"\x00\x00\x00", OWNER)

    assert result == {"effects": {}, "results": []}
    assert node.requests[0]["params"][:2] == [OWNER, base64.b64encode(b"\x00\x00\x00").decode()]
