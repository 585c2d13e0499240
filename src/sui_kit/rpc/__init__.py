"""Ledger access: JSON-RPC provider and coin selection."""

from __future__ import annotations

from sui_kit.rpc.base import ChainClient, ChainReader, ChainWriter
from sui_kit.rpc.coin_selector import CoinSelector, SelectionResult
from sui_kit.rpc.provider import SuiRpcProvider

__all__ = ["ChainClient", "ChainReader", "ChainWriter", "CoinSelector", "SelectionResult", "SuiRpcProvider"]
