"""Programmable transaction construction."""

from __future__ import annotations

from sui_kit.tx.arguments import GasCoin, Input, NestedResult, Result
from sui_kit.tx.builder import TransactionBuilder

__all__ = ["GasCoin", "Input", "NestedResult", "Result", "TransactionBuilder"]
