"""Sui Kit - build, sign and publish Sui transactions."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "AccountManager",
    "DerivePathParams",
    "Ed25519Keypair",
    "MultiSigPolicy",
    "PackagePublisher",
    "SuiKit",
    "SuiRpcProvider",
    "TransactionBuilder",
    "combine",
]

if TYPE_CHECKING:
    from .account import AccountManager, DerivePathParams, Ed25519Keypair
    from .kit import SuiKit
    from .multisig import MultiSigPolicy, combine
    from .publisher import PackagePublisher
    from .rpc import SuiRpcProvider
    from .tx import TransactionBuilder


def __getattr__(name: str) -> Any:
    """Lazily import submodules so ``import sui_kit`` stays cheap."""

    module_map = {
        "AccountManager": "account",
        "DerivePathParams": "account",
        "Ed25519Keypair": "account",
        "MultiSigPolicy": "multisig",
        "PackagePublisher": "publisher",
        "SuiKit": "kit",
        "SuiRpcProvider": "rpc",
        "TransactionBuilder": "tx",
        "combine": "multisig",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
