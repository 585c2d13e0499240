"""Exception taxonomy raised by :mod:`sui_kit`.

Every error surfaces directly to the caller. Nothing in the toolkit retries a
failed step: resubmitting with stale object references risks acting twice on
the same funds, so only the caller, after re-reading fresh ledger state, may
decide to try again.
"""

from __future__ import annotations

__all__ = [
    "BuildFailedError",
    "InsufficientBalanceError",
    "InvalidCoinSetError",
    "InvalidTransactionError",
    "LengthMismatchError",
    "PackageNotFoundError",
    "PayloadFinalizedError",
    "PublishResultMalformedError",
    "RpcError",
    "SubmissionRejectedError",
    "SuiKitError",
    "ThresholdNotMetError",
    "UnknownSignerError",
]


class SuiKitError(Exception):
    """Base class for all toolkit errors."""


class InsufficientBalanceError(SuiKitError):
    """Raised when the owner cannot cover the requested amount."""

    def __init__(self, owner: str, coin_type: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient balance of {coin_type} for {owner}: "
            f"requested {requested}, available {available}"
        )
        self.owner = owner
        self.coin_type = coin_type
        self.requested = requested
        self.available = available


class InvalidCoinSetError(SuiKitError):
    """Raised when a coin operation receives an unusable coin list."""


class LengthMismatchError(SuiKitError):
    """Raised when paired sequences differ in length."""

    def __init__(self, left_name: str, left_len: int, right_name: str, right_len: int) -> None:
        super().__init__(
            f"{left_name} and {right_name} must have the same length "
            f"(got {left_len} and {right_len})"
        )
        self.left_len = left_len
        self.right_len = right_len


class PayloadFinalizedError(SuiKitError):
    """Raised when appending to a transaction that was already serialized for signing."""


class InvalidTransactionError(SuiKitError):
    """Raised when a transaction references inputs or results that do not exist."""


class UnknownSignerError(SuiKitError):
    """Raised when a signature comes from a key outside the multisig policy."""

    def __init__(self, public_key: bytes) -> None:
        super().__init__(
            f"Public key {public_key.hex()} is not part of the multisig policy"
        )
        self.public_key = public_key


class ThresholdNotMetError(SuiKitError):
    """Raised when the supplied signatures do not carry enough weight."""

    def __init__(self, weight: int, threshold: int) -> None:
        super().__init__(
            f"Combined signature weight {weight} does not meet threshold {threshold}"
        )
        self.weight = weight
        self.threshold = threshold


class PackageNotFoundError(SuiKitError):
    """Raised when the Move package path is missing or not a directory."""


class BuildFailedError(SuiKitError):
    """Raised when ``sui move build`` fails or prints unusable output."""

    def __init__(self, message: str, *, returncode: int | None = None, diagnostics: str = "") -> None:
        detail = f"{message}"
        if returncode is not None:
            detail += f" (exit code {returncode})"
        if diagnostics:
            detail += f": {diagnostics.strip()}"
        super().__init__(detail)
        self.returncode = returncode
        self.diagnostics = diagnostics


class PublishResultMalformedError(SuiKitError):
    """Raised when a publish transaction's effects carry no published package."""


class SubmissionRejectedError(SuiKitError):
    """Raised when the ledger refuses or fails to execute a transaction."""

    def __init__(self, message: str, *, digest: str | None = None) -> None:
        super().__init__(message)
        self.digest = digest


class RpcError(SuiKitError):
    """Raised when a JSON-RPC request fails at the transport or protocol level."""

    def __init__(self, method: str, message: str, *, code: int | None = None) -> None:
        super().__init__(f"{method} failed: {message}")
        self.method = method
        self.code = code
