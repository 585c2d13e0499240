"""Session-scoped signing identities derived from a mnemonic or a secret key."""

from __future__ import annotations

import logging

from sui_kit.account.derivation import (
    DerivePathParams,
    derive_ed25519_key,
    generate_mnemonic,
    mnemonic_to_seed,
)
from sui_kit.account.keypair import Ed25519Keypair

__all__ = ["AccountManager"]

LOGGER = logging.getLogger(__name__)


class AccountManager:
    """Resolve and cache keypairs for derivation paths.

    With ``mnemonics`` every :class:`DerivePathParams` maps to its own account.
    With only ``secret_key`` there is a single identity and path selectors are
    ignored. With neither, a random 24-word mnemonic is generated so path
    selection and switching still work; read it back from :attr:`mnemonics`.

    The current identity changes only through :meth:`switch_account`.
    """

    def __init__(self, mnemonics: str | None = None, secret_key: str | bytes | None = None) -> None:
        if not mnemonics and secret_key is None:
            LOGGER.warning("No mnemonics or secret key configured; generated a new mnemonic")
            mnemonics = generate_mnemonic()
        self._mnemonics = " ".join(mnemonics.split()) if mnemonics else None
        self._seed: bytes | None = mnemonic_to_seed(self._mnemonics) if self._mnemonics else None
        self._cache: dict[DerivePathParams, Ed25519Keypair] = {}

        if self._seed is not None:
            self._current = self._derive(DerivePathParams())
        else:
            self._current = Ed25519Keypair(secret_key)

    @property
    def mnemonics(self) -> str | None:
        return self._mnemonics

    @property
    def has_mnemonics(self) -> bool:
        return self._seed is not None

    @property
    def current_keypair(self) -> Ed25519Keypair:
        return self._current

    @property
    def current_address(self) -> str:
        return self._current.address

    def _derive(self, params: DerivePathParams) -> Ed25519Keypair:
        cached = self._cache.get(params)
        if cached is not None:
            return cached
        assert self._seed is not None
        private_key, _ = derive_ed25519_key(params.path, self._seed)
        keypair = Ed25519Keypair(private_key)
        self._cache[params] = keypair
        LOGGER.debug(
            "Derived account",
            extra={"path": params.path, "address": keypair.address},
        )
        return keypair

    def get_keypair(self, params: DerivePathParams | None = None) -> Ed25519Keypair:
        """Return the keypair for ``params``, or the current one when omitted."""

        if params is None or self._seed is None:
            return self._current
        return self._derive(params)

    def get_address(self, params: DerivePathParams | None = None) -> str:
        return self.get_keypair(params).address

    def resolve(self, params: DerivePathParams | None = None) -> tuple[str, Ed25519Keypair]:
        """Return ``(address, keypair)`` for ``params``."""

        keypair = self.get_keypair(params)
        return keypair.address, keypair

    def switch_account(self, params: DerivePathParams) -> None:
        """Make ``params`` the default identity; a no-op without mnemonics."""

        if self._seed is None:
            LOGGER.warning("switch_account ignored: no mnemonics configured")
            return
        self._current = self._derive(params)
        LOGGER.info(
            "Switched account",
            extra={"path": params.path, "address": self._current.address},
        )
