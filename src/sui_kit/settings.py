"""Environment-backed settings primitives for :mod:`sui_kit`."""

from __future__ import annotations

from typing import Final, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "DEFAULT_GAS_BUDGET",
    "NETWORK_PRESETS",
    "NetworkType",
    "SuiKitSettings",
    "get_settings",
]

NetworkType = Literal["mainnet", "testnet", "devnet", "localnet"]

DEFAULT_GAS_BUDGET: Final[int] = 100_000_000

# (fullnode url, faucet url); mainnet has no faucet.
NETWORK_PRESETS: Final[dict[str, tuple[str, str | None]]] = {
    "mainnet": ("https://fullnode.mainnet.sui.io:443", None),
    "testnet": (
        "https://fullnode.testnet.sui.io:443",
        "https://faucet.testnet.sui.io/gas",
    ),
    "devnet": (
        "https://fullnode.devnet.sui.io:443",
        "https://faucet.devnet.sui.io/gas",
    ),
    "localnet": ("http://127.0.0.1:9000", "http://127.0.0.1:9123/gas"),
}


class SuiKitSettings(BaseSettings):
    """Expose environment-derived configuration knobs for the toolkit.

    All environment lookups go through this class. Attributes default to
    ``None`` (or an inline default) when the variable is not present.

    Attributes:
        mnemonics: 12 or 24 word seed phrase used to derive accounts.
        secret_key: Hex or base64 Ed25519 secret key, ignored when
            ``mnemonics`` is set.
        network: Network preset used to fill in missing endpoint URLs.
        fullnode_url: Explicit JSON-RPC endpoint override.
        faucet_url: Explicit faucet endpoint override.
        sui_bin: Command used to invoke the Sui CLI, for example
            ``"sui"`` or ``"cargo run --bin sui"``.
        request_timeout: Timeout in seconds for JSON-RPC requests.
        gas_budget: Gas budget applied when a transaction sets none.
    """

    mnemonics: str | None = Field(default=None, alias="SUI_KIT_MNEMONICS")
    secret_key: str | None = Field(default=None, alias="SUI_KIT_SECRET_KEY")
    network: NetworkType = Field(default="devnet", alias="SUI_KIT_NETWORK")
    fullnode_url: str | None = Field(default=None, alias="SUI_KIT_FULLNODE_URL")
    faucet_url: str | None = Field(default=None, alias="SUI_KIT_FAUCET_URL")
    sui_bin: str = Field(default="sui", alias="SUI_KIT_SUI_BIN")
    request_timeout: float = Field(default=30.0, alias="SUI_KIT_REQUEST_TIMEOUT")
    gas_budget: int = Field(default=DEFAULT_GAS_BUDGET, alias="SUI_KIT_GAS_BUDGET")

    model_config = SettingsConfigDict(env_file=None, extra="ignore", populate_by_name=True)

    @field_validator("network", mode="before")
    @classmethod
    def _normalise_network(cls, value: object) -> object:
        """Accept network names regardless of case or surrounding whitespace."""

        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("gas_budget", mode="before")
    @classmethod
    def _parse_gas_budget(cls, value: object) -> int:
        """Parse the gas budget, falling back to the default on malformed input.

        Args:
            value: Raw environment value.

        Returns:
            A positive integer budget.
        """

        if isinstance(value, bool):
            return DEFAULT_GAS_BUDGET
        if isinstance(value, int):
            return value if value > 0 else DEFAULT_GAS_BUDGET
        if isinstance(value, str):
            try:
                parsed = int(value.strip().replace("_", ""))
            except ValueError:
                return DEFAULT_GAS_BUDGET
            return parsed if parsed > 0 else DEFAULT_GAS_BUDGET
        return DEFAULT_GAS_BUDGET

    @property
    def effective_fullnode_url(self) -> str:
        """Return the JSON-RPC endpoint, preferring an explicit override."""

        return self.fullnode_url or NETWORK_PRESETS[self.network][0]

    @property
    def effective_faucet_url(self) -> str | None:
        """Return the faucet endpoint, or ``None`` when the network has none."""

        return self.faucet_url or NETWORK_PRESETS[self.network][1]


def get_settings() -> SuiKitSettings:
    """Return a :class:`SuiKitSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return SuiKitSettings()
