"""Pydantic models describing the JSON-RPC payloads the toolkit consumes."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "Balance",
    "CoinObject",
    "CoinPage",
    "ExecutionStatus",
    "ObjectChange",
    "ObjectRef",
    "SuiObject",
    "TransactionResponse",
]

SUI_COIN_TYPE = "0x2::sui::SUI"


class _RpcModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class CoinObject(_RpcModel):
    """An owned coin: one uniquely identified unit of fungible balance."""

    coin_object_id: str = Field(..., alias="coinObjectId", min_length=1)
    coin_type: str = Field(default=SUI_COIN_TYPE, alias="coinType")
    version: int = Field(..., ge=0, description="Object sequence number.")
    digest: str = Field(..., min_length=1, description="Base58 object digest.")
    balance: int = Field(..., ge=0)

    @property
    def ref(self) -> "ObjectRef":
        return ObjectRef(object_id=self.coin_object_id, version=self.version, digest=self.digest)


class CoinPage(_RpcModel):
    data: list[CoinObject] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")
    has_next_page: bool = Field(default=False, alias="hasNextPage")


class Balance(_RpcModel):
    coin_type: str = Field(default=SUI_COIN_TYPE, alias="coinType")
    coin_object_count: int = Field(default=0, alias="coinObjectCount")
    total_balance: int = Field(default=0, alias="totalBalance")


class ObjectRef(_RpcModel):
    """``(object id, version, digest)`` triple identifying an object version."""

    object_id: str = Field(..., alias="objectId")
    version: int = Field(..., ge=0)
    digest: str


class SuiObject(_RpcModel):
    """Object data as returned with ``showOwner``."""

    object_id: str = Field(..., alias="objectId")
    version: int
    digest: str
    owner: Any = None
    object_type: str | None = Field(default=None, alias="type")

    @property
    def ref(self) -> ObjectRef:
        return ObjectRef(object_id=self.object_id, version=self.version, digest=self.digest)

    @property
    def initial_shared_version(self) -> int | None:
        """Return the initial shared version when the object is shared."""

        if isinstance(self.owner, dict):
            shared = self.owner.get("Shared")
            if isinstance(shared, dict) and "initial_shared_version" in shared:
                return int(shared["initial_shared_version"])
        return None


class ExecutionStatus(_RpcModel):
    status: Literal["success", "failure"]
    error: str | None = None


class ObjectChange(_RpcModel):
    """One entry of ``objectChanges`` in a transaction response."""

    type: str
    object_id: str | None = Field(default=None, alias="objectId")
    package_id: str | None = Field(default=None, alias="packageId")
    object_type: str | None = Field(default=None, alias="objectType")
    version: int | None = None
    digest: str | None = None
    modules: list[str] | None = None


class TransactionResponse(_RpcModel):
    """Subset of ``SuiTransactionBlockResponse`` the toolkit relies on."""

    digest: str
    effects: dict[str, Any] | None = None
    object_changes: list[ObjectChange] = Field(default_factory=list, alias="objectChanges")
    events: list[dict[str, Any]] = Field(default_factory=list)
    balance_changes: list[dict[str, Any]] = Field(default_factory=list, alias="balanceChanges")

    @property
    def status(self) -> ExecutionStatus | None:
        if not self.effects or "status" not in self.effects:
            return None
        return ExecutionStatus.model_validate(self.effects["status"])

    def created_objects(self) -> list[ObjectChange]:
        return [change for change in self.object_changes if change.type == "created"]
