"""Pydantic v2 data models: canonical per-chain transactions and the explanation wire format."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Hedera canonical shape ---


class HederaTransfer(BaseModel):
    account: str
    amount: int = Field(description="Signed amount in tinybar")


class HederaTokenTransfer(BaseModel):
    token_id: str
    account: str
    amount: int = Field(description="Signed amount in the token's smallest unit")
    decimals: int | None = None


class TokenInfo(BaseModel):
    token_id: str
    symbol: str | None = None
    name: str | None = None
    decimals: int | None = None

    @property
    def display(self) -> str:
        return self.symbol or self.name or self.token_id


class HederaTransaction(BaseModel):
    transaction_id: str = ""
    transaction_hash: str = ""
    name: str = Field(default="TRANSACTION", description="Mirror node transaction type, e.g. CRYPTOTRANSFER")
    result: str = ""
    fee: int = Field(default=0, description="Charged fee in tinybar")
    timestamp: str | None = Field(default=None, description="Consensus timestamp as 'seconds.nanoseconds'")
    transfers: list[HederaTransfer] = Field(default_factory=list)
    token_transfers: list[HederaTokenTransfer] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


# --- Sui canonical shape ---


class MoveCallInfo(_WireModel):
    package: str
    module: str
    function: str
    arguments: list[Any] = Field(default_factory=list)


class SuiObjectChange(BaseModel):
    type: str
    object_id: str = ""
    object_type: str = ""
    sender: str | None = None
    recipient: str | None = None
    amount: float | None = None


class SuiBalanceChange(BaseModel):
    owner: str | None = None
    shared: bool = False
    coin_type: str = "0x2::sui::SUI"
    amount: int = Field(description="Signed amount in the coin's smallest unit")


class SuiGas(BaseModel):
    computation_cost: int = 0
    storage_cost: int = 0
    storage_rebate: int = 0
    non_refundable_storage_fee: int = 0
    gas_price: int = 0
    total_cost: int | None = None

    @property
    def total(self) -> int:
        if self.total_cost is not None:
            return self.total_cost
        return (
            self.computation_cost
            + self.storage_cost
            - self.storage_rebate
            + self.non_refundable_storage_fee
        )


class SuiTransaction(BaseModel):
    digest: str = ""
    sender: str = ""
    status: str = ""
    gas: SuiGas = Field(default_factory=SuiGas)
    object_changes: list[SuiObjectChange] = Field(default_factory=list)
    balance_changes: list[SuiBalanceChange] = Field(default_factory=list)
    move_calls: list[MoveCallInfo] = Field(default_factory=list)
    timestamp_ms: int | None = None
    timestamp: str | None = Field(default=None, description="ISO string when no epoch value is provided")
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


# --- Explanation ---

ActionType = Literal["transfer", "create", "mutate", "call"]
ChangeDirection = Literal["increase", "decrease"]


class Action(_WireModel):
    type: ActionType
    description: str
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    amount: str | None = None
    token: str | None = None
    object_id: str | None = None


class BalanceChange(_WireModel):
    address: str
    amount: str = Field(description="Absolute, formatted amount")
    coin_type: str
    change: ChangeDirection
    account_name: str | None = None
    explanation: str = ""


class Explanation(_WireModel):
    summary: str
    actions: list[Action] = Field(default_factory=list)
    gas_used: str = "0"
    gas_price: str = "0"
    total_gas_cost: str = "0"
    objects_created: int = 0
    objects_transferred: int = 0
    objects_mutated: int = 0
    involved_addresses: list[str] = Field(default_factory=list)
    move_calls: list[MoveCallInfo] = Field(default_factory=list)
    timestamp: str | None = None
    timestamp_formatted: str | None = None
    balance_changes: list[BalanceChange] = Field(default_factory=list)
    account_names: dict[str, str] = Field(default_factory=dict)


class AiStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    TIMEOUT = "timeout"
    ERROR = "error"
    NO_KEY = "no_key"


class EnhancedExplanation(Explanation):
    ai_enhanced: bool = False
    ai_insights: list[str] = Field(default_factory=list)
    ai_risks: list[str] = Field(default_factory=list)
    ai_status: AiStatus = AiStatus.DISABLED
    ai_status_message: str = ""


# --- Request / response envelope ---


class ExplainRequest(_WireModel):
    digest: str | None = None
    use_ai: bool = Field(default=True, alias="useAI")
    blockchain: str = "hedera"


class ExplainResponse(_WireModel):
    success: bool = True
    digest: str
    explanation: EnhancedExplanation
    raw_transaction: dict[str, Any] | None = None
