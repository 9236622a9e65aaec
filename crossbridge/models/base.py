"""
Base Models for Cross-Chain Bridging

This module defines the data structures that flow between the planner,
estimator, executor and status tracker. Value objects are frozen: a plan or
status snapshot never changes after construction, the tracker produces a new
snapshot instead.

All monetary quantities are integers in base units (wei for native assets,
token base units otherwise). Human-readable native costs use Decimal, never
float.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator
from web3 import Web3

# Sentinel token address meaning "bridge the chain's native asset"
NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"


class BridgeState(str, Enum):
    """
    State of a submitted hop transaction.

    PENDING -> CONFIRMED | FAILED. Both CONFIRMED and FAILED are terminal.
    """

    PENDING = "pending"  # Submitted, no receipt observed yet
    CONFIRMED = "confirmed"  # Source-chain receipt reports success
    FAILED = "failed"  # Reverted, or outcome could not be determined


class FailureKind(str, Enum):
    """Why a BridgeStatus is FAILED."""

    REVERTED = "reverted"  # The chain returned a failure receipt
    INDETERMINATE = "indeterminate"  # Retries or polling exhausted, outcome unknown


class RouteOutcome(str, Enum):
    """Final outcome of a multi-hop route execution."""

    COMPLETED = "completed"  # Every hop confirmed
    FAILED = "failed"  # A hop failed; later hops were not submitted
    CANCELLED = "cancelled"  # Caller cancelled between hops


class TransferRequest(BaseModel):
    """A caller's request to move an amount from one chain to another."""

    source_chain: int = Field(description="Chain the funds start on")
    target_chain: int = Field(description="Chain the funds should end on")
    token_symbol: str | None = Field(
        default=None, description="Token symbol, or None for the native asset"
    )
    amount: int = Field(gt=0, description="Amount in base units")
    recipient: str = Field(description="Recipient address on the target chain")

    model_config = {"frozen": True}

    @field_validator("recipient")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        """Recipient must be a syntactically valid EVM address."""
        if not Web3.is_address(v):
            raise ValueError(f"Invalid recipient address: {v}")
        return v


class Hop(BaseModel):
    """One direct bridge transfer between two chains."""

    from_chain: int
    to_chain: int
    bridge_contract: str = Field(description="Bridge contract on from_chain")
    token_address: str = Field(
        default=NATIVE_TOKEN_ADDRESS, description="Token address on from_chain"
    )

    model_config = {"frozen": True}

    @property
    def is_native(self) -> bool:
        """Whether this hop bridges the native asset."""
        return self.token_address.lower() == NATIVE_TOKEN_ADDRESS


class GasEstimate(BaseModel):
    """Gas cost estimate for a single hop. Recomputed on demand."""

    gas_limit: int
    gas_price: int = Field(description="Effective gas price in wei")
    total_cost_wei: int
    total_cost: Decimal = Field(description="Total cost in native units (e.g. ETH)")
    estimated_time_minutes: int
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None

    model_config = {"frozen": True}


class FeeBreakdown(BaseModel):
    """Bridge and gas fees for a transfer, in base units."""

    bridge_fee: int
    gas_fee: int
    total_fee: int

    model_config = {"frozen": True}


class RoutePlan(BaseModel):
    """
    Ordered hops connecting a source chain to a target chain.

    Consecutive hops must chain (hop[i].to_chain == hop[i + 1].from_chain)
    and the plan is never empty.
    """

    hops: tuple[Hop, ...] = Field(min_length=1)
    token_symbol: str | None = None
    estimated_time_minutes: int
    estimated_cost: Decimal = Field(description="Estimated cost in native units")
    slippage: Decimal = Field(description="Slippage allowance in percent")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_chaining(self) -> "RoutePlan":
        for previous, current in zip(self.hops, self.hops[1:]):
            if previous.to_chain != current.from_chain:
                raise ValueError(
                    f"Hops do not chain: {previous.to_chain} != {current.from_chain}"
                )
        return self

    @property
    def source_chain(self) -> int:
        return self.hops[0].from_chain

    @property
    def target_chain(self) -> int:
        return self.hops[-1].to_chain

    @property
    def route(self) -> list[int]:
        """Chain ids visited, source first."""
        return [self.hops[0].from_chain] + [hop.to_chain for hop in self.hops]

    @property
    def is_direct(self) -> bool:
        return len(self.hops) == 1


class BridgeStatus(BaseModel):
    """
    Snapshot of a submitted hop transaction.

    Snapshots are complete on construction; unknown decoded fields default to
    None/0 rather than being left out.
    """

    transaction_hash: str
    state: BridgeState
    source_chain: int
    target_chain: int | None = Field(default=None, description="None when unknown")
    amount: int = Field(default=0, description="Bridged amount, 0 when unknown")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    failure: FailureKind | None = None
    block_number: int | None = None
    recipient: str | None = None
    token_address: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_failure(self) -> "BridgeStatus":
        if self.state == BridgeState.FAILED and self.failure is None:
            raise ValueError("Failed status requires a failure kind")
        if self.state != BridgeState.FAILED and self.failure is not None:
            raise ValueError("Only failed statuses carry a failure kind")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.state != BridgeState.PENDING

    @property
    def is_indeterminate(self) -> bool:
        """Failed because we could not find out, not because the chain said so."""
        return self.failure == FailureKind.INDETERMINATE


class RouteExecution(BaseModel):
    """Result of executing a RoutePlan hop by hop."""

    plan: RoutePlan
    outcome: RouteOutcome
    statuses: list[BridgeStatus] = Field(
        default_factory=list, description="One status per submitted hop, in order"
    )
    stopped_at_chain: int = Field(description="Chain currently holding the funds")
    error: str | None = Field(default=None, description="Why the route stopped early, if it did")

    @property
    def completed_hops(self) -> int:
        return sum(1 for s in self.statuses if s.state == BridgeState.CONFIRMED)
