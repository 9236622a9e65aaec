"""
Chain Models

Registry entries and the normalized shapes exchanged with chain data
providers (fee data, receipts, logs). Providers translate their native
responses into these models so the core never depends on a specific RPC
client.
"""

from pydantic import BaseModel, Field


class ChainInfo(BaseModel):
    """Static per-chain attributes. Adding a chain is a data change."""

    chain_id: int
    name: str
    native_symbol: str = Field(default="ETH")
    base_latency_minutes: int = Field(
        default=15, description="Typical confirmation latency when bridging to this chain"
    )
    base_gas_fee_wei: int = Field(
        default=5_000_000_000_000_000, description="Static gas fee charged for hops into this chain"
    )
    fallback_gas_price_wei: int = Field(
        default=20_000_000_000, description="Gas price used when the provider reports none"
    )

    model_config = {"frozen": True}


class TokenDescriptor(BaseModel):
    """A token symbol and its address on each chain where it exists."""

    symbol: str
    decimals: int = 18
    addresses: dict[int, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class BridgeEdge(BaseModel):
    """A directed, usable bridge from one chain to another."""

    source_chain: int
    target_chain: int
    bridge_contract: str

    model_config = {"frozen": True}


class FeeData(BaseModel):
    """Current fee data for a chain, in wei."""

    gas_price: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None


class LogEntry(BaseModel):
    """A single event log, with topics and data as 0x-prefixed hex."""

    address: str
    topics: list[str] = Field(default_factory=list)
    data: str = "0x"
    block_number: int = 0
    log_index: int = 0
    transaction_hash: str = ""


class TransactionReceipt(BaseModel):
    """Normalized transaction receipt."""

    transaction_hash: str
    status: int = Field(description="1 for success, 0 for failure")
    block_number: int
    logs: list[LogEntry] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class LogFilter(BaseModel):
    """Filter for a provider get_logs query."""

    address: list[str] = Field(default_factory=list)
    topics: list[str | None] = Field(default_factory=list)
    from_block: int | str = "earliest"
    to_block: int | str = "latest"
