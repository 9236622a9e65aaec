"""
Fee and Gas Estimation

Computes the gas cost of a single hop from live fee data and the bridge fee
for a transfer amount.

Gas model:
- gas limit is a fixed, conservative upper bound for the bridge ABI shape
- effective gas price is the reported gas price, else maxFeePerGas, else the
  target chain's configured fallback
- confirmation time comes from the target chain's static latency entry

Fee model:
- bridge fee = amount * fee_rate_bps // 10000. Integer division rounds the
  fee down, so the user is charged at most one base unit less than the
  exact rate.
- gas fee is a static per-target-chain constant
- all arithmetic is on Python ints, exact for any amount size
"""

import structlog
from web3 import Web3

from ..chains.base_client import ChainDataProvider
from ..chains.registry import ChainRegistry, get_chain_registry
from ..chains.retry import call_with_retry
from ..config import BridgeSettings, get_bridge_settings
from ..exceptions import UnsupportedHopError
from ..models import FeeBreakdown, FeeData, GasEstimate, Hop

logger = structlog.get_logger(__name__)

BASIS_POINTS = 10_000


class FeeEstimator:
    """
    Estimates gas cost per hop and bridge fees per transfer.

    Only estimate_gas touches the network; calculate_fees is pure.
    """

    def __init__(
        self,
        provider: ChainDataProvider,
        registry: ChainRegistry | None = None,
        settings: BridgeSettings | None = None,
    ):
        """
        Initialize the estimator.

        Args:
            provider: Chain data provider used for fee data
            registry: Chain registry (defaults to the process-wide registry)
            settings: Bridge settings (defaults to the global settings)
        """
        self._provider = provider
        self._registry = registry or get_chain_registry()
        self._settings = settings or get_bridge_settings()

    async def estimate_gas(self, source_chain: int, target_chain: int) -> GasEstimate:
        """
        Estimate the gas cost of bridging from source_chain to target_chain.

        The registry is consulted before any network call.

        Raises:
            UnknownChainError: If either chain is not registered
            UnsupportedHopError: If no bridge contract exists for the pair
            ProviderError: If fee data cannot be fetched after retries
        """
        self._registry.require(source_chain, target_chain)
        if self._registry.bridge_contract(source_chain, target_chain) is None:
            raise UnsupportedHopError(source_chain, target_chain)

        fee_data: FeeData = await call_with_retry(
            self._settings,
            lambda: self._provider.get_fee_data(source_chain),
        )

        source = self._registry.chain(source_chain)
        gas_price = fee_data.gas_price or fee_data.max_fee_per_gas or source.fallback_gas_price_wei
        gas_limit = self._settings.hop_gas_limit
        total_cost_wei = gas_limit * gas_price

        estimate = GasEstimate(
            gas_limit=gas_limit,
            gas_price=gas_price,
            total_cost_wei=total_cost_wei,
            total_cost=Web3.from_wei(total_cost_wei, "ether"),
            estimated_time_minutes=self.estimated_time(target_chain),
            max_fee_per_gas=fee_data.max_fee_per_gas,
            max_priority_fee_per_gas=fee_data.max_priority_fee_per_gas,
        )
        logger.debug(
            "gas_estimated",
            source_chain=source_chain,
            target_chain=target_chain,
            gas_price=gas_price,
            total_cost_wei=total_cost_wei,
        )
        return estimate

    async def estimate_hop(self, hop: Hop) -> GasEstimate:
        """Estimate gas for a planned hop."""
        return await self.estimate_gas(hop.from_chain, hop.to_chain)

    def estimated_time(self, target_chain: int) -> int:
        """Static confirmation latency, in minutes, for hops into target_chain."""
        return self._registry.chain(target_chain).base_latency_minutes

    def calculate_fees(self, amount: int, source_chain: int, target_chain: int) -> FeeBreakdown:
        """
        Calculate bridge and gas fees for a transfer.

        Args:
            amount: Transfer amount in base units (>= 0)
            source_chain: Source chain id
            target_chain: Target chain id

        Returns:
            FeeBreakdown in base units

        Raises:
            UnknownChainError: If either chain is not registered
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError("Amount must be non-negative")
        self._registry.require(source_chain, target_chain)

        bridge_fee = amount * self._settings.fee_rate_bps // BASIS_POINTS
        gas_fee = self._registry.chain(target_chain).base_gas_fee_wei

        return FeeBreakdown(
            bridge_fee=bridge_fee,
            gas_fee=gas_fee,
            total_fee=bridge_fee + gas_fee,
        )
