"""
Cross-Chain Bridge Service

Public facade over the registry, estimator, planner, executor and tracker.
This is the single object wallet and dApp integrators talk to.

Example:
    ```python
    from crossbridge.bridge import get_bridge_service

    bridge = await get_bridge_service()

    plan = await bridge.find_route(10, 42161, "WETH", 10**18)
    execution = await bridge.execute_route(plan, 10**18, "0xRecipient...")

    status = await bridge.get_status(execution.statuses[-1].transaction_hash, 1)
    ```
"""

import asyncio
from typing import Any

import structlog

from ..chains.base_client import ChainDataProvider, TransactionSigner
from ..chains.evm_client import EVMChainProvider, LocalAccountSigner
from ..chains.registry import ChainRegistry, get_chain_registry
from ..config import BridgeSettings, get_bridge_settings
from ..fees.estimator import FeeEstimator
from ..models import (
    BridgeStatus,
    FeeBreakdown,
    GasEstimate,
    Hop,
    RouteExecution,
    RoutePlan,
    TransferRequest,
)
from ..routing.planner import RoutePlanner
from .executor import BridgeExecutor
from .tracker import StatusTracker

logger = structlog.get_logger(__name__)


class BridgeService:
    """
    Service for estimating, planning, executing and tracking bridge transfers.

    Collaborators are injectable; anything not supplied is built from the
    process-wide settings and registry.
    """

    def __init__(
        self,
        provider: ChainDataProvider | None = None,
        signer: TransactionSigner | None = None,
        registry: ChainRegistry | None = None,
        settings: BridgeSettings | None = None,
    ):
        """
        Initialize the bridge service.

        Adapters open connections lazily, so construction never touches the
        network.

        Args:
            provider: Chain data provider (defaults to EVMChainProvider)
            signer: Transaction signer (defaults to a LocalAccountSigner when
                a private key is configured, otherwise read-only)
            registry: Chain registry (defaults to the process-wide registry)
            settings: Bridge settings (defaults to the global settings)
        """
        self._settings = settings or get_bridge_settings()
        self._registry = registry or get_chain_registry()
        self._provider = provider or EVMChainProvider(settings=self._settings, registry=self._registry)
        self._signer = signer or self._default_signer()
        self._initialized = False

        self._estimator = FeeEstimator(self._provider, self._registry, self._settings)
        self._planner = RoutePlanner(self._estimator, self._registry, self._settings)
        self._tracker = StatusTracker(self._provider, self._registry, self._settings)
        self._executor = BridgeExecutor(
            self._tracker,
            signer=self._signer,
            registry=self._registry,
            confirmation_timeout=self._settings.confirmation_timeout_seconds,
            estimator=self._estimator,
        )

    def _default_signer(self) -> TransactionSigner | None:
        if not self._settings.signer_private_key:
            return None
        if not isinstance(self._provider, EVMChainProvider):
            logger.warning(
                "signer_not_created",
                reason="private key configured but provider is not an EVMChainProvider",
            )
            return None
        return LocalAccountSigner(self._provider, self._settings.signer_private_key)

    async def initialize(self) -> None:
        """Mark the service ready. Safe to call more than once."""
        if self._initialized:
            return

        self._initialized = True
        logger.info(
            "bridge_service_initialized",
            chains=len(self._registry.chains()),
            edges=len(self._registry.edges()),
            signing_enabled=self._signer is not None,
        )

    async def close(self) -> None:
        """Close the bridge service and its provider connections."""
        await self._provider.close()
        self._initialized = False

    @property
    def registry(self) -> ChainRegistry:
        return self._registry

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    @property
    def can_sign(self) -> bool:
        return self._signer is not None

    # ==================== Registry ====================

    def is_chain_supported(self, chain_id: int) -> bool:
        """Check if a chain id is registered."""
        return self._registry.is_supported(chain_id)

    def chain_name(self, chain_id: int) -> str:
        """Display name for a chain, "Unknown" if unregistered."""
        return self._registry.chain_name(chain_id)

    def supported_routes(self) -> list[dict[str, Any]]:
        """
        Get list of direct bridge routes.

        Returns:
            List of route information including fee rate and latency
        """
        routes = []
        for edge in self._registry.edges():
            routes.append({
                "source_chain": edge.source_chain,
                "source_name": self._registry.chain_name(edge.source_chain),
                "target_chain": edge.target_chain,
                "target_name": self._registry.chain_name(edge.target_chain),
                "bridge_contract": edge.bridge_contract,
                "fee_rate_bps": self._settings.fee_rate_bps,
                "estimated_time_minutes": self._registry.chain(edge.target_chain).base_latency_minutes,
            })
        return routes

    # ==================== Estimation ====================

    async def estimate_gas(
        self,
        request: TransferRequest | Hop | None = None,
        *,
        source_chain: int | None = None,
        target_chain: int | None = None,
    ) -> GasEstimate:
        """
        Estimate gas for a single hop.

        Accepts a TransferRequest, a Hop, or explicit chain ids.

        Raises:
            UnknownChainError: If either chain is not registered
            UnsupportedHopError: If no direct bridge exists for the pair
            ProviderError: If fee data cannot be fetched
        """
        if isinstance(request, TransferRequest):
            source_chain, target_chain = request.source_chain, request.target_chain
        elif isinstance(request, Hop):
            source_chain, target_chain = request.from_chain, request.to_chain
        if source_chain is None or target_chain is None:
            raise ValueError("Source and target chain are required")
        return await self._estimator.estimate_gas(source_chain, target_chain)

    def calculate_fees(self, amount: int, source_chain: int, target_chain: int) -> FeeBreakdown:
        """Bridge and gas fees for a transfer, in base units. Pure."""
        return self._estimator.calculate_fees(amount, source_chain, target_chain)

    # ==================== Routing ====================

    async def find_route(
        self,
        source_chain: int,
        target_chain: int,
        token_symbol: str | None = None,
        amount: int = 0,
    ) -> RoutePlan:
        """
        Plan a direct or multi-hop route.

        Raises:
            UnknownChainError: If either chain is not registered
            RouteNotFoundError: If the chains are not connected
        """
        return await self._planner.find_route(source_chain, target_chain, token_symbol, amount)

    # ==================== Execution ====================

    async def submit_hop(self, hop: Hop, amount: int, recipient: str) -> str:
        """
        Submit a single hop. Returns the source-chain transaction hash.

        Raises:
            SigningUnavailableError: If no signer is configured
        """
        return await self._executor.submit_hop(hop, amount, recipient)

    async def execute_route(
        self,
        plan: RoutePlan,
        amount: int,
        recipient: str,
        cancel_event: asyncio.Event | None = None,
    ) -> RouteExecution:
        """
        Execute a route plan hop by hop.

        Raises:
            SigningUnavailableError: If no signer is configured
        """
        return await self._executor.execute_route(plan, amount, recipient, cancel_event)

    async def bridge(self, request: TransferRequest, cancel_event: asyncio.Event | None = None) -> RouteExecution:
        """Plan and execute a transfer request in one call."""
        plan = await self.find_route(
            request.source_chain,
            request.target_chain,
            request.token_symbol,
            request.amount,
        )
        return await self.execute_route(plan, request.amount, request.recipient, cancel_event)

    # ==================== Tracking ====================

    async def get_status(self, tx_hash: str, source_chain: int) -> BridgeStatus:
        """Current status of a hop transaction."""
        return await self._tracker.get_status(tx_hash, source_chain)

    async def get_history(self, address: str, limit: int = 10) -> list[BridgeStatus]:
        """Bridge transfers sent or received by an address, newest first."""
        return await self._tracker.get_history(address, limit)


# Singleton instance
_bridge_service: BridgeService | None = None


async def get_bridge_service() -> BridgeService:
    """Get the global bridge service instance."""
    global _bridge_service
    if _bridge_service is None:
        _bridge_service = BridgeService()
        await _bridge_service.initialize()
    return _bridge_service
