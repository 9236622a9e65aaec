"""
Crossbridge - Cross-Chain Bridging Helper

One interface over several chain-specific bridge contracts. Given a source
chain, a target chain, a token and an amount, crossbridge estimates gas,
computes bridge fees, plans a direct or multi-hop route, submits the hop
transactions and tracks them to confirmation.

Components:
- Chain Registry: supported chains, bridge edges, token addresses
- Fee & Gas Estimator: bridge fee and per-hop gas cost
- Route Planner: fewest-hop path with a hub tie-break
- Bridge Executor: sequential hop submission with cooperative cancellation
- Status Tracker: receipt polling, event decoding, address history

Quick Start:
    # 1. Configure environment
    export BRIDGE_RPC_ENDPOINTS='{"1": "https://...", "8453": "https://..."}'
    export BRIDGE_SIGNER_PRIVATE_KEY="0x..."   # optional, enables submission

    # 2. Initialize
    from crossbridge import initialize_bridge
    bridge = await initialize_bridge()

    # 3. Plan and execute
    plan = await bridge.find_route(10, 42161, "WETH", 10**18)
    execution = await bridge.execute_route(plan, 10**18, "0xRecipient...")
"""

__version__ = "0.1.0"

from .bridge import BridgeExecutor, BridgeService, StatusTracker, get_bridge_service
from .chains import (
    ChainDataProvider,
    ChainRegistry,
    EVMChainProvider,
    LocalAccountSigner,
    SupportedChain,
    TransactionSigner,
    get_chain_name,
    get_chain_registry,
    is_chain_supported,
)
from .config import BridgeSettings, CostPolicyName, configure_bridge, get_bridge_settings
from .exceptions import (
    BridgeError,
    DecodeError,
    ProviderError,
    RouteNotFoundError,
    SigningUnavailableError,
    UnknownChainError,
    UnsupportedHopError,
)
from .fees import FeeEstimator
from .models import (
    BridgeState,
    BridgeStatus,
    FailureKind,
    FeeBreakdown,
    GasEstimate,
    Hop,
    RouteExecution,
    RouteOutcome,
    RoutePlan,
    TransferRequest,
)
from .monitoring import configure_logging
from .routing import CompoundedCostPolicy, RoutePlanner, StaticCostPolicy
from .units import format_amount, parse_amount


async def initialize_bridge() -> BridgeService:
    """
    Configure logging from settings and return the initialized service.

    Example:
        bridge = await initialize_bridge()
        routes = bridge.supported_routes()
    """
    settings = get_bridge_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    return await get_bridge_service()


__all__ = [
    # Version
    "__version__",
    # Configuration
    "BridgeSettings",
    "CostPolicyName",
    "get_bridge_settings",
    "configure_bridge",
    "configure_logging",
    # Exceptions
    "BridgeError",
    "UnknownChainError",
    "UnsupportedHopError",
    "RouteNotFoundError",
    "SigningUnavailableError",
    "ProviderError",
    "DecodeError",
    # Models
    "TransferRequest",
    "Hop",
    "RoutePlan",
    "GasEstimate",
    "FeeBreakdown",
    "BridgeState",
    "BridgeStatus",
    "FailureKind",
    "RouteExecution",
    "RouteOutcome",
    # Chains
    "ChainRegistry",
    "SupportedChain",
    "ChainDataProvider",
    "TransactionSigner",
    "EVMChainProvider",
    "LocalAccountSigner",
    "get_chain_registry",
    "is_chain_supported",
    "get_chain_name",
    # Components
    "FeeEstimator",
    "RoutePlanner",
    "StaticCostPolicy",
    "CompoundedCostPolicy",
    "StatusTracker",
    "BridgeExecutor",
    # Services
    "BridgeService",
    "get_bridge_service",
    "initialize_bridge",
    # Units
    "format_amount",
    "parse_amount",
]
