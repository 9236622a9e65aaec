"""
Chain Registry

Static knowledge of the supported chains: their per-chain attributes, the
directed bridge-contract graph connecting them and token address mappings.

The registry is built once from plain data tables and exposes read accessors
only. Supporting a new chain, bridge or token is a table change; nothing in
the planner or estimator branches on specific chain ids.

Default Routes:
- Ethereum -> Base, Optimism, Arbitrum, Polygon (canonical L1 bridges)
- Base -> Ethereum, Optimism (OP Stack predeploys)
- Optimism -> Ethereum
- Arbitrum -> Ethereum
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

import structlog

from ..exceptions import UnknownChainError
from ..models import NATIVE_TOKEN_ADDRESS, BridgeEdge, ChainInfo, TokenDescriptor

logger = structlog.get_logger(__name__)

UNKNOWN_CHAIN_NAME = "Unknown"


class SupportedChain:
    """Chain ids of the default registry."""

    ETHEREUM = 1
    BASE = 8453
    OPTIMISM = 10
    ARBITRUM = 42161
    POLYGON = 137


DEFAULT_CHAINS: tuple[ChainInfo, ...] = (
    ChainInfo(
        chain_id=SupportedChain.ETHEREUM,
        name="Ethereum",
        base_latency_minutes=20,  # L1 finality is the slow leg
    ),
    ChainInfo(
        chain_id=SupportedChain.BASE,
        name="Base",
        base_latency_minutes=10,
        base_gas_fee_wei=1_000_000_000_000_000,  # 0.001 ETH
    ),
    ChainInfo(chain_id=SupportedChain.OPTIMISM, name="Optimism"),
    ChainInfo(chain_id=SupportedChain.ARBITRUM, name="Arbitrum", base_latency_minutes=25),
    ChainInfo(chain_id=SupportedChain.POLYGON, name="Polygon", native_symbol="POL"),
)

DEFAULT_EDGES: tuple[BridgeEdge, ...] = (
    BridgeEdge(
        source_chain=SupportedChain.ETHEREUM,
        target_chain=SupportedChain.BASE,
        bridge_contract="0x3154Cf16ccdb4C6d922629664174b904d80F2C35",
    ),
    BridgeEdge(
        source_chain=SupportedChain.ETHEREUM,
        target_chain=SupportedChain.OPTIMISM,
        bridge_contract="0x99C9fc46f92E8a1c0deC1b1747d010903E884bE1",
    ),
    BridgeEdge(
        source_chain=SupportedChain.ETHEREUM,
        target_chain=SupportedChain.ARBITRUM,
        bridge_contract="0x8315177aB297bA92A06054cE80a67Ed4DBd7ed3a",
    ),
    BridgeEdge(
        source_chain=SupportedChain.ETHEREUM,
        target_chain=SupportedChain.POLYGON,
        bridge_contract="0xA0c68C638235ee32657e8f720a23ceC1bFc77C77",
    ),
    BridgeEdge(
        source_chain=SupportedChain.BASE,
        target_chain=SupportedChain.ETHEREUM,
        bridge_contract="0x4200000000000000000000000000000000000010",
    ),
    BridgeEdge(
        source_chain=SupportedChain.BASE,
        target_chain=SupportedChain.OPTIMISM,
        bridge_contract="0x4200000000000000000000000000000000000007",
    ),
    BridgeEdge(
        source_chain=SupportedChain.OPTIMISM,
        target_chain=SupportedChain.ETHEREUM,
        bridge_contract="0x4200000000000000000000000000000000000010",
    ),
    BridgeEdge(
        source_chain=SupportedChain.ARBITRUM,
        target_chain=SupportedChain.ETHEREUM,
        bridge_contract="0x0000000000000000000000000000000000000064",
    ),
)

DEFAULT_TOKENS: tuple[TokenDescriptor, ...] = (
    TokenDescriptor(
        symbol="USDC",
        decimals=6,
        addresses={
            SupportedChain.ETHEREUM: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            SupportedChain.BASE: "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            SupportedChain.OPTIMISM: "0x7F5c764cBc14f9669B88837ca1490cCa17c31607",
            SupportedChain.ARBITRUM: "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
            SupportedChain.POLYGON: "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
        },
    ),
    TokenDescriptor(
        symbol="WETH",
        addresses={
            SupportedChain.ETHEREUM: "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
            SupportedChain.BASE: "0x4200000000000000000000000000000000000006",
            SupportedChain.OPTIMISM: "0x4200000000000000000000000000000000000006",
            SupportedChain.ARBITRUM: "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
            SupportedChain.POLYGON: "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619",
        },
    ),
)


class ChainRegistry:
    """
    Read-only view over chains, bridge edges and token addresses.

    All lookups are pure and deterministic. The constructor validates the
    tables (every edge and token address must name a registered chain) and
    freezes them; there is no mutation API.
    """

    def __init__(
        self,
        chains: Iterable[ChainInfo] = DEFAULT_CHAINS,
        edges: Iterable[BridgeEdge] = DEFAULT_EDGES,
        tokens: Iterable[TokenDescriptor] = DEFAULT_TOKENS,
        hub_chain_id: int = SupportedChain.ETHEREUM,
    ):
        chain_map = {chain.chain_id: chain for chain in chains}

        adjacency: dict[int, dict[int, str]] = {chain_id: {} for chain_id in chain_map}
        for edge in edges:
            for chain_id in (edge.source_chain, edge.target_chain):
                if chain_id not in chain_map:
                    raise ValueError(f"Bridge edge references unregistered chain {chain_id}")
            if edge.source_chain == edge.target_chain:
                raise ValueError(f"Bridge edge loops on chain {edge.source_chain}")
            adjacency[edge.source_chain][edge.target_chain] = edge.bridge_contract

        token_map: dict[str, TokenDescriptor] = {}
        for token in tokens:
            for chain_id in token.addresses:
                if chain_id not in chain_map:
                    raise ValueError(
                        f"Token {token.symbol} references unregistered chain {chain_id}"
                    )
            token_map[token.symbol.upper()] = token

        if hub_chain_id not in chain_map:
            raise ValueError(f"Hub chain {hub_chain_id} is not registered")

        self._chains: Mapping[int, ChainInfo] = MappingProxyType(chain_map)
        self._adjacency: Mapping[int, Mapping[int, str]] = MappingProxyType(
            {src: MappingProxyType(dict(targets)) for src, targets in adjacency.items()}
        )
        self._tokens: Mapping[str, TokenDescriptor] = MappingProxyType(token_map)
        self._hub_chain_id = hub_chain_id

    # ==================== Chains ====================

    def is_supported(self, chain_id: int) -> bool:
        """Check if a chain id is registered."""
        return chain_id in self._chains

    def chain_name(self, chain_id: int) -> str:
        """Display name for a chain, or "Unknown". Never raises."""
        chain = self._chains.get(chain_id)
        return chain.name if chain else UNKNOWN_CHAIN_NAME

    def chain(self, chain_id: int) -> ChainInfo:
        """
        Get the attributes of a registered chain.

        Raises:
            UnknownChainError: If the chain is not registered
        """
        try:
            return self._chains[chain_id]
        except KeyError:
            raise UnknownChainError(chain_id) from None

    def require(self, *chain_ids: int) -> None:
        """Raise UnknownChainError for the first unregistered chain id."""
        for chain_id in chain_ids:
            if chain_id not in self._chains:
                raise UnknownChainError(chain_id)

    def chains(self) -> list[ChainInfo]:
        """All registered chains, ordered by chain id."""
        return [self._chains[chain_id] for chain_id in sorted(self._chains)]

    @property
    def hub_chain_id(self) -> int:
        return self._hub_chain_id

    # ==================== Bridge Graph ====================

    def edges_from(self, chain_id: int) -> frozenset[int]:
        """Chains reachable from chain_id through a single bridge."""
        self.require(chain_id)
        return frozenset(self._adjacency[chain_id])

    def bridge_contract(self, source_chain: int, target_chain: int) -> str | None:
        """Bridge contract for a direct hop, or None if the pair has no bridge."""
        return self._adjacency.get(source_chain, {}).get(target_chain)

    def edges(self) -> list[BridgeEdge]:
        """Every direct bridge, ordered by (source, target)."""
        return [
            BridgeEdge(source_chain=src, target_chain=dst, bridge_contract=contract)
            for src in sorted(self._adjacency)
            for dst, contract in sorted(self._adjacency[src].items())
        ]

    def bridge_contracts_on(self, chain_id: int) -> list[str]:
        """Distinct bridge contracts deployed on a chain (outgoing edges)."""
        seen: dict[str, None] = {}
        for _, contract in sorted(self._adjacency.get(chain_id, {}).items()):
            seen.setdefault(contract, None)
        return list(seen)

    # ==================== Tokens ====================

    def token_symbols(self) -> list[str]:
        return sorted(self._tokens)

    def is_registered_token(self, symbol: str | None) -> bool:
        return symbol is not None and symbol.upper() in self._tokens

    def is_native(self, symbol: str | None) -> bool:
        """True when a symbol bridges the native asset (None or unregistered)."""
        return not self.is_registered_token(symbol)

    def token(self, symbol: str) -> TokenDescriptor | None:
        return self._tokens.get(symbol.upper())

    def token_address(self, symbol: str, chain_id: int) -> str | None:
        """Address of a registered token on a chain, or None if not mapped."""
        token = self._tokens.get(symbol.upper())
        if token is None:
            return None
        return token.addresses.get(chain_id)

    def resolve_token(self, symbol: str | None, chain_id: int) -> str | None:
        """
        Token address to use for a hop leaving chain_id.

        Unregistered symbols (and None) bridge the native asset and resolve
        to the zero-address sentinel. Registered symbols resolve to their
        address, or None when the token does not exist on that chain.
        """
        if self.is_native(symbol):
            return NATIVE_TOKEN_ADDRESS
        return self.token_address(symbol, chain_id)  # type: ignore[arg-type]

    def hop_supports_token(self, symbol: str | None, source_chain: int, target_chain: int) -> bool:
        """A registered token must exist on both ends of a hop that moves it."""
        if self.is_native(symbol):
            return True
        return (
            self.token_address(symbol, source_chain) is not None  # type: ignore[arg-type]
            and self.token_address(symbol, target_chain) is not None  # type: ignore[arg-type]
        )


# Process-wide registry, built once on first access
_registry: ChainRegistry | None = None


def get_chain_registry() -> ChainRegistry:
    """Get the process-wide chain registry built from the default tables."""
    global _registry
    if _registry is None:
        _registry = ChainRegistry()
        logger.debug(
            "chain_registry_initialized",
            chains=len(_registry.chains()),
            edges=len(_registry.edges()),
        )
    return _registry


def is_chain_supported(chain_id: int) -> bool:
    """Check if a chain id is in the default registry."""
    return get_chain_registry().is_supported(chain_id)


def get_chain_name(chain_id: int) -> str:
    """Display name for a chain id in the default registry."""
    return get_chain_registry().chain_name(chain_id)
