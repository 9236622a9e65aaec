"""
Tests for the Chain Registry.

Covers chain lookups, the bridge graph, token resolution and table
validation.
"""

import pytest

from crossbridge.chains.registry import (
    UNKNOWN_CHAIN_NAME,
    ChainRegistry,
    SupportedChain,
    get_chain_name,
    get_chain_registry,
    is_chain_supported,
)
from crossbridge.exceptions import UnknownChainError
from crossbridge.models import NATIVE_TOKEN_ADDRESS, BridgeEdge, ChainInfo, TokenDescriptor


# ==================== Chain Lookup Tests ====================


class TestChainLookup:
    """Tests for chain membership and attributes."""

    def test_default_chains_supported(self, registry):
        """Test that every default chain is supported."""
        for chain_id in (1, 8453, 10, 42161, 137):
            assert registry.is_supported(chain_id) is True

    def test_unknown_chain_not_supported(self, registry):
        """Test that an unregistered chain is reported as unsupported."""
        assert registry.is_supported(999) is False

    def test_chain_name(self, registry):
        """Test display names."""
        assert registry.chain_name(1) == "Ethereum"
        assert registry.chain_name(8453) == "Base"

    def test_unknown_chain_name(self, registry):
        """Test that an unknown chain gets the placeholder name."""
        assert registry.chain_name(999) == UNKNOWN_CHAIN_NAME == "Unknown"

    def test_chain_attributes(self, registry):
        """Test per-chain latency and gas fee attributes."""
        assert registry.chain(8453).base_latency_minutes == 10
        assert registry.chain(1).base_latency_minutes == 20
        assert registry.chain(8453).base_gas_fee_wei == 10**15

    def test_chain_unknown_raises(self, registry):
        """Test that chain() raises for unregistered ids."""
        with pytest.raises(UnknownChainError) as exc_info:
            registry.chain(999)

        assert exc_info.value.chain_id == 999

    def test_require_reports_first_unknown(self, registry):
        """Test that require() names the first unregistered chain."""
        with pytest.raises(UnknownChainError) as exc_info:
            registry.require(1, 777, 999)

        assert exc_info.value.chain_id == 777

    def test_chains_sorted_by_id(self, registry):
        """Test that chains() is ordered by chain id."""
        ids = [chain.chain_id for chain in registry.chains()]
        assert ids == sorted(ids)
        assert len(ids) == 5

    def test_hub_is_ethereum(self, registry):
        """Test the default hub chain."""
        assert registry.hub_chain_id == SupportedChain.ETHEREUM


# ==================== Bridge Graph Tests ====================


class TestBridgeGraph:
    """Tests for the directed bridge graph."""

    def test_edges_from_ethereum(self, registry):
        """Test outgoing edges from the hub."""
        assert registry.edges_from(1) == frozenset({8453, 10, 42161, 137})

    def test_polygon_has_no_outgoing_edges(self, registry):
        """Test that Polygon is receive-only in the default tables."""
        assert registry.edges_from(137) == frozenset()

    def test_edges_from_unknown_raises(self, registry):
        """Test that edges_from() validates the chain."""
        with pytest.raises(UnknownChainError):
            registry.edges_from(999)

    def test_bridge_contract(self, registry):
        """Test direct bridge contract lookup."""
        assert registry.bridge_contract(1, 8453) == "0x3154Cf16ccdb4C6d922629664174b904d80F2C35"
        assert registry.bridge_contract(10, 42161) is None
        assert registry.bridge_contract(999, 1) is None

    def test_edges_listing(self, registry):
        """Test that every edge is listed in (source, target) order."""
        edges = registry.edges()
        pairs = [(edge.source_chain, edge.target_chain) for edge in edges]

        assert len(edges) == 8
        assert pairs == sorted(pairs)

    def test_bridge_contracts_on_deduplicates(self):
        """Test that a contract serving several targets is listed once."""
        registry = ChainRegistry(
            chains=[ChainInfo(chain_id=i, name=f"C{i}") for i in (1, 2, 3)],
            edges=[
                BridgeEdge(source_chain=1, target_chain=2, bridge_contract="0xabc"),
                BridgeEdge(source_chain=1, target_chain=3, bridge_contract="0xabc"),
            ],
            tokens=[],
        )

        assert registry.bridge_contracts_on(1) == ["0xabc"]
        assert registry.bridge_contracts_on(2) == []

    def test_tables_are_read_only(self, registry):
        """Test that the underlying tables cannot be mutated."""
        with pytest.raises(TypeError):
            registry._chains[5] = ChainInfo(chain_id=5, name="Goerli")


# ==================== Token Tests ====================


class TestTokens:
    """Tests for token resolution."""

    def test_token_symbols(self, registry):
        """Test registered symbols."""
        assert registry.token_symbols() == ["USDC", "WETH"]

    def test_token_address_case_insensitive(self, registry):
        """Test that symbols are matched case-insensitively."""
        assert registry.token_address("usdc", 8453) == "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

    def test_resolve_unregistered_symbol_is_native(self, registry):
        """Test that unknown symbols bridge the native asset."""
        assert registry.resolve_token("DOGE", 1) == NATIVE_TOKEN_ADDRESS
        assert registry.resolve_token(None, 1) == NATIVE_TOKEN_ADDRESS

    def test_is_native(self, registry):
        """Test native classification of symbols."""
        assert registry.is_native(None) is True
        assert registry.is_native("ETH") is True
        assert registry.is_native("weth") is False

    def test_resolve_registered_symbol(self, registry):
        """Test that registered symbols resolve to their address."""
        assert registry.resolve_token("WETH", 10) == "0x4200000000000000000000000000000000000006"

    def test_hop_supports_token(self):
        """Test that a registered token must exist on both ends of a hop."""
        registry = ChainRegistry(
            chains=[ChainInfo(chain_id=i, name=f"C{i}") for i in (1, 2)],
            edges=[BridgeEdge(source_chain=1, target_chain=2, bridge_contract="0xabc")],
            tokens=[TokenDescriptor(symbol="TKN", addresses={1: "0x" + "4" * 40})],
        )

        assert registry.hop_supports_token("TKN", 1, 2) is False
        assert registry.hop_supports_token("OTHER", 1, 2) is True
        assert registry.hop_supports_token(None, 1, 2) is True


# ==================== Validation Tests ====================


class TestRegistryValidation:
    """Tests for table validation at construction."""

    def test_edge_to_unregistered_chain(self):
        """Test that edges must name registered chains."""
        with pytest.raises(ValueError, match="unregistered chain 2"):
            ChainRegistry(
                chains=[ChainInfo(chain_id=1, name="One")],
                edges=[BridgeEdge(source_chain=1, target_chain=2, bridge_contract="0xabc")],
                tokens=[],
            )

    def test_self_loop_rejected(self):
        """Test that an edge cannot loop on one chain."""
        with pytest.raises(ValueError, match="loops"):
            ChainRegistry(
                chains=[ChainInfo(chain_id=1, name="One")],
                edges=[BridgeEdge(source_chain=1, target_chain=1, bridge_contract="0xabc")],
                tokens=[],
                hub_chain_id=1,
            )

    def test_token_on_unregistered_chain(self):
        """Test that token addresses must name registered chains."""
        with pytest.raises(ValueError, match="Token TKN"):
            ChainRegistry(
                chains=[ChainInfo(chain_id=1, name="One")],
                edges=[],
                tokens=[TokenDescriptor(symbol="TKN", addresses={5: "0xabc"})],
                hub_chain_id=1,
            )

    def test_hub_must_be_registered(self):
        """Test that the hub chain must be registered."""
        with pytest.raises(ValueError, match="Hub chain"):
            ChainRegistry(chains=[ChainInfo(chain_id=2, name="Two")], edges=[], tokens=[])


# ==================== Module Helper Tests ====================


class TestModuleHelpers:
    """Tests for the process-wide registry helpers."""

    def test_singleton(self):
        """Test that the process-wide registry is created once."""
        assert get_chain_registry() is get_chain_registry()

    def test_is_chain_supported(self):
        """Test the module-level membership helper."""
        assert is_chain_supported(8453) is True
        assert is_chain_supported(999) is False

    def test_get_chain_name(self):
        """Test the module-level name helper."""
        assert get_chain_name(42161) == "Arbitrum"
        assert get_chain_name(999) == "Unknown"
