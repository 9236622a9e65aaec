"""
Chain Access Package

Chain registry, provider/signer interfaces, the bridge contract ABI subset
and the web3.py-backed adapters.

Usage:
    from crossbridge.chains import EVMChainProvider, get_chain_registry

    registry = get_chain_registry()
    provider = EVMChainProvider()
    fee_data = await provider.get_fee_data(8453)
"""

from .base_client import ChainDataProvider, TransactionSigner
from .events import (
    BRIDGE_ABI,
    BRIDGE_INITIATED_TOPIC,
    BridgeEvent,
    decode_bridge_event,
    encode_bridge_eth,
    encode_bridge_token,
    find_bridge_event,
)
from .evm_client import EVMChainProvider, LocalAccountSigner
from .registry import (
    UNKNOWN_CHAIN_NAME,
    ChainRegistry,
    SupportedChain,
    get_chain_name,
    get_chain_registry,
    is_chain_supported,
)
from .retry import call_with_retry

__all__ = [
    # Interfaces
    "ChainDataProvider",
    "TransactionSigner",
    # Registry
    "ChainRegistry",
    "SupportedChain",
    "UNKNOWN_CHAIN_NAME",
    "get_chain_registry",
    "is_chain_supported",
    "get_chain_name",
    # Bridge ABI
    "BRIDGE_ABI",
    "BRIDGE_INITIATED_TOPIC",
    "BridgeEvent",
    "decode_bridge_event",
    "encode_bridge_eth",
    "encode_bridge_token",
    "find_bridge_event",
    # Adapters
    "EVMChainProvider",
    "LocalAccountSigner",
    "call_with_retry",
]
