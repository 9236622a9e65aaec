"""
Shared fixtures for crossbridge tests.

Provides settings without retry or polling delays, mock chain data
providers and signers, and a factory for BridgeInitiated logs.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode
from web3 import Web3

from crossbridge.chains.base_client import ChainDataProvider, TransactionSigner
from crossbridge.chains.events import BRIDGE_INITIATED_TOPIC, address_topic
from crossbridge.chains.registry import ChainRegistry
from crossbridge.config import BridgeSettings
from crossbridge.models import FeeData, LogEntry, TransactionReceipt

SENDER = "0x" + "1" * 40
RECIPIENT = "0x" + "2" * 40
TOKEN = "0x" + "3" * 40


# ==================== Settings and Registry ====================


@pytest.fixture
def settings():
    """Settings with no retry or polling delays."""
    return BridgeSettings(
        provider_max_attempts=3,
        provider_retry_min_seconds=0,
        provider_retry_max_seconds=0,
        poll_interval_seconds=0,
        poll_interval_max_seconds=0,
        confirmation_timeout_seconds=5,
        signer_private_key=None,
        rpc_endpoints={1: "https://rpc.example.com/1", 8453: "https://rpc.example.com/8453"},
    )


@pytest.fixture
def registry():
    """The default chain registry."""
    return ChainRegistry()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons before and after each test."""
    import crossbridge.bridge.service as service_module
    import crossbridge.chains.registry as registry_module
    import crossbridge.config as config_module

    saved = (
        config_module._settings,
        registry_module._registry,
        service_module._bridge_service,
    )
    config_module._settings = None
    registry_module._registry = None
    service_module._bridge_service = None
    yield
    (
        config_module._settings,
        registry_module._registry,
        service_module._bridge_service,
    ) = saved


# ==================== Chain Mocks ====================


@pytest.fixture
def mock_provider():
    """
    Create a mock chain data provider with 10 gwei gas and no receipts.

    Block timestamps default to the block number in seconds since the epoch.
    """
    provider = MagicMock(spec=ChainDataProvider)
    provider.get_fee_data = AsyncMock(return_value=FeeData(gas_price=10_000_000_000))
    provider.get_transaction_receipt = AsyncMock(return_value=None)
    provider.get_logs = AsyncMock(return_value=[])
    provider.get_block_timestamp = AsyncMock(
        side_effect=lambda chain_id, block_number: datetime.fromtimestamp(block_number, UTC)
    )
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def mock_signer():
    """Create a mock signer returning sequential transaction hashes."""
    signer = MagicMock(spec=TransactionSigner)
    signer.get_address = AsyncMock(return_value=SENDER)
    hashes = iter("0x" + f"{i:064x}" for i in range(1, 100))
    signer.send_transaction = AsyncMock(side_effect=lambda **kwargs: next(hashes))
    return signer


@pytest.fixture
def bridge_log():
    """Factory for BridgeInitiated logs."""

    def _make(
        sender: str = SENDER,
        recipient: str = RECIPIENT,
        token: str = TOKEN,
        amount: int = 10**18,
        target_chain: int = 8453,
        block_number: int = 100,
        log_index: int = 0,
        transaction_hash: str = "0x" + "a" * 64,
        contract: str = "0x3154Cf16ccdb4C6d922629664174b904d80F2C35",
    ) -> LogEntry:
        data = encode(["address", "uint256", "uint32"], [token, amount, target_chain])
        return LogEntry(
            address=contract,
            topics=[BRIDGE_INITIATED_TOPIC, address_topic(sender), address_topic(recipient)],
            data=Web3.to_hex(data),
            block_number=block_number,
            log_index=log_index,
            transaction_hash=transaction_hash,
        )

    return _make


@pytest.fixture
def receipt():
    """Factory for transaction receipts."""

    def _make(
        tx_hash: str,
        status: int = 1,
        block_number: int = 100,
        logs: list[LogEntry] | None = None,
    ) -> TransactionReceipt:
        return TransactionReceipt(
            transaction_hash=tx_hash,
            status=status,
            block_number=block_number,
            logs=logs or [],
        )

    return _make
