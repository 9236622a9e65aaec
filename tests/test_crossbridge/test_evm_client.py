"""
Tests for the EVM chain adapters.

AsyncWeb3 is patched out; these tests check translation of web3 responses
into crossbridge models and of web3 failures into ProviderError.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3 import Web3
from web3.exceptions import TransactionNotFound

from crossbridge.chains.evm_client import EVMChainProvider, LocalAccountSigner
from crossbridge.exceptions import ProviderError, SigningUnavailableError, UnknownChainError
from crossbridge.models import FeeData, LogFilter

TEST_PRIVATE_KEY = "0x" + "11" * 32
TX_HASH = "0x" + "ab" * 32


class AwaitableValue:
    """Stands in for web3 properties that are awaited, like eth.gas_price."""

    def __init__(self, value):
        self.value = value

    def __await__(self):
        return self._get().__await__()

    async def _get(self):
        return self.value


# ==================== Fixtures ====================


@pytest.fixture
def mock_web3():
    """Create a mock AsyncWeb3 instance."""
    mock_w3 = MagicMock()

    mock_eth = MagicMock()
    mock_eth.gas_price = AwaitableValue(3 * 10**9)
    mock_eth.max_priority_fee = AwaitableValue(10**8)
    mock_eth.block_number = AwaitableValue(120_000)
    mock_eth.get_block = AsyncMock(return_value={"baseFeePerGas": 10**9, "number": 120_000})
    mock_eth.get_transaction_count = AsyncMock(return_value=7)
    mock_eth.estimate_gas = AsyncMock(return_value=95_000)
    mock_eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex("ab" * 32))
    mock_eth.get_transaction_receipt = AsyncMock(
        return_value={"status": 1, "blockNumber": 12345, "logs": []}
    )
    mock_eth.get_logs = AsyncMock(return_value=[])

    mock_w3.eth = mock_eth
    mock_w3.to_checksum_address = MagicMock(side_effect=Web3.to_checksum_address)
    mock_w3.provider = MagicMock()
    mock_w3.provider.disconnect = AsyncMock()
    return mock_w3


@pytest.fixture
def provider(settings, registry, mock_web3):
    """Create an EVMChainProvider whose connections are the mock."""
    with patch("crossbridge.chains.evm_client.AsyncWeb3", return_value=mock_web3):
        with patch("crossbridge.chains.evm_client.AsyncHTTPProvider"):
            evm_provider = EVMChainProvider(settings, registry)
            evm_provider.get_web3(1)
            evm_provider.get_web3(8453)
    return evm_provider


# ==================== Connection Tests ====================


class TestConnections:
    """Tests for lazy connection management."""

    def test_lazy_connection(self, settings, registry, mock_web3):
        """Test that connections are created once per chain."""
        with patch("crossbridge.chains.evm_client.AsyncWeb3", return_value=mock_web3) as web3_cls:
            with patch("crossbridge.chains.evm_client.AsyncHTTPProvider") as http_cls:
                evm_provider = EVMChainProvider(settings, registry)
                first = evm_provider.get_web3(1)
                second = evm_provider.get_web3(1)

        assert first is second
        web3_cls.assert_called_once()
        http_cls.assert_called_once_with("https://rpc.example.com/1")

    def test_unknown_chain(self, settings, registry):
        """Test that unregistered chains are rejected."""
        with pytest.raises(UnknownChainError):
            EVMChainProvider(settings, registry).get_web3(999)

    def test_missing_endpoint(self, settings, registry):
        """Test that a registered chain without an endpoint is a provider error."""
        with pytest.raises(ProviderError, match="No RPC endpoint"):
            EVMChainProvider(settings, registry).get_web3(137)

    @pytest.mark.asyncio
    async def test_close(self, provider, mock_web3):
        """Test that close() disconnects and forgets connections."""
        await provider.close()

        mock_web3.provider.disconnect.assert_awaited()
        assert provider._clients == {}


# ==================== Fee Data Tests ====================


class TestFeeData:
    """Tests for fee data translation."""

    @pytest.mark.asyncio
    async def test_eip1559_fee_data(self, provider):
        """Test maxFeePerGas as twice the base fee plus priority fee."""
        fee_data = await provider.get_fee_data(1)

        assert fee_data == FeeData(
            gas_price=3 * 10**9,
            max_fee_per_gas=2 * 10**9 + 10**8,
            max_priority_fee_per_gas=10**8,
        )

    @pytest.mark.asyncio
    async def test_legacy_fee_data(self, provider, mock_web3):
        """Test chains that report no base fee."""
        mock_web3.eth.get_block.return_value = {"number": 1}

        fee_data = await provider.get_fee_data(1)

        assert fee_data.gas_price == 3 * 10**9
        assert fee_data.max_fee_per_gas is None

    @pytest.mark.asyncio
    async def test_rpc_failure(self, provider, mock_web3):
        """Test that RPC failures become ProviderError."""
        mock_web3.eth.get_block.side_effect = ConnectionError("reset by peer")

        with pytest.raises(ProviderError, match="reset by peer") as exc_info:
            await provider.get_fee_data(1)

        assert exc_info.value.chain_id == 1
        assert exc_info.value.retryable is True


# ==================== Receipt Tests ====================


class TestReceipts:
    """Tests for receipt translation."""

    @pytest.mark.asyncio
    async def test_receipt_with_logs(self, provider, mock_web3):
        """Test that receipts and their logs are normalized to hex."""
        mock_web3.eth.get_transaction_receipt.return_value = {
            "status": 1,
            "blockNumber": 777,
            "logs": [
                {
                    "address": "0x" + "4" * 40,
                    "topics": [bytes.fromhex("ee" * 32)],
                    "data": bytes.fromhex("00" * 31 + "05"),
                    "blockNumber": 777,
                    "logIndex": 2,
                    "transactionHash": bytes.fromhex("ab" * 32),
                }
            ],
        }

        receipt = await provider.get_transaction_receipt(1, TX_HASH)

        assert receipt.succeeded is True
        assert receipt.block_number == 777
        log = receipt.logs[0]
        assert log.topics == ["0x" + "ee" * 32]
        assert log.data == "0x" + "00" * 31 + "05"
        assert log.log_index == 2
        assert log.transaction_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_not_found_is_none(self, provider, mock_web3):
        """Test that unmined transactions return None."""
        mock_web3.eth.get_transaction_receipt.side_effect = TransactionNotFound("not found")

        assert await provider.get_transaction_receipt(1, TX_HASH) is None

    @pytest.mark.asyncio
    async def test_receipt_failure(self, provider, mock_web3):
        """Test that other errors become ProviderError."""
        mock_web3.eth.get_transaction_receipt.side_effect = TimeoutError("slow")

        with pytest.raises(ProviderError):
            await provider.get_transaction_receipt(1, TX_HASH)


# ==================== Log Query Tests ====================


class TestLogs:
    """Tests for log queries."""

    @pytest.mark.asyncio
    async def test_earliest_narrowed_to_lookback(self, provider, mock_web3, settings):
        """Test that unbounded ranges are narrowed to the lookback window."""
        log_filter = LogFilter(
            address=["0x" + "4" * 40],
            topics=["0x" + "ee" * 32, None, "0x" + "00" * 32],
        )

        await provider.get_logs(1, log_filter)

        params = mock_web3.eth.get_logs.await_args.args[0]
        assert params["fromBlock"] == 120_000 - settings.history_lookback_blocks
        assert params["toBlock"] == "latest"
        assert params["topics"][1] is None
        assert params["address"] == ["0x" + "4" * 40]

    @pytest.mark.asyncio
    async def test_explicit_range_kept(self, provider, mock_web3):
        """Test that explicit block ranges are passed through."""
        await provider.get_logs(1, LogFilter(from_block=10, to_block=20))

        params = mock_web3.eth.get_logs.await_args.args[0]
        assert params["fromBlock"] == 10
        assert params["toBlock"] == 20
        assert "address" not in params


class TestBlockTimestamps:
    """Tests for block time lookups."""

    @pytest.mark.asyncio
    async def test_timestamp_is_utc(self, provider, mock_web3):
        """Test that block timestamps are returned as aware UTC datetimes."""
        mock_web3.eth.get_block.return_value = {"number": 100, "timestamp": 1_700_000_000}

        result = await provider.get_block_timestamp(1, 100)

        assert result == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        mock_web3.eth.get_block.assert_awaited_once_with(100)

    @pytest.mark.asyncio
    async def test_failure_wrapped(self, provider, mock_web3):
        """Test that RPC failures become ProviderError."""
        mock_web3.eth.get_block.side_effect = ConnectionError("refused")

        with pytest.raises(ProviderError, match="block 100"):
            await provider.get_block_timestamp(1, 100)


# ==================== Signer Tests ====================


class TestLocalAccountSigner:
    """Tests for the local key signer."""

    def test_requires_key(self, provider):
        """Test that a signer cannot be built without a key."""
        with pytest.raises(SigningUnavailableError):
            LocalAccountSigner(provider)

    @pytest.mark.asyncio
    async def test_address(self, provider):
        """Test the signer address."""
        signer = LocalAccountSigner(provider, TEST_PRIVATE_KEY)

        assert await signer.get_address() == Web3.to_checksum_address(
            signer._account.address
        )

    @pytest.mark.asyncio
    async def test_send_eip1559(self, provider, mock_web3):
        """Test that EIP-1559 fees are used when available."""
        signer = LocalAccountSigner(provider, TEST_PRIVATE_KEY)
        signer._account = MagicMock(address="0x" + "1" * 40)
        signer._account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")

        tx_hash = await signer.send_transaction(8453, "0x" + "4" * 40, b"\x01\x02", value=5)

        tx = signer._account.sign_transaction.call_args.args[0]
        assert tx["chainId"] == 8453
        assert tx["nonce"] == 7
        assert tx["gas"] == 95_000
        assert tx["value"] == 5
        assert tx["maxFeePerGas"] == 2 * 10**9 + 10**8
        assert "gasPrice" not in tx
        mock_web3.eth.send_raw_transaction.assert_awaited_once_with(b"signed")
        assert tx_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_send_legacy(self, provider, mock_web3):
        """Test the legacy gas price path."""
        mock_web3.eth.get_block.return_value = {"number": 1}
        signer = LocalAccountSigner(provider, TEST_PRIVATE_KEY)
        signer._account = MagicMock(address="0x" + "1" * 40)
        signer._account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")

        await signer.send_transaction(1, "0x" + "4" * 40, b"")

        tx = signer._account.sign_transaction.call_args.args[0]
        assert tx["gasPrice"] == 3 * 10**9
        assert "maxFeePerGas" not in tx

    @pytest.mark.asyncio
    async def test_send_failure(self, provider, mock_web3):
        """Test that broadcast failures become ProviderError."""
        mock_web3.eth.send_raw_transaction.side_effect = ValueError("nonce too low")
        signer = LocalAccountSigner(provider, TEST_PRIVATE_KEY)

        with pytest.raises(ProviderError, match="nonce too low"):
            await signer.send_transaction(1, "0x" + "4" * 40, b"")
