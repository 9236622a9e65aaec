"""
EVM Chain Adapters

Concrete implementations of the chain access interfaces for EVM-compatible
chains. They use web3.py (AsyncWeb3 over HTTP) for reads and eth_account for
local signing.

- EVMChainProvider: one AsyncWeb3 connection per registered chain, opened
  lazily from the configured RPC endpoints
- LocalAccountSigner: signs with a local private key, EIP-1559 fees when the
  chain reports a base fee, legacy gas price otherwise

Both translate web3 failures into ProviderError so the core can retry them.
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound

from ..config import BridgeSettings, get_bridge_settings
from ..exceptions import ProviderError, SigningUnavailableError
from ..models import FeeData, LogEntry, LogFilter, TransactionReceipt
from .base_client import ChainDataProvider, TransactionSigner
from .registry import ChainRegistry, get_chain_registry

logger = structlog.get_logger(__name__)


def _to_log_entry(raw: Any) -> LogEntry:
    return LogEntry(
        address=raw["address"],
        topics=[Web3.to_hex(topic) for topic in raw["topics"]],
        data=Web3.to_hex(raw["data"]),
        block_number=raw["blockNumber"],
        log_index=raw["logIndex"],
        transaction_hash=Web3.to_hex(raw["transactionHash"]),
    )


class EVMChainProvider(ChainDataProvider):
    """
    Chain data provider backed by web3.py.

    Connections are created on first use for each chain, so a process that
    only ever touches Base never opens an Ethereum connection.
    """

    def __init__(
        self,
        settings: BridgeSettings | None = None,
        registry: ChainRegistry | None = None,
    ) -> None:
        self.config = settings or get_bridge_settings()
        self._registry = registry or get_chain_registry()
        self._clients: dict[int, AsyncWeb3] = {}

    def get_web3(self, chain_id: int) -> AsyncWeb3:
        """
        Return the AsyncWeb3 connection for a chain, creating it if needed.

        Raises:
            UnknownChainError: If the chain is not registered
            ProviderError: If no RPC endpoint is configured for the chain
        """
        self._registry.require(chain_id)
        if chain_id not in self._clients:
            endpoint = self.config.get_rpc_endpoint(chain_id)
            if not endpoint:
                raise ProviderError(
                    f"No RPC endpoint configured for chain {chain_id}", chain_id=chain_id
                )
            self._clients[chain_id] = AsyncWeb3(AsyncHTTPProvider(endpoint))
            logger.info("rpc_connection_created", chain_id=chain_id, endpoint=endpoint)
        return self._clients[chain_id]

    async def close(self) -> None:
        """Disconnect every provider and drop cached connections."""
        for w3 in self._clients.values():
            if hasattr(w3.provider, "disconnect"):
                await w3.provider.disconnect()
        self._clients.clear()

    async def get_fee_data(self, chain_id: int) -> FeeData:
        """
        Get current fee data for a chain.

        maxFeePerGas follows the common wallet heuristic of twice the latest
        base fee plus the suggested priority fee.
        """
        w3 = self.get_web3(chain_id)
        try:
            gas_price: int = await w3.eth.gas_price
            latest_block: Any = await w3.eth.get_block("latest")
            base_fee: int | None = latest_block.get("baseFeePerGas")

            if base_fee is None:
                return FeeData(gas_price=gas_price)

            max_priority_fee: int = await w3.eth.max_priority_fee
            return FeeData(
                gas_price=gas_price,
                max_fee_per_gas=base_fee * 2 + max_priority_fee,
                max_priority_fee_per_gas=max_priority_fee,
            )
        except Exception as e:
            raise ProviderError(
                f"Failed to fetch fee data on chain {chain_id}: {e}", chain_id=chain_id
            ) from e

    async def get_transaction_receipt(
        self,
        chain_id: int,
        tx_hash: str,
    ) -> TransactionReceipt | None:
        """Get a normalized receipt, or None while the transaction is unmined."""
        w3 = self.get_web3(chain_id)
        try:
            receipt: Any = await w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        except Exception as e:
            raise ProviderError(
                f"Failed to fetch receipt {tx_hash} on chain {chain_id}: {e}",
                chain_id=chain_id,
            ) from e

        if receipt is None:
            return None

        return TransactionReceipt(
            transaction_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt["blockNumber"],
            logs=[_to_log_entry(log) for log in receipt.get("logs", [])],
        )

    async def get_logs(self, chain_id: int, log_filter: LogFilter) -> list[LogEntry]:
        """
        Get event logs matching a filter.

        An "earliest" lower bound is narrowed to the configured lookback
        window, since most public endpoints reject unbounded ranges.
        """
        w3 = self.get_web3(chain_id)
        try:
            from_block = log_filter.from_block
            if from_block == "earliest":
                latest: int = await w3.eth.block_number
                from_block = max(0, latest - self.config.history_lookback_blocks)

            params: dict[str, Any] = {
                "fromBlock": from_block,
                "toBlock": log_filter.to_block,
                "topics": log_filter.topics,
            }
            if log_filter.address:
                params["address"] = [
                    w3.to_checksum_address(address) for address in log_filter.address
                ]

            raw_logs: Any = await w3.eth.get_logs(params)  # type: ignore[arg-type]
        except Exception as e:
            raise ProviderError(
                f"Failed to fetch logs on chain {chain_id}: {e}", chain_id=chain_id
            ) from e

        return [_to_log_entry(raw) for raw in raw_logs]

    async def get_block_timestamp(self, chain_id: int, block_number: int) -> datetime:
        """Get the timestamp of a specific block, in UTC."""
        w3 = self.get_web3(chain_id)
        try:
            block: Any = await w3.eth.get_block(block_number)
        except Exception as e:
            raise ProviderError(
                f"Failed to fetch block {block_number} on chain {chain_id}: {e}",
                chain_id=chain_id,
            ) from e
        return datetime.fromtimestamp(block["timestamp"], tz=UTC)


class LocalAccountSigner(TransactionSigner):
    """
    Signer backed by a local private key.

    The key is read once at construction; it is never logged.
    """

    def __init__(
        self,
        provider: EVMChainProvider,
        private_key: str | None = None,
    ) -> None:
        key = private_key or provider.config.signer_private_key
        if not key:
            raise SigningUnavailableError("No signer private key configured")

        self._account: LocalAccount = Account.from_key(key)
        self._provider = provider
        logger.info("signer_loaded", address=self._account.address)

    async def get_address(self) -> str:
        return self._account.address

    async def send_transaction(
        self,
        chain_id: int,
        to_address: str,
        data: bytes,
        value: int = 0,
    ) -> str:
        """Build, sign and broadcast a transaction on chain_id."""
        w3 = self._provider.get_web3(chain_id)
        fee_data = await self._provider.get_fee_data(chain_id)

        try:
            tx: dict[str, Any] = {
                "from": self._account.address,
                "to": w3.to_checksum_address(to_address),
                "value": value,
                "data": data,
                "nonce": await w3.eth.get_transaction_count(self._account.address, "pending"),
                "chainId": chain_id,
            }
            tx["gas"] = await w3.eth.estimate_gas(tx)  # type: ignore[arg-type]

            if fee_data.max_fee_per_gas is not None:
                tx["maxFeePerGas"] = fee_data.max_fee_per_gas
                tx["maxPriorityFeePerGas"] = fee_data.max_priority_fee_per_gas or 0
            else:
                tx["gasPrice"] = fee_data.gas_price

            signed_tx: Any = self._account.sign_transaction(tx)
            tx_hash: Any = await w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception as e:
            raise ProviderError(
                f"Failed to submit transaction on chain {chain_id}: {e}", chain_id=chain_id
            ) from e

        return Web3.to_hex(tx_hash)
