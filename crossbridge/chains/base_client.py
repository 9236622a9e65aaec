"""
Chain Access Interfaces

Abstract base classes for the two external collaborators the bridge core
talks to:

- ChainDataProvider: read access to chain state (fee data, receipts, logs,
  block times)
- TransactionSigner: the wallet that signs and broadcasts bridge calls

The core never imports an RPC library directly. Concrete implementations
(see evm_client.py) translate their native responses into the models in
crossbridge.models and raise ProviderError for transient failures.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from ..models import FeeData, LogEntry, LogFilter, TransactionReceipt


class ChainDataProvider(ABC):
    """
    Read access to chain state across every registered chain.

    Implementations raise ProviderError for transport failures, rate limits
    and other conditions that may succeed on retry.
    """

    @abstractmethod
    async def get_fee_data(self, chain_id: int) -> FeeData:
        """
        Get current fee data for a chain.

        Args:
            chain_id: Chain to query

        Returns:
            FeeData with legacy gas price and EIP-1559 fields where available
        """
        pass

    @abstractmethod
    async def get_transaction_receipt(
        self,
        chain_id: int,
        tx_hash: str,
    ) -> TransactionReceipt | None:
        """
        Get the receipt of a transaction.

        Args:
            chain_id: Chain the transaction was sent on
            tx_hash: Transaction hash

        Returns:
            The receipt, or None if the transaction is not mined yet
        """
        pass

    @abstractmethod
    async def get_logs(self, chain_id: int, log_filter: LogFilter) -> list[LogEntry]:
        """
        Get event logs matching a filter.

        Args:
            chain_id: Chain to query
            log_filter: Contract addresses, topics and block range

        Returns:
            Matching logs in chain order
        """
        pass

    @abstractmethod
    async def get_block_timestamp(self, chain_id: int, block_number: int) -> datetime:
        """
        Get the timestamp of a block.

        Block heights are only comparable within one chain; timestamps order
        events across chains.

        Returns:
            Timezone-aware UTC datetime
        """
        pass

    async def close(self) -> None:
        """Release connections held by the provider."""
        return None


class TransactionSigner(ABC):
    """A wallet able to sign and broadcast transactions."""

    @abstractmethod
    async def get_address(self) -> str:
        """Address transactions are sent from."""
        pass

    @abstractmethod
    async def send_transaction(
        self,
        chain_id: int,
        to_address: str,
        data: bytes,
        value: int = 0,
    ) -> str:
        """
        Sign and broadcast a transaction. Does not wait for inclusion.

        Args:
            chain_id: Chain to broadcast on
            to_address: Contract being called
            data: ABI-encoded calldata
            value: Native value in wei

        Returns:
            The transaction hash (0x-prefixed hex)
        """
        pass
