"""
Bridge Status Tracker

Reports the state of a submitted hop from its source-chain receipt.

State machine:
    PENDING -> CONFIRMED   receipt with status 1
    PENDING -> FAILED      receipt with status 0 (reverted), or the provider
                           could not be reached after retries (indeterminate)

Terminal states are sticky: once a chain-backed CONFIRMED or FAILED/reverted
snapshot is observed it is cached and returned for every later query.
Indeterminate failures are never cached, so a later query may still observe
the real outcome.

Both the submitted and the terminal snapshots are held in LRU maps capped at
status_cache_size entries; an evicted hop is simply re-read from the chain.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Iterable
from datetime import UTC, datetime

import structlog

from ..chains.base_client import ChainDataProvider
from ..chains.events import (
    BRIDGE_INITIATED_TOPIC,
    BridgeEvent,
    address_topic,
    decode_bridge_event,
    find_bridge_event,
)
from ..chains.registry import ChainRegistry, get_chain_registry
from ..chains.retry import call_with_retry
from ..config import BridgeSettings, get_bridge_settings
from ..exceptions import DecodeError, ProviderError
from ..models import (
    BridgeState,
    BridgeStatus,
    FailureKind,
    Hop,
    LogFilter,
    TransactionReceipt,
)

logger = structlog.get_logger(__name__)

_StatusKey = tuple[int, str]


def _key(source_chain: int, tx_hash: str) -> _StatusKey:
    return (source_chain, tx_hash.lower())


class StatusTracker:
    """
    Tracks hop transactions by (source chain, transaction hash).

    Hops submitted through the executor are registered first, so a pending
    snapshot already carries the target chain and amount before the receipt
    exists.
    """

    def __init__(
        self,
        provider: ChainDataProvider,
        registry: ChainRegistry | None = None,
        settings: BridgeSettings | None = None,
    ):
        self._provider = provider
        self._registry = registry or get_chain_registry()
        self._settings = settings or get_bridge_settings()
        self._submitted: OrderedDict[_StatusKey, BridgeStatus] = OrderedDict()
        self._terminal: OrderedDict[_StatusKey, BridgeStatus] = OrderedDict()

    def _remember(
        self,
        cache: OrderedDict[_StatusKey, BridgeStatus],
        key: _StatusKey,
        status: BridgeStatus,
    ) -> None:
        cache[key] = status
        cache.move_to_end(key)
        while len(cache) > self._settings.status_cache_size:
            cache.popitem(last=False)

    def register(self, tx_hash: str, hop: Hop, amount: int, recipient: str | None = None) -> BridgeStatus:
        """Record a freshly submitted hop and return its pending snapshot."""
        status = BridgeStatus(
            transaction_hash=tx_hash,
            state=BridgeState.PENDING,
            source_chain=hop.from_chain,
            target_chain=hop.to_chain,
            amount=amount,
            recipient=recipient,
            token_address=hop.token_address,
        )
        self._remember(self._submitted, _key(hop.from_chain, tx_hash), status)
        logger.debug("hop_registered", tx_hash=tx_hash, source_chain=hop.from_chain)
        return status

    def cached_status(self, tx_hash: str, source_chain: int) -> BridgeStatus | None:
        """Cached terminal snapshot, if one has been observed."""
        return self._terminal.get(_key(source_chain, tx_hash))

    async def get_status(self, tx_hash: str, source_chain: int) -> BridgeStatus:
        """
        Current status of a hop transaction.

        Never raises for provider trouble: exhausted retries yield a FAILED
        snapshot marked indeterminate.

        Raises:
            UnknownChainError: If source_chain is not registered
        """
        self._registry.require(source_chain)
        key = _key(source_chain, tx_hash)

        cached = self._terminal.get(key)
        if cached is not None:
            self._terminal.move_to_end(key)
            return cached

        try:
            receipt: TransactionReceipt | None = await call_with_retry(
                self._settings,
                lambda: self._provider.get_transaction_receipt(source_chain, tx_hash),
            )
        except ProviderError as e:
            logger.warning(
                "status_indeterminate",
                tx_hash=tx_hash,
                source_chain=source_chain,
                error=str(e),
            )
            return self._indeterminate(tx_hash, source_chain)

        if receipt is None:
            return self._pending(tx_hash, source_chain)

        status = self._from_receipt(tx_hash, source_chain, receipt)
        self._remember(self._terminal, key, status)
        self._submitted.pop(key, None)
        logger.info(
            "hop_terminal",
            tx_hash=tx_hash,
            source_chain=source_chain,
            state=status.state.value,
            block_number=status.block_number,
        )
        return status

    async def wait_for_terminal(
        self,
        tx_hash: str,
        source_chain: int,
        timeout: float | None = None,
    ) -> BridgeStatus:
        """
        Poll until the hop reaches a terminal state or the timeout elapses.

        Polling backs off geometrically up to poll_interval_max_seconds. A
        timeout yields a FAILED snapshot marked indeterminate.
        """
        if timeout is None:
            timeout = self._settings.confirmation_timeout_seconds

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        interval = self._settings.poll_interval_seconds

        while True:
            status = await self.get_status(tx_hash, source_chain)
            if status.state != BridgeState.PENDING:
                return status

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(
                    "confirmation_timeout",
                    tx_hash=tx_hash,
                    source_chain=source_chain,
                    timeout_seconds=timeout,
                )
                return self._indeterminate(tx_hash, source_chain)

            await asyncio.sleep(min(interval, remaining))
            interval = min(
                interval * self._settings.poll_backoff_factor,
                self._settings.poll_interval_max_seconds,
            )

    async def get_history(self, address: str, limit: int = 10) -> list[BridgeStatus]:
        """
        Bridge transfers sent or received by an address, newest first.

        Scans BridgeInitiated events on every chain with outgoing bridge
        contracts, within the configured lookback window. Block heights are
        not comparable across chains, so entries are ordered by block time,
        then block number and log index.

        Raises:
            ValueError: If limit is negative
            ProviderError: If a chain's logs or block times cannot be fetched after
                retries
        """
        if limit < 0:
            raise ValueError("Limit must be non-negative")
        if limit == 0:
            return []

        # A self-transfer matches both the sender and recipient queries
        seen: dict[tuple[int, str, int], tuple[int, BridgeEvent]] = {}
        for chain in self._registry.chains():
            chain_id = chain.chain_id
            contracts = self._registry.bridge_contracts_on(chain_id)
            if not contracts:
                continue
            for event in await self._scan_chain(chain_id, contracts, address):
                key = (chain_id, event.transaction_hash.lower(), event.log_index)
                seen.setdefault(key, (chain_id, event))

        timestamps = await self._block_timestamps(seen.values())

        def newest(item: tuple[int, BridgeEvent]) -> tuple[datetime, int, int]:
            chain_id, event = item
            return (timestamps[(chain_id, event.block_number)], event.block_number, event.log_index)

        newest_first = sorted(seen.values(), key=newest, reverse=True)
        return [
            self._from_event(chain_id, event, timestamps[(chain_id, event.block_number)])
            for chain_id, event in newest_first[:limit]
        ]

    async def _block_timestamps(
        self,
        events: Iterable[tuple[int, BridgeEvent]],
    ) -> dict[tuple[int, int], datetime]:
        blocks = sorted({(chain_id, event.block_number) for chain_id, event in events})
        times = await asyncio.gather(*(
            call_with_retry(
                self._settings,
                lambda c=chain_id, b=block: self._provider.get_block_timestamp(c, b),
            )
            for chain_id, block in blocks
        ))
        return dict(zip(blocks, times))

    async def _scan_chain(
        self,
        chain_id: int,
        contracts: list[str],
        address: str,
    ) -> list[BridgeEvent]:
        topic = address_topic(address)
        filters = [
            LogFilter(address=contracts, topics=[BRIDGE_INITIATED_TOPIC, topic]),
            LogFilter(address=contracts, topics=[BRIDGE_INITIATED_TOPIC, None, topic]),
        ]

        found: list[BridgeEvent] = []
        for log_filter in filters:
            logs = await call_with_retry(
                self._settings,
                lambda f=log_filter: self._provider.get_logs(chain_id, f),
            )
            for log in logs:
                try:
                    found.append(decode_bridge_event(log))
                except DecodeError as e:
                    logger.debug("history_log_skipped", chain_id=chain_id, error=str(e))
        return found

    # ==================== Snapshot builders ====================

    def _pending(self, tx_hash: str, source_chain: int) -> BridgeStatus:
        submitted = self._submitted.get(_key(source_chain, tx_hash))
        if submitted is not None:
            return submitted
        return BridgeStatus(
            transaction_hash=tx_hash,
            state=BridgeState.PENDING,
            source_chain=source_chain,
        )

    def _indeterminate(self, tx_hash: str, source_chain: int) -> BridgeStatus:
        submitted = self._submitted.get(_key(source_chain, tx_hash))
        if submitted is not None:
            return submitted.model_copy(
                update={
                    "state": BridgeState.FAILED,
                    "failure": FailureKind.INDETERMINATE,
                    "timestamp": datetime.now(UTC),
                }
            )
        return BridgeStatus(
            transaction_hash=tx_hash,
            state=BridgeState.FAILED,
            source_chain=source_chain,
            failure=FailureKind.INDETERMINATE,
        )

    def _from_receipt(
        self,
        tx_hash: str,
        source_chain: int,
        receipt: TransactionReceipt,
    ) -> BridgeStatus:
        submitted = self._submitted.get(_key(source_chain, tx_hash))
        fields = {
            "transaction_hash": tx_hash,
            "source_chain": source_chain,
            "block_number": receipt.block_number,
        }
        if submitted is not None:
            fields.update(
                target_chain=submitted.target_chain,
                amount=submitted.amount,
                recipient=submitted.recipient,
                token_address=submitted.token_address,
            )

        if not receipt.succeeded:
            return BridgeStatus(state=BridgeState.FAILED, failure=FailureKind.REVERTED, **fields)

        event = find_bridge_event(receipt, self._registry.bridge_contracts_on(source_chain))
        if event is not None:
            fields.update(
                target_chain=event.target_chain,
                amount=event.amount,
                recipient=event.recipient,
                token_address=event.token,
            )
        return BridgeStatus(state=BridgeState.CONFIRMED, **fields)

    def _from_event(
        self,
        source_chain: int,
        event: BridgeEvent,
        timestamp: datetime,
    ) -> BridgeStatus:
        return BridgeStatus(
            transaction_hash=event.transaction_hash,
            state=BridgeState.CONFIRMED,
            source_chain=source_chain,
            timestamp=timestamp,
            target_chain=event.target_chain,
            amount=event.amount,
            block_number=event.block_number,
            recipient=event.recipient,
            token_address=event.token,
        )
