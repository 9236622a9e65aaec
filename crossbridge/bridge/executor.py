"""
Bridge Executor

Submits bridge hops through a TransactionSigner and drives multi-hop routes.

Route execution is strictly sequential: hop i+1 is only submitted once the
tracker reports hop i CONFIRMED on its source chain. A failed hop aborts the
route and the result reports how far the funds got. Cancellation is
cooperative and only observed between hops, never while a hop is in flight.

Intermediate hops pay out to the signer itself; only the final hop pays the
recipient.
"""

import asyncio

import structlog

from ..chains.base_client import TransactionSigner
from ..chains.events import encode_bridge_eth, encode_bridge_token
from ..chains.registry import ChainRegistry, get_chain_registry
from ..exceptions import BridgeError, SigningUnavailableError, UnsupportedHopError
from ..fees.estimator import FeeEstimator
from ..models import BridgeState, BridgeStatus, Hop, RouteExecution, RouteOutcome, RoutePlan
from ..monitoring.logging import bind_context, log_duration, unbind_context
from .tracker import StatusTracker

logger = structlog.get_logger(__name__)


class BridgeExecutor:
    """
    Submits hops and executes route plans.

    A signer is optional so read-only deployments can share the same wiring;
    submission without one raises SigningUnavailableError.
    """

    def __init__(
        self,
        tracker: StatusTracker,
        signer: TransactionSigner | None = None,
        registry: ChainRegistry | None = None,
        confirmation_timeout: float | None = None,
        estimator: FeeEstimator | None = None,
    ):
        self._tracker = tracker
        self._estimator = estimator
        self._signer = signer
        self._registry = registry or get_chain_registry()
        self._confirmation_timeout = confirmation_timeout

    @property
    def can_sign(self) -> bool:
        return self._signer is not None

    async def submit_hop(self, hop: Hop, amount: int, recipient: str) -> str:
        """
        Encode and broadcast a single bridge hop. Does not wait for inclusion.

        Args:
            hop: Hop to submit (broadcast on hop.from_chain)
            amount: Amount in base units
            recipient: Recipient address on hop.to_chain

        Returns:
            The source-chain transaction hash

        Raises:
            SigningUnavailableError: If no signer is configured
            UnknownChainError: If either chain is not registered
            UnsupportedHopError: If the registry has no such bridge
            ProviderError: If broadcasting fails
        """
        if self._signer is None:
            raise SigningUnavailableError()
        if amount <= 0:
            raise ValueError("Amount must be positive")

        self._registry.require(hop.from_chain, hop.to_chain)
        if self._registry.bridge_contract(hop.from_chain, hop.to_chain) is None:
            raise UnsupportedHopError(hop.from_chain, hop.to_chain)

        if hop.is_native:
            data = encode_bridge_eth(recipient, hop.to_chain)
            value = amount
        else:
            data = encode_bridge_token(hop.token_address, amount, recipient, hop.to_chain)
            value = 0

        tx_hash = await self._signer.send_transaction(
            chain_id=hop.from_chain,
            to_address=hop.bridge_contract,
            data=data,
            value=value,
        )
        self._tracker.register(tx_hash, hop, amount, recipient=recipient)

        logger.info(
            "hop_submitted",
            tx_hash=tx_hash,
            from_chain=hop.from_chain,
            to_chain=hop.to_chain,
            native=hop.is_native,
            amount=amount,
        )
        return tx_hash

    async def execute_route(
        self,
        plan: RoutePlan,
        amount: int,
        recipient: str,
        cancel_event: asyncio.Event | None = None,
    ) -> RouteExecution:
        """
        Execute every hop of a plan in order.

        Intermediate hops are sent to the signer's own address, so the funds
        that land on an intermediate chain are the funds the next hop spends.
        Only the last hop pays out to the recipient. Each later hop forwards
        what arrived: the confirmed amount less the bridge fee of the hop
        before it.

        Returns:
            RouteExecution with one status per submitted hop and the chain
            the funds ended up on

        Raises:
            SigningUnavailableError: If no signer is configured
            BridgeError: If the first hop cannot be submitted (nothing moved)
        """
        if self._signer is None:
            raise SigningUnavailableError()

        relay = await self._signer.get_address() if len(plan.hops) > 1 else recipient
        statuses: list[BridgeStatus] = []
        location = plan.source_chain
        sent = amount
        bind_context(route=plan.route)

        def stopped(outcome: RouteOutcome, error: str | None = None) -> RouteExecution:
            return RouteExecution(
                plan=plan,
                outcome=outcome,
                statuses=statuses,
                stopped_at_chain=location,
                error=error,
            )

        try:
            with log_duration(logger, "execute_route", hops=len(plan.hops)):
                for index, hop in enumerate(plan.hops):
                    if cancel_event is not None and cancel_event.is_set():
                        logger.info("route_cancelled", completed_hops=index, stopped_at_chain=location)
                        return stopped(RouteOutcome.CANCELLED)

                    final = index == len(plan.hops) - 1
                    try:
                        tx_hash = await self.submit_hop(hop, sent, recipient if final else relay)
                    except BridgeError as e:
                        if index == 0:
                            raise
                        logger.warning(
                            "route_hop_not_submitted",
                            hop_index=index,
                            error=str(e),
                            stopped_at_chain=location,
                        )
                        return stopped(RouteOutcome.FAILED, f"Hop {index} not submitted: {e}")

                    status = await self._tracker.wait_for_terminal(
                        tx_hash,
                        hop.from_chain,
                        timeout=self._confirmation_timeout,
                    )
                    statuses.append(status)

                    if status.state != BridgeState.CONFIRMED:
                        failure = status.failure.value if status.failure else None
                        logger.warning(
                            "route_hop_failed",
                            hop_index=index,
                            tx_hash=tx_hash,
                            failure=failure,
                            stopped_at_chain=location,
                        )
                        return stopped(RouteOutcome.FAILED, f"Hop {index} {failure}")

                    location = hop.to_chain
                    if not final:
                        sent = self._arrived_amount(hop, sent, status)
                        if sent <= 0:
                            return stopped(
                                RouteOutcome.FAILED, f"Nothing left to forward after hop {index}"
                            )

            return stopped(RouteOutcome.COMPLETED)
        finally:
            unbind_context("route")

    def _arrived_amount(self, hop: Hop, sent: int, status: BridgeStatus) -> int:
        """Amount available on hop.to_chain once a hop confirms."""
        bridged = status.amount or sent
        if self._estimator is None:
            return bridged
        fees = self._estimator.calculate_fees(bridged, hop.from_chain, hop.to_chain)
        return bridged - fees.bridge_fee
