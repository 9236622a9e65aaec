"""
Route Planner

Finds a path of bridge hops from a source chain to a target chain.

Algorithm:
1. A direct bridge edge wins outright.
2. Otherwise a breadth-first search over the registry's bridge graph finds
   every fewest-hop path. Edge weights are not modeled, which is adequate
   for registries of a handful of chains; a larger registry should weight
   edges by cost/time and switch to Dijkstra.
3. Ties are broken deterministically: a path through the registry's hub
   chain is preferred, then the lexicographically smallest chain-id path.

Token feasibility: a registered token must have an address on both ends of
every hop it moves through, so infeasible edges are pruned from the search.
Unregistered symbols bridge the native asset and every edge is usable.

Route aggregates (time, cost, slippage) come from a pluggable cost policy.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from dataclasses import dataclass
from decimal import Decimal

import structlog

from ..chains.registry import ChainRegistry, get_chain_registry
from ..config import BridgeSettings, CostPolicyName, get_bridge_settings
from ..exceptions import RouteNotFoundError
from ..fees.estimator import FeeEstimator
from ..models import Hop, RoutePlan

logger = structlog.get_logger(__name__)

HUNDRED = Decimal(100)


@dataclass(frozen=True)
class RouteEstimate:
    """Aggregate estimates for a sequence of hops."""

    estimated_time_minutes: int
    estimated_cost: Decimal
    slippage: Decimal


class RouteCostPolicy(ABC):
    """Strategy for turning a hop sequence into route-level estimates."""

    @abstractmethod
    async def aggregate(self, hops: tuple[Hop, ...], estimator: FeeEstimator) -> RouteEstimate:
        pass


class StaticCostPolicy(RouteCostPolicy):
    """
    Default policy.

    Direct routes report the hop's live gas estimate with a low slippage
    allowance. Multi-hop routes sum each hop's static latency and use a fixed
    cost and a higher slippage allowance, regardless of hop count or amount.
    """

    def __init__(
        self,
        direct_slippage: Decimal = Decimal("0.1"),
        multi_hop_slippage: Decimal = Decimal("0.3"),
        multi_hop_cost: Decimal = Decimal("0.01"),
    ):
        self.direct_slippage = direct_slippage
        self.multi_hop_slippage = multi_hop_slippage
        self.multi_hop_cost = multi_hop_cost

    async def aggregate(self, hops: tuple[Hop, ...], estimator: FeeEstimator) -> RouteEstimate:
        if len(hops) == 1:
            gas = await estimator.estimate_hop(hops[0])
            return RouteEstimate(
                estimated_time_minutes=gas.estimated_time_minutes,
                estimated_cost=gas.total_cost,
                slippage=self.direct_slippage,
            )

        return RouteEstimate(
            estimated_time_minutes=sum(estimator.estimated_time(hop.to_chain) for hop in hops),
            estimated_cost=self.multi_hop_cost,
            slippage=self.multi_hop_slippage,
        )


class CompoundedCostPolicy(RouteCostPolicy):
    """
    Computed policy.

    Every hop is estimated independently (concurrently), costs and times are
    summed, and per-hop slippage compounds multiplicatively:
    1 - (1 - s/100) ** n, expressed back in percent.
    """

    def __init__(self, per_hop_slippage: Decimal = Decimal("0.1")):
        self.per_hop_slippage = per_hop_slippage

    async def aggregate(self, hops: tuple[Hop, ...], estimator: FeeEstimator) -> RouteEstimate:
        estimates = await asyncio.gather(*(estimator.estimate_hop(hop) for hop in hops))

        retained = Decimal(1)
        for _ in hops:
            retained *= 1 - self.per_hop_slippage / HUNDRED

        return RouteEstimate(
            estimated_time_minutes=sum(e.estimated_time_minutes for e in estimates),
            estimated_cost=sum((e.total_cost for e in estimates), Decimal(0)),
            slippage=(1 - retained) * HUNDRED,
        )


def cost_policy_from_settings(settings: BridgeSettings) -> RouteCostPolicy:
    """Build the cost policy selected by BRIDGE_COST_POLICY."""
    if settings.cost_policy == CostPolicyName.COMPOUNDED:
        return CompoundedCostPolicy(per_hop_slippage=settings.direct_slippage_percent)
    return StaticCostPolicy(
        direct_slippage=settings.direct_slippage_percent,
        multi_hop_slippage=settings.multi_hop_slippage_percent,
        multi_hop_cost=settings.multi_hop_cost,
    )


class RoutePlanner:
    """
    Plans direct or multi-hop routes over the bridge graph.

    Example:
        ```python
        planner = RoutePlanner(estimator)
        plan = await planner.find_route(10, 42161, "WETH", 10**18)
        plan.route  # [10, 1, 42161]
        ```
    """

    def __init__(
        self,
        estimator: FeeEstimator,
        registry: ChainRegistry | None = None,
        settings: BridgeSettings | None = None,
        cost_policy: RouteCostPolicy | None = None,
    ):
        self._estimator = estimator
        self._registry = registry or get_chain_registry()
        self._settings = settings or get_bridge_settings()
        self._cost_policy = cost_policy or cost_policy_from_settings(self._settings)

    @property
    def cost_policy(self) -> RouteCostPolicy:
        return self._cost_policy

    async def find_route(
        self,
        source_chain: int,
        target_chain: int,
        token_symbol: str | None = None,
        amount: int = 0,
    ) -> RoutePlan:
        """
        Plan a route and estimate its time, cost and slippage.

        Args:
            source_chain: Chain the funds start on
            target_chain: Chain the funds should end on
            token_symbol: Token symbol, or None for the native asset
            amount: Transfer amount in base units (unused by the static policy)

        Raises:
            UnknownChainError: If either chain is not registered
            RouteNotFoundError: If no path exists for the token
            ProviderError: If a hop's fee data cannot be fetched
        """
        if amount < 0:
            raise ValueError("Amount must be non-negative")
        self._registry.require(source_chain, target_chain)

        path = self.find_path(source_chain, target_chain, token_symbol)
        if path is None:
            logger.info(
                "route_not_found",
                source_chain=source_chain,
                target_chain=target_chain,
                token=token_symbol,
            )
            raise RouteNotFoundError(source_chain, target_chain, token_symbol)

        hops = self.build_hops(path, token_symbol)
        estimate = await self._cost_policy.aggregate(hops, self._estimator)

        plan = RoutePlan(
            hops=hops,
            token_symbol=token_symbol,
            estimated_time_minutes=estimate.estimated_time_minutes,
            estimated_cost=estimate.estimated_cost,
            slippage=estimate.slippage,
        )
        logger.info(
            "route_planned",
            route=plan.route,
            token=token_symbol,
            estimated_time_minutes=plan.estimated_time_minutes,
            slippage=str(plan.slippage),
        )
        return plan

    def find_path(
        self,
        source_chain: int,
        target_chain: int,
        token_symbol: str | None = None,
    ) -> list[int] | None:
        """
        Fewest-hop chain path from source to target, or None.

        Pure graph search over the registry; no network access.
        """
        if source_chain == target_chain:
            return None

        # A registered token needs an address on both ends of every hop; an edge
        # that lacks one is excluded, never downgraded to the native asset
        registry = self._registry
        if registry.bridge_contract(source_chain, target_chain) and registry.hop_supports_token(
            token_symbol, source_chain, target_chain
        ):
            return [source_chain, target_chain]

        # BFS recording every predecessor on a shortest path
        distance: dict[int, int] = {source_chain: 0}
        predecessors: dict[int, list[int]] = defaultdict(list)
        queue: deque[int] = deque([source_chain])

        while queue:
            node = queue.popleft()
            if node == target_chain or distance[node] >= self._settings.max_hops:
                continue
            for neighbor in sorted(registry.edges_from(node)):
                if not registry.hop_supports_token(token_symbol, node, neighbor):
                    continue
                if neighbor not in distance:
                    distance[neighbor] = distance[node] + 1
                    predecessors[neighbor].append(node)
                    queue.append(neighbor)
                elif distance[neighbor] == distance[node] + 1:
                    predecessors[neighbor].append(node)

        if target_chain not in distance:
            return None

        candidates = self._shortest_paths(source_chain, target_chain, predecessors)
        return min(candidates, key=self._tie_break_key)

    def _shortest_paths(
        self,
        source_chain: int,
        target_chain: int,
        predecessors: dict[int, list[int]],
    ) -> list[list[int]]:
        # Walk predecessor lists back from the target; registries are small
        # enough that enumerating every shortest path is cheap.
        paths: list[list[int]] = []
        stack: list[list[int]] = [[target_chain]]
        while stack:
            partial = stack.pop()
            head = partial[0]
            if head == source_chain:
                paths.append(partial)
                continue
            for previous in predecessors[head]:
                stack.append([previous] + partial)
        return paths

    def _tie_break_key(self, path: list[int]) -> tuple[int, list[int]]:
        through_hub = self._registry.hub_chain_id in path[1:-1]
        return (0 if through_hub else 1, path)

    def build_hops(self, path: list[int], token_symbol: str | None) -> tuple[Hop, ...]:
        """Turn a chain path into hops with bridge contracts and token addresses."""
        hops: list[Hop] = []
        for from_chain, to_chain in zip(path, path[1:]):
            contract = self._registry.bridge_contract(from_chain, to_chain)
            token_address = self._registry.resolve_token(token_symbol, from_chain)
            if contract is None or token_address is None:
                raise RouteNotFoundError(path[0], path[-1], token_symbol)
            hops.append(
                Hop(
                    from_chain=from_chain,
                    to_chain=to_chain,
                    bridge_contract=contract,
                    token_address=token_address,
                )
            )
        return tuple(hops)
