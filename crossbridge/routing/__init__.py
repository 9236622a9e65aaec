"""Route planning over the bridge-connectivity graph."""

from .planner import (
    CompoundedCostPolicy,
    RouteCostPolicy,
    RouteEstimate,
    RoutePlanner,
    StaticCostPolicy,
    cost_policy_from_settings,
)

__all__ = [
    "RoutePlanner",
    "RouteCostPolicy",
    "RouteEstimate",
    "StaticCostPolicy",
    "CompoundedCostPolicy",
    "cost_policy_from_settings",
]
