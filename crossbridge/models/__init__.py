"""
Crossbridge Models

Data models shared by the registry, planner, executor and status tracker.
"""

from .base import (
    NATIVE_TOKEN_ADDRESS,
    BridgeState,
    BridgeStatus,
    FailureKind,
    FeeBreakdown,
    GasEstimate,
    Hop,
    RouteExecution,
    RouteOutcome,
    RoutePlan,
    TransferRequest,
)
from .chain import (
    BridgeEdge,
    ChainInfo,
    FeeData,
    LogEntry,
    LogFilter,
    TokenDescriptor,
    TransactionReceipt,
)

__all__ = [
    "NATIVE_TOKEN_ADDRESS",
    # Enums
    "BridgeState",
    "FailureKind",
    "RouteOutcome",
    # Transfer models
    "TransferRequest",
    "Hop",
    "RoutePlan",
    "GasEstimate",
    "FeeBreakdown",
    "BridgeStatus",
    "RouteExecution",
    # Chain models
    "ChainInfo",
    "TokenDescriptor",
    "BridgeEdge",
    "FeeData",
    "LogEntry",
    "LogFilter",
    "TransactionReceipt",
]
