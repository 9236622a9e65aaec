"""
Bridge Execution and Tracking

Submits bridge hops, executes multi-hop routes and tracks their status
behind the BridgeService facade.
"""

from .executor import BridgeExecutor
from .service import BridgeService, get_bridge_service
from .tracker import StatusTracker

__all__ = [
    "BridgeService",
    "BridgeExecutor",
    "StatusTracker",
    "get_bridge_service",
]
