"""
Crossbridge - Monitoring Module

Structured logging setup and helpers shared by the bridge components.
"""

from .logging import (
    bind_context,
    configure_logging,
    log_duration,
    unbind_context,
)

__all__ = [
    "configure_logging",
    "bind_context",
    "unbind_context",
    "log_duration",
]
