"""
Bridge Configuration

This module defines the runtime settings for the cross-chain bridge helper:
fee policy, gas constants, routing policy, provider retry bounds,
confirmation polling and RPC endpoints.

Configuration is loaded from environment variables (prefixed with BRIDGE_)
with defaults matching the shipped chain registry.

SECURITY NOTE: Signer private keys should come from a secrets manager in
production. Set SECRETS_BACKEND=vault or SECRETS_BACKEND=aws_secrets_manager.
"""

import os
import warnings
from decimal import Decimal
from enum import Enum

import structlog
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

logger = structlog.get_logger(__name__)


class SecurityWarning(UserWarning):
    """Warning for security-related issues (insecure configurations, etc.)."""

    pass


class CostPolicyName(str, Enum):
    """Aggregation policy used for multi-hop route estimates."""

    STATIC = "static"  # Fixed multi-hop cost and slippage
    COMPOUNDED = "compounded"  # Per-hop estimates, compounded slippage


# Public RPC endpoints for the chains in the default registry
RPC_ENDPOINTS: dict[int, str] = {
    1: "https://eth.llamarpc.com",
    8453: "https://mainnet.base.org",
    10: "https://mainnet.optimism.io",
    42161: "https://arb1.arbitrum.io/rpc",
    137: "https://polygon-rpc.com",
}


class BridgeSettings(BaseSettings):
    """
    Main configuration class for the bridge helper.

    All settings can be overridden via environment variables prefixed with
    BRIDGE_. For example, BRIDGE_FEE_RATE_BPS sets the fee_rate_bps field.
    """

    # Fee policy
    fee_rate_bps: int = Field(
        default=10, ge=0, le=10_000, description="Bridge fee in basis points (10 = 0.1%)"
    )

    # Gas estimation
    hop_gas_limit: int = Field(
        default=200_000,
        gt=0,
        description="Conservative gas limit for a single bridge call",
    )

    # Routing
    max_hops: int = Field(default=4, ge=1, description="Longest route the planner considers")
    cost_policy: CostPolicyName = Field(
        default=CostPolicyName.STATIC, description="Multi-hop aggregation policy"
    )
    direct_slippage_percent: Decimal = Field(
        default=Decimal("0.1"), description="Slippage allowance for direct routes"
    )
    multi_hop_slippage_percent: Decimal = Field(
        default=Decimal("0.3"), description="Slippage allowance for multi-hop routes"
    )
    multi_hop_cost: Decimal = Field(
        default=Decimal("0.01"),
        description="Fixed multi-hop cost in native units (static policy)",
    )

    # Provider retries
    provider_max_attempts: int = Field(
        default=3, ge=1, description="Attempts per provider call before ProviderError surfaces"
    )
    provider_retry_min_seconds: float = Field(default=0.5, ge=0)
    provider_retry_max_seconds: float = Field(default=8.0, ge=0)

    # Confirmation polling
    confirmation_timeout_seconds: float = Field(
        default=1800.0, gt=0, description="Maximum wait for a hop's source-chain receipt"
    )
    poll_interval_seconds: float = Field(default=2.0, ge=0)
    poll_interval_max_seconds: float = Field(default=30.0, ge=0)
    poll_backoff_factor: float = Field(default=1.5, ge=1.0)
    status_cache_size: int = Field(
        default=10_000, ge=1, description="Hop snapshots the status tracker keeps in memory"
    )

    # Chain access
    rpc_endpoints: dict[int, str] = Field(
        default_factory=lambda: dict(RPC_ENDPOINTS),
        description="RPC endpoint per chain id",
    )
    history_lookback_blocks: int = Field(
        default=50_000, gt=0, description="Block window scanned for bridge history"
    )

    # Wallet
    # SECURITY WARNING: In production, use SECRETS_BACKEND=vault or aws_secrets_manager
    signer_private_key: str | None = Field(
        default=None,
        description="Private key for the signing wallet (EVM hex format). "
        "SECURITY: Use secrets manager in production!",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("provider_retry_max_seconds")
    @classmethod
    def validate_retry_bounds(cls, v: float, info: ValidationInfo) -> float:
        """Keep the retry ceiling at or above the floor."""
        floor = info.data.get("provider_retry_min_seconds", 0.0)
        if v < floor:
            raise ValueError("provider_retry_max_seconds must be >= provider_retry_min_seconds")
        return v

    @field_validator("signer_private_key")
    @classmethod
    def validate_private_key_security(cls, v: str | None, info: ValidationInfo) -> str | None:
        """
        Warn about insecure private key storage in production.

        Private keys loaded from environment variables are a security risk.
        In production, configure SECRETS_BACKEND to use Vault or AWS Secrets
        Manager instead.
        """
        if v is not None:
            environment = os.environ.get(
                "BRIDGE_ENVIRONMENT", os.environ.get("ENVIRONMENT", "development")
            )
            secrets_backend = os.environ.get("SECRETS_BACKEND", "environment")

            if environment == "production" and secrets_backend == "environment":
                logger.critical(
                    "private_key_from_environment",
                    field=info.field_name,
                    environment=environment,
                )
                warnings.warn(
                    f"Private key '{info.field_name}' loaded from environment variable "
                    "in production. This is insecure! Use a secrets manager.",
                    SecurityWarning,
                    stacklevel=2,
                )
            elif environment != "development":
                logger.warning(
                    "private_key_from_environment",
                    field=info.field_name,
                    environment=environment,
                )
        return v

    def get_rpc_endpoint(self, chain_id: int) -> str | None:
        """Get the RPC endpoint for a specific chain."""
        return self.rpc_endpoints.get(chain_id)

    model_config = {
        "env_prefix": "BRIDGE_",
        "env_file": ".env",
        "extra": "ignore",
    }


# Singleton instance for global access
_settings: BridgeSettings | None = None


def get_bridge_settings() -> BridgeSettings:
    """
    Get the global bridge settings instance.

    Settings are read from the environment on first access and reused
    afterwards.
    """
    global _settings
    if _settings is None:
        _settings = BridgeSettings()
    return _settings


def configure_bridge(settings: BridgeSettings) -> None:
    """
    Set a custom settings instance.

    Useful for testing or when configuration needs to be loaded
    from a non-standard source.
    """
    global _settings
    _settings = settings
