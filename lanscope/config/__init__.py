"""Configuration types for lanscope."""

from lanscope.config.discovery_config import (
    LOOPBACK_ADDRESS,
    DiscoveryConfig,
)

__all__ = ["DiscoveryConfig", "LOOPBACK_ADDRESS"]
