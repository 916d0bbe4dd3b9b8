# lanscope/config/discovery_config.py
from dataclasses import dataclass
from typing import Literal, Optional

from zeroconf.asyncio import AsyncZeroconf

IpVersionType = Literal["v4", "v6", "all"]

# All services found running on this host are reported at this address,
# whatever addresses their interfaces actually have.
LOOPBACK_ADDRESS = "127.0.0.1"


@dataclass(frozen=True)
class DiscoveryConfig:
    """Configuration shared by the discovery and advertisement controllers."""

    # Address substituted for services running on this host.
    loopback_address: str = LOOPBACK_ADDRESS

    # Address families resolved for discovered services.
    ip_version: IpVersionType = "v4"

    # Collapse repeated addresses in a single resolved record.
    unique_addresses: bool = True

    # Share one zeroconf instance between browsers and advertisers. When
    # None, each adapter owns (and closes) its own instance.
    zc_instance: Optional[AsyncZeroconf] = None
