"""Defines ServiceSpec, the descriptor of a service to connect to or advertise."""

import dataclasses
from typing import Dict, Optional


@dataclasses.dataclass
class ServiceSpec:
    """Describes a single service instance.

    Used both to advertise a local service and as the condensed result handed
    to applications for each discovered service. In the latter case `address`
    is the suggested address to connect to.
    """

    name: str
    type: str
    port: int
    address: Optional[str] = None
    properties: Dict[str, str] = dataclasses.field(default_factory=dict)
