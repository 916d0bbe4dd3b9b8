"""Defines ServiceRecord, a service as reported by the mDNS engine."""

import dataclasses
from typing import Dict, List, Optional

from lanscope.discovery.service_spec import ServiceSpec


@dataclasses.dataclass
class ServiceRecord:
    """A discovered service instance.

    `addresses` holds every candidate address the engine reported for this
    event. `suggested_addresses` is filled in by the discovery pipeline with
    the ranked subset the application should try, best first.
    """

    name: Optional[str]
    type: str
    port: Optional[int] = None
    addresses: List[str] = dataclasses.field(default_factory=list)
    properties: Dict[str, str] = dataclasses.field(default_factory=dict)
    suggested_addresses: List[str] = dataclasses.field(default_factory=list)

    @property
    def suggested_address(self) -> Optional[str]:
        """The first suggested address, or None if none were suggested."""
        if not self.suggested_addresses:
            return None
        return self.suggested_addresses[0]

    def to_service_spec(self) -> ServiceSpec:
        """Condenses this record into the `ServiceSpec` given to callbacks.

        Raises:
            ValueError: If the record has no name or port.
        """
        if not self.name or self.port is None:
            raise ValueError(
                f"Cannot build a ServiceSpec from record without name/port: {self!r}"
            )
        return ServiceSpec(
            name=self.name,
            type=self.type,
            port=self.port,
            address=self.suggested_address,
            properties=dict(self.properties),
        )
