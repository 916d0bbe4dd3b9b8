"""Advertises a local service so other hosts can discover it."""

import dataclasses
import logging
from typing import Callable, Dict, Optional

from zeroconf.asyncio import AsyncZeroconf

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.mdns.record_advertiser import (
    LOOPBACK_INTERFACE,
    RecordAdvertiser,
)
from lanscope.discovery.mdns.service_advertiser import ServiceAdvertiser
from lanscope.discovery.service_spec import ServiceSpec

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class AdvertisementOptions:
    """Everything the advertiser needs beyond type and port."""

    name: str
    txt_record: Dict[str, str]
    network_interface: Optional[str] = None


ServiceAdvertiserFactory = Callable[
    [str, str, int, Dict[str, str], Optional[str], Optional[AsyncZeroconf]],
    ServiceAdvertiser,
]


def make_advertisement_options(
    spec: ServiceSpec, loopback_address: str
) -> AdvertisementOptions:
    """Builds advertiser options from |spec|.

    A spec bound to |loopback_address| is advertised on the loopback
    interface only, one bound to another address on that address's
    interface, and one without an address on all interfaces.
    """
    network_interface: Optional[str] = None
    if spec.address:
        if spec.address == loopback_address:
            network_interface = LOOPBACK_INTERFACE
        else:
            network_interface = spec.address
    return AdvertisementOptions(
        name=spec.name,
        txt_record=dict(spec.properties or {}),
        network_interface=network_interface,
    )


class AdvertisementController:
    """Owns the running advertisement of one local service."""

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        *,
        advertiser_factory: Optional[ServiceAdvertiserFactory] = None,
    ) -> None:
        self.__config: DiscoveryConfig = config or DiscoveryConfig()
        self.__advertiser_factory: ServiceAdvertiserFactory = (
            advertiser_factory or RecordAdvertiser
        )
        self.__advertiser: Optional[ServiceAdvertiser] = None

    @property
    def is_advertising(self) -> bool:
        return self.__advertiser is not None

    async def advertise_service(self, spec: ServiceSpec) -> None:
        """Advertises |spec| on the LAN, replacing any earlier advertisement.

        Expects `spec.address`, if set, to be a resolved IPv4 address.

        Raises:
            TypeError: If |spec| is not a `ServiceSpec`.
        """
        if not isinstance(spec, ServiceSpec):
            raise TypeError(
                f"spec must be a ServiceSpec, got {type(spec).__name__}."
            )

        await self.stop_advertising()

        options = make_advertisement_options(spec, self.__config.loopback_address)
        advertiser = self.__advertiser_factory(
            options.name,
            spec.type,
            spec.port,
            options.txt_record,
            options.network_interface,
            self.__config.zc_instance,
        )
        try:
            await advertiser.publish()
        except Exception:
            await advertiser.close()
            raise
        self.__advertiser = advertiser
        _logger.info(
            "Advertising %s (%s) on port %d.", spec.name, spec.type, spec.port
        )

    async def stop_advertising(self) -> None:
        """Withdraws the running advertisement. Safe to call when idle."""
        advertiser = self.__advertiser
        self.__advertiser = None
        if advertiser is not None:
            await advertiser.close()
