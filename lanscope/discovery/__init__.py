"""Initializes the lanscope.discovery package and exposes its key components.

This package contains the discovery result pipeline (deduplication, local
service detection, address ranking and query matching) and the controllers
that drive it from mDNS events.
"""

from lanscope.discovery.advertisement_controller import AdvertisementController
from lanscope.discovery.discovery_controller import (
    DiscoveryController,
    DiscoveryState,
)
from lanscope.discovery.service_cache import ServiceCache
from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_record import ServiceRecord
from lanscope.discovery.service_spec import ServiceSpec

__all__ = [
    "AdvertisementController",
    "DiscoveryController",
    "DiscoveryState",
    "ServiceCache",
    "ServiceQuery",
    "ServiceRecord",
    "ServiceSpec",
]
