"""Initializes the lanscope.discovery.mdns package.

Adapters between the discovery pipeline and the zeroconf mDNS engine: a
browser that reports resolved service records and an advertiser that
registers a local service.
"""

from lanscope.discovery.mdns.record_advertiser import RecordAdvertiser
from lanscope.discovery.mdns.record_browser import RecordBrowser
from lanscope.discovery.mdns.service_advertiser import ServiceAdvertiser
from lanscope.discovery.mdns.service_browser import ServiceBrowser

__all__ = [
    "RecordAdvertiser",
    "RecordBrowser",
    "ServiceAdvertiser",
    "ServiceBrowser",
]
