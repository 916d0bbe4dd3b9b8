"""Decides which addresses of a discovered service are reported, and in what order."""

import logging
from typing import List

from lanscope.discovery.address_ranker import rank
from lanscope.discovery.local_service_detector import is_local
from lanscope.discovery.service_cache import ServiceCache
from lanscope.discovery.service_record import ServiceRecord
from lanscope.util.ip import LocalAddressSet

_logger = logging.getLogger(__name__)


def filter_service_addresses(
    record: ServiceRecord,
    cache: ServiceCache,
    local_addresses: LocalAddressSet,
    loopback_address: str,
) -> List[str]:
    """Eliminates repeat advertisements and orders the remaining addresses.

    Every address of |record| is stored in |cache|. Only addresses not seen
    before for this service name take part in the result.

    Args:
        record: The discovered service.
        cache: Addresses already reported, per service name.
        local_addresses: This host's interface addresses.
        loopback_address: Returned alone when the service runs on this host.

    Returns:
        `[loopback_address]` if any address ever cached for the service is
        local; the single new address if there is just one; otherwise the
        new addresses with the longest prefix match to a local address.
        Empty when the record is malformed or holds nothing new.
    """
    if not record.name:
        _logger.warning("Discovered a service without a name. Dropping.")
        return []
    if not record.addresses:
        _logger.warning(
            "Discovered service '%s' without addresses. Dropping.", record.name
        )
        return []

    not_seen_before = cache.record_all(record.name, record.addresses)
    if not not_seen_before:
        return []

    if is_local(cache.known_addresses(record.name), local_addresses):
        return [loopback_address]

    if len(not_seen_before) == 1:
        return [not_seen_before[0]]

    return rank(not_seen_before, local_addresses)
