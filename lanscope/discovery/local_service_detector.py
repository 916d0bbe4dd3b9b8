"""Detects services that run on this host."""

from typing import Iterable


def is_local(
    service_addresses: Iterable[str], local_addresses: Iterable[str]
) -> bool:
    """Returns True if any service address is one of this host's addresses.

    Addresses are compared as canonical IPv4 strings.
    """
    local_set = set(local_addresses)
    return any(address in local_set for address in service_addresses)
