"""Orders discovered service addresses by proximity to this host."""

from typing import Dict, Iterable, List, Set


def matching_prefix_len(service_address: str, local_address: str) -> int:
    """Length of the leading run of characters two addresses share.

    The comparison is on the dotted-decimal strings, one character at a time,
    not on the numeric address bits.
    """
    i = 0
    while (
        i < len(service_address)
        and i < len(local_address)
        and service_address[i] == local_address[i]
    ):
        i += 1
    return i


def rank(
    service_addresses: Iterable[str], local_addresses: Iterable[str]
) -> List[str]:
    """Picks the service addresses closest to any local interface address.

    Every candidate is scored with its longest prefix match against every
    local address. All candidates sharing the single best score are returned,
    sorted, so repeated calls for the same service give the same order.

    Args:
        service_addresses: Candidate addresses from a service record.
        local_addresses: Addresses of this host's interfaces.

    Returns:
        The top-scoring candidates in lexicographic order. Empty when there
        are no candidates. With no local addresses every candidate scores 0,
        so all of them are returned.
    """
    locals_ = list(local_addresses)
    by_prefix_len: Dict[int, Set[str]] = {}
    for service_address in service_addresses:
        best = max(
            (matching_prefix_len(service_address, a) for a in locals_),
            default=0,
        )
        by_prefix_len.setdefault(best, set()).add(service_address)

    if not by_prefix_len:
        return []
    return sorted(by_prefix_len[max(by_prefix_len)])
