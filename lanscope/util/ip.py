"""Utilities for network IP addresses."""

import dataclasses
import ipaddress
import socket
from typing import Iterable, Iterator, Tuple

import psutil  # type: ignore[import-untyped]


def get_all_address_strings() -> list[str]:
    """Retrieves all IPv4 address strings for all network interfaces.

    This function iterates through all network interfaces on the system,
    collects all assigned IPv4 addresses, and returns them as a list of strings.

    Returns:
        A list of IPv4 address strings. Empty if no IPv4 addresses found.
    """
    addresses: list[str] = []
    for _, interface_addresses in psutil.net_if_addrs().items():
        for address in interface_addresses:
            if address.family == socket.AF_INET:
                addresses.append(address.address)
    return addresses


def get_all_addresses() -> list[bytes]:
    """Retrieves all IPv4 addresses for all network interfaces, as bytes.

    Returns:
        A list of IPv4 addresses packed in network byte order. Empty if no
        IPv4 addresses are found.
    """
    return [socket.inet_aton(a) for a in get_all_address_strings()]


def is_loopback(address: str) -> bool:
    """Returns True if |address| is a loopback IPv4 address (127.0.0.0/8)."""
    try:
        return ipaddress.ip_address(address).is_loopback
    except ValueError:
        return False


@dataclasses.dataclass(frozen=True)
class LocalAddressSet:
    """The IPv4 addresses of this host's non-loopback interfaces.

    Captured once at startup and handed to the components that compare
    discovered addresses against the local host. Never mutated afterwards.
    """

    addresses: Tuple[str, ...] = ()

    @classmethod
    def of(cls, addresses: Iterable[str]) -> "LocalAddressSet":
        """Builds a set from |addresses|, keeping order and dropping repeats."""
        return cls(tuple(dict.fromkeys(addresses)))

    def __iter__(self) -> Iterator[str]:
        return iter(self.addresses)

    def __len__(self) -> int:
        return len(self.addresses)

    def __contains__(self, address: object) -> bool:
        return address in self.addresses


def get_local_address_set() -> LocalAddressSet:
    """Queries the OS once for the host's non-loopback IPv4 addresses.

    Returns:
        A `LocalAddressSet` in interface enumeration order.
    """
    return LocalAddressSet.of(
        a for a in get_all_address_strings() if not is_loopback(a)
    )
