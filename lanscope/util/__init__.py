"""Utility classes and functions for lanscope."""

from lanscope.util.ip import (
    LocalAddressSet,
    get_all_address_strings,
    get_all_addresses,
    get_local_address_set,
)

__all__ = [
    "LocalAddressSet",
    "get_all_address_strings",
    "get_all_addresses",
    "get_local_address_set",
]
