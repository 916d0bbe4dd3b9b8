"""Provides ServiceCache, the per-service record of addresses already reported."""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set

_logger = logging.getLogger(__name__)


class ServiceCache:
    """Maps service names to the addresses already reported for them.

    Used to suppress repeated advertisements of the same service at the same
    address. Entries have no expiry: they are dropped by `forget()` when the
    service goes away, or all at once by `reset()`.

    All methods are thread-safe, since mDNS callbacks may arrive on the
    engine's own thread.
    """

    def __init__(self) -> None:
        self.__entries: Dict[str, Set[str]] = {}
        self.__lock = threading.Lock()

    def record_if_new(self, service_name: str, address: str) -> bool:
        """Stores |address| for |service_name| if not already stored.

        Returns:
            True if the address was new for this service, False otherwise.
        """
        with self.__lock:
            return self.__record_locked(service_name, address)

    def record_all(
        self, service_name: str, addresses: Iterable[str]
    ) -> List[str]:
        """Stores every address for |service_name| in one atomic step.

        Returns:
            The addresses that were not stored before, in input order.
        """
        with self.__lock:
            return [
                address
                for address in addresses
                if self.__record_locked(service_name, address)
            ]

    def known_addresses(self, service_name: str) -> Set[str]:
        """Returns a copy of all addresses stored for |service_name|."""
        with self.__lock:
            return set(self.__entries.get(service_name, ()))

    def forget(self, service_name: Optional[str]) -> None:
        """Removes the entry for |service_name|, if any.

        A missing name leaves the cache untouched, as there is nothing to
        key the removal on.
        """
        if not service_name:
            _logger.warning(
                "Cannot remove service without a name. The service that was "
                "meant to be removed will remain in the cache."
            )
            return

        with self.__lock:
            self.__entries.pop(service_name, None)

    def reset(self) -> None:
        """Drops every entry."""
        with self.__lock:
            self.__entries.clear()

    def __record_locked(self, service_name: str, address: str) -> bool:
        known = self.__entries.setdefault(service_name, set())
        if address in known:
            return False
        known.add(address)
        return True

    def __len__(self) -> int:
        with self.__lock:
            return len(self.__entries)

    def __contains__(self, service_name: object) -> bool:
        with self.__lock:
            return service_name in self.__entries
