"""Turns raw mDNS browse events into a deduplicated, ranked stream of services."""

import enum
import inspect
import logging
from typing import Any, Callable, Optional

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.address_filter import filter_service_addresses
from lanscope.discovery.mdns.record_browser import RecordBrowser
from lanscope.discovery.mdns.service_browser import ServiceBrowser
from lanscope.discovery.query_matcher import matches
from lanscope.discovery.service_cache import ServiceCache
from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_record import ServiceRecord
from lanscope.discovery.service_spec import ServiceSpec
from lanscope.util.ip import LocalAddressSet, get_local_address_set

_logger = logging.getLogger(__name__)

ServiceBrowserFactory = Callable[
    [ServiceBrowser.Client, str, DiscoveryConfig], ServiceBrowser
]
UserServiceFilter = Callable[[ServiceRecord], bool]
ServiceCallback = Callable[[ServiceSpec], Any]


class DiscoveryState(enum.Enum):
    """Lifecycle of a `DiscoveryController`."""

    IDLE = "idle"
    BROWSING = "browsing"


class DiscoveryController(ServiceBrowser.Client):
    """Finds services on the LAN and reports the best address for each.

    Owns the `ServiceCache` and the browser for one discovery session. Each
    service-up event runs through `filter_service_addresses`; records that
    yield addresses and satisfy the query and the user filter are reported
    to the callback as a `ServiceSpec`.

    Exceptions raised by the user filter or the callback are logged and
    dropped, so a misbehaving consumer cannot stop discovery. Both run inline
    on the event path, so they should return quickly: the next event is not
    handled until they do.
    """

    def __init__(
        self,
        local_addresses: Optional[LocalAddressSet] = None,
        config: Optional[DiscoveryConfig] = None,
        *,
        browser_factory: Optional[ServiceBrowserFactory] = None,
    ) -> None:
        """Initializes the DiscoveryController.

        Args:
            local_addresses: This host's interface addresses. Queried from
                the OS once, here, when None.
            config: Loopback address and mDNS engine settings.
            browser_factory: Creates the browser for a session. Defaults to
                `RecordBrowser`.
        """
        self.__local_addresses: LocalAddressSet = (
            local_addresses
            if local_addresses is not None
            else get_local_address_set()
        )
        self.__config: DiscoveryConfig = config or DiscoveryConfig()
        self.__browser_factory: ServiceBrowserFactory = (
            browser_factory or RecordBrowser
        )

        self.__cache = ServiceCache()
        self.__state = DiscoveryState.IDLE
        self.__browser: Optional[ServiceBrowser] = None
        self.__query: Optional[ServiceQuery] = None
        self.__user_filter: Optional[UserServiceFilter] = None
        self.__callback: Optional[ServiceCallback] = None

    @property
    def state(self) -> DiscoveryState:
        return self.__state

    @property
    def cache(self) -> ServiceCache:
        return self.__cache

    @property
    def local_addresses(self) -> LocalAddressSet:
        return self.__local_addresses

    async def discover_services(
        self,
        query: ServiceQuery,
        user_filter: Optional[UserServiceFilter],
        callback: ServiceCallback,
    ) -> None:
        """Starts browsing for services matching |query|.

        Args:
            query: The type of service to browse for, and optional name,
                port and property constraints.
            user_filter: Optional predicate over the full `ServiceRecord`,
                for choosing which services to connect to.
            callback: Called with the `ServiceSpec` of every admitted
                service. May be a coroutine function.

        Raises:
            TypeError: If |query| is not a `ServiceQuery` or |callback| is
                not callable.
            RuntimeError: If discovery is already running.
        """
        if not isinstance(query, ServiceQuery):
            raise TypeError(
                "Invalid argument: must use a ServiceQuery object to discover "
                f"services, got {type(query).__name__}."
            )
        if not callable(callback):
            raise TypeError("callback must be callable.")
        if self.__state is DiscoveryState.BROWSING:
            raise RuntimeError("Discovery has already been started.")

        self.__query = query
        self.__user_filter = user_filter
        self.__callback = callback

        browser = self.__browser_factory(self, query.type, self.__config)
        self.__browser = browser
        self.__state = DiscoveryState.BROWSING
        try:
            await browser.start()
        except Exception:
            await self.stop_discovering()
            raise

    async def stop_discovering(self) -> None:
        """Stops browsing and clears the cache. Safe to call when idle."""
        browser = self.__browser
        self.__browser = None
        self.__state = DiscoveryState.IDLE
        self.__query = None
        self.__user_filter = None
        self.__callback = None

        if browser is not None:
            try:
                await browser.stop()
            except Exception as e:
                _logger.error("Error stopping service browser: %s", e, exc_info=True)

        self.__cache.reset()

    # --- ServiceBrowser.Client interface methods ---

    async def _on_service_up(self, record: ServiceRecord) -> None:
        if self.__state is not DiscoveryState.BROWSING:
            return
        query = self.__query
        callback = self.__callback
        if query is None or callback is None:
            return

        if record.port is None:
            _logger.warning(
                "Discovered service '%s' without a port. Dropping.", record.name
            )
            return

        suggested = filter_service_addresses(
            record,
            self.__cache,
            self.__local_addresses,
            self.__config.loopback_address,
        )
        if not suggested:
            return
        record.suggested_addresses = suggested

        if not matches(query, record):
            return

        try:
            if self.__user_filter is not None and not self.__user_filter(record):
                return
            result = callback(record.to_service_spec())
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            _logger.debug(
                "Ignoring error raised by service callback for '%s': %s",
                record.name,
                e,
                exc_info=True,
            )

    async def _on_service_down(self, record: ServiceRecord) -> None:
        if self.__state is not DiscoveryState.BROWSING:
            return
        self.__cache.forget(record.name)

    async def _on_service_changed(self, record: ServiceRecord) -> None:
        if self.__state is not DiscoveryState.BROWSING:
            return
        # TODO: reconcile changed addresses against the cache. Forgetting the
        # service is wrong here, as zeroconf also raises updates on service up.
        _logger.debug("Service '%s' changed. Ignored.", record.name)
