"""Browser for mDNS service records using zeroconf."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from zeroconf import IPVersion, Zeroconf
from zeroconf.asyncio import (
    AsyncServiceBrowser,
    AsyncServiceInfo,
    AsyncZeroconf,
)

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.mdns.service_browser import ServiceBrowser
from lanscope.discovery.mdns.service_type import (
    to_full_service_type,
    to_instance_name,
)
from lanscope.discovery.service_record import ServiceRecord

_logger = logging.getLogger(__name__)

_EventHandler = Callable[[str, str], Awaitable[None]]

_IP_VERSIONS = {
    "v4": IPVersion.V4Only,
    "v6": IPVersion.V6Only,
    "all": IPVersion.All,
}


def decode_txt_record(txt_record: Dict[bytes, Optional[bytes]]) -> Dict[str, str]:
    """Converts a raw TXT record to str keys and values.

    Keys without a value map to "". Entries that are not valid UTF-8 are
    skipped.
    """
    properties: Dict[str, str] = {}
    for key, value in txt_record.items():
        try:
            properties[key.decode("utf-8")] = (
                value.decode("utf-8") if value is not None else ""
            )
        except UnicodeDecodeError:
            _logger.warning("Skipping undecodable TXT entry %r.", key)
    return properties


class RecordBrowser(ServiceBrowser):
    """mDNS service browser using `zeroconf`.

    Implements `zeroconf.ServiceListener`. Resolves every service of the
    browsed type to its port, addresses and TXT record, then notifies the
    client with a `ServiceRecord`.

    Engine events are queued and handled one at a time, in arrival order,
    by a single task. A removal is never reported before an earlier add of
    the same service has finished resolving.
    """

    def __init__(
        self,
        client: ServiceBrowser.Client,
        service_type: str,
        config: Optional[DiscoveryConfig] = None,
    ) -> None:
        """Initializes the RecordBrowser.

        Args:
            client: Implements `ServiceBrowser.Client` interface.
            service_type: mDNS service type (e.g., "_zmq" or
                          "_zmq._tcp.local.").
            config: Address family, dedup and zeroconf instance settings.

        Raises:
            ValueError: If client is None or service_type lacks leading '_'.
            TypeError: If service_type is not a str.
        """
        if client is None:
            raise ValueError("Client cannot be None for RecordBrowser.")
        if service_type is None:
            raise ValueError("service_type cannot be None for RecordBrowser.")

        super().__init__()

        self.__client: ServiceBrowser.Client = client
        self.__expected_type: str = to_full_service_type(service_type)
        self.__config: DiscoveryConfig = config or DiscoveryConfig()

        self.__mdns: Optional[AsyncZeroconf] = None
        self.__is_shared_zc: bool = self.__config.zc_instance is not None
        self.__browser: Optional[AsyncServiceBrowser] = None
        self.__events: Optional[
            "asyncio.Queue[Tuple[_EventHandler, str, str]]"
        ] = None
        self.__event_task: Optional["asyncio.Task[None]"] = None

    @property
    def service_type(self) -> str:
        return self.__expected_type

    async def start(self) -> None:
        if self.__browser is not None:
            raise RuntimeError(
                f"RecordBrowser for {self.__expected_type} already started."
            )

        if self.__config.zc_instance is not None:
            self.__mdns = self.__config.zc_instance
            _logger.info(
                "Using shared AsyncZeroconf for RecordBrowser, type: %s",
                self.__expected_type,
            )
        else:
            self.__mdns = AsyncZeroconf(
                ip_version=_IP_VERSIONS[self.__config.ip_version]
            )
            _logger.info(
                "Created new AsyncZeroconf for RecordBrowser, type: %s",
                self.__expected_type,
            )

        self.__events = asyncio.Queue()
        self.__event_task = asyncio.create_task(self.__drain_events(self.__events))
        self.__browser = AsyncServiceBrowser(
            self.__mdns.zeroconf, [self.__expected_type], listener=self
        )

    # --- ServiceListener interface methods ---

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called by `zeroconf` when a new service is discovered."""
        _logger.debug("add_service: type='%s', name='%s'", type_, name)
        self.__enqueue(self._handle_add_service, type_, name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called by `zeroconf` when a service's info (e.g., TXT) is updated."""
        _logger.debug("update_service: type='%s', name='%s'", type_, name)
        self.__enqueue(self._handle_update_service, type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called by `zeroconf` when a service is removed from the network."""
        _logger.debug("remove_service: type='%s', name='%s'", type_, name)
        self.__enqueue(self._handle_remove_service, type_, name)

    async def _handle_add_service(self, type_: str, name: str) -> None:
        record = await self.__resolve(type_, name)
        if record is not None:
            await self.__client._on_service_up(record)

    async def _handle_update_service(self, type_: str, name: str) -> None:
        record = await self.__resolve(type_, name)
        if record is not None:
            await self.__client._on_service_changed(record)

    async def _handle_remove_service(self, type_: str, name: str) -> None:
        if type_ != self.__expected_type:
            return
        record = ServiceRecord(name=to_instance_name(name, type_), type=type_)
        await self.__client._on_service_down(record)

    async def __resolve(self, type_: str, name: str) -> Optional[ServiceRecord]:
        """Resolves |name| to a `ServiceRecord`, or None on failure."""
        if type_ != self.__expected_type:
            _logger.debug(
                "Ignoring '%s', type '%s'. Expected '%s'.",
                name,
                type_,
                self.__expected_type,
            )
            return None
        if self.__mdns is None:
            return None

        info: Optional[AsyncServiceInfo] = await self.__mdns.async_get_service_info(
            type_, name
        )
        if info is None:
            _logger.error("Failed to get info for service '%s' type '%s'.", name, type_)
            return None

        addresses: List[str] = info.parsed_addresses(
            _IP_VERSIONS[self.__config.ip_version]
        )
        if self.__config.unique_addresses:
            addresses = list(dict.fromkeys(addresses))
        if not addresses:
            _logger.warning("No addresses for service '%s' type '%s'.", name, type_)

        return ServiceRecord(
            name=to_instance_name(name, type_),
            type=type_,
            port=info.port,
            addresses=addresses,
            properties=decode_txt_record(info.properties),
        )

    def __enqueue(self, handler: _EventHandler, type_: str, name: str) -> None:
        if self.__events is None:
            _logger.debug("Browser stopped. Dropping event for '%s'.", name)
            return
        self.__events.put_nowait((handler, type_, name))

    async def __drain_events(
        self, events: "asyncio.Queue[Tuple[_EventHandler, str, str]]"
    ) -> None:
        while True:
            handler, type_, name = await events.get()
            try:
                await handler(type_, name)
            except Exception as e:
                _logger.error(
                    "Error handling mDNS event for '%s' type '%s': %s",
                    name,
                    type_,
                    e,
                    exc_info=True,
                )

    async def stop(self) -> None:
        # Cancels browsing and closes the AsyncZeroconf instance if owned.
        if self.__browser is not None:
            _logger.info(
                "Cancelling AsyncServiceBrowser in RecordBrowser for %s",
                self.__expected_type,
            )
            try:
                await self.__browser.async_cancel()
            except Exception as e:
                _logger.error(
                    "Error cancelling AsyncServiceBrowser for %s: %s",
                    self.__expected_type,
                    e,
                    exc_info=True,
                )
            self.__browser = None

        event_task = self.__event_task
        self.__event_task = None
        self.__events = None
        if event_task is not None:
            event_task.cancel()
            await asyncio.gather(event_task, return_exceptions=True)

        if not self.__is_shared_zc and self.__mdns is not None:
            _logger.info(
                "Closing owned AsyncZeroconf instance for RecordBrowser, type: %s",
                self.__expected_type,
            )
            try:
                await self.__mdns.async_close()
            except Exception as e:
                _logger.error(
                    "Error during owned AsyncZeroconf.async_close() for %s: %s",
                    self.__expected_type,
                    e,
                    exc_info=True,
                )
        self.__mdns = None
