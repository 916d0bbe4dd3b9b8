"""Advertises mDNS service records using zeroconf."""

import logging
import socket
from typing import Dict, List, Optional

from zeroconf import InterfaceChoice, IPVersion, ServiceInfo
from zeroconf.asyncio import AsyncZeroconf

from lanscope.discovery.mdns.service_advertiser import ServiceAdvertiser
from lanscope.discovery.mdns.service_type import to_full_service_type
from lanscope.util.ip import get_all_addresses

_logger = logging.getLogger(__name__)

# Network interface selector that confines an advertisement to this host.
LOOPBACK_INTERFACE = "127.0.0.1"


class RecordAdvertiser(ServiceAdvertiser):
    """Advertises a service to mDNS with specific record details.

    Uses `zeroconf` to construct and register a `ServiceInfo`, making the
    service discoverable on the LAN (IPv4), or on a single interface when
    `network_interface` is given.
    """

    def __init__(
        self,
        name: str,
        type_: str,
        port: int,
        properties: Optional[Dict[str, str]] = None,
        network_interface: Optional[str] = None,
        zc_instance: Optional[AsyncZeroconf] = None,
    ) -> None:
        """Initialize the RecordAdvertiser.

        Args:
            name: Instance name (e.g., "MyDevice"). Forms part of full mDNS
                  name (e.g., "MyDevice._zmq._tcp.local.").
            type_: Service type (e.g., "_zmq"). Must start with '_'.
            port: Network port the service is on.
            properties: Optional TXT record entries.
            network_interface: IPv4 address of the interface to advertise
                               on. All interfaces when None.
            zc_instance: Shared AsyncZeroconf. One is created (and closed)
                         by this advertiser when None.

        Raises:
            ValueError: If `type_` does not start with '_' or name is empty.
        """
        if not name:
            raise ValueError("RecordAdvertiser requires a non-empty name.")

        self.__ptr: str = to_full_service_type(type_)
        self.__srv: str = f"{name}.{self.__ptr}"
        self.__port: int = port
        self.__txt: Dict[str, str] = dict(properties or {})
        self.__network_interface: Optional[str] = network_interface
        self.__shared_zc: Optional[AsyncZeroconf] = zc_instance
        self.__owned_zc: Optional[AsyncZeroconf] = None
        self._zc: Optional[AsyncZeroconf] = None
        self._service_info: Optional[ServiceInfo] = None

    def __addresses(self) -> List[bytes]:
        if self.__network_interface is not None:
            return [socket.inet_aton(self.__network_interface)]
        return get_all_addresses()

    async def publish(self) -> None:
        """Registers the service with an `AsyncZeroconf` instance."""
        if self._service_info is not None:
            _logger.info("Service %s already published. Re-registering.", self.__srv)
            await self.close()

        self._service_info = ServiceInfo(
            type_=self.__ptr,
            name=self.__srv,
            addresses=self.__addresses(),
            port=self.__port,
            properties=self.__txt,
        )

        if self.__shared_zc is not None:
            self._zc = self.__shared_zc
        else:
            interfaces = (
                [self.__network_interface]
                if self.__network_interface is not None
                else InterfaceChoice.All
            )
            self.__owned_zc = AsyncZeroconf(
                interfaces=interfaces, ip_version=IPVersion.V4Only
            )
            self._zc = self.__owned_zc

        try:
            await self._zc.async_register_service(self._service_info)
        except Exception as e:
            _logger.error(
                "Failed to register service %s: %s", self.__srv, e, exc_info=True
            )
            # Nothing was registered, so close() only releases the instance.
            self._service_info = None
            await self.close()
            raise
        _logger.info(
            "Service %s registered on port %d (%s).",
            self.__srv,
            self.__port,
            self.__network_interface or "all interfaces",
        )

    async def close(self) -> None:
        """Unregisters the service and closes the owned Zeroconf instance."""
        try:
            if self._zc is not None and self._service_info is not None:
                await self._zc.async_unregister_service(self._service_info)
                _logger.info("Service %s unregistered.", self.__srv)
            if self.__owned_zc is not None:
                await self.__owned_zc.async_close()
        except Exception as e:
            _logger.error(
                "Exception during close operation for %s. Error: %s",
                self.__srv,
                e,
                exc_info=True,
            )
        finally:
            self._service_info = None
            self.__owned_zc = None
            self._zc = None
