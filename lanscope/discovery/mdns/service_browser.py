"""ServiceBrowser ABC and client interface for mDNS service discovery."""

from abc import ABC, abstractmethod

from zeroconf import ServiceListener, Zeroconf

from lanscope.discovery.service_record import ServiceRecord


class ServiceBrowser(ServiceListener):
    """ABC for mDNS service browsers.

    Extends `zeroconf.ServiceListener` with an async lifecycle (`start`,
    `stop`) and a client notified of every service event for one type.
    """

    @abstractmethod
    async def start(self) -> None:
        """Starts browsing for mDNS services."""
        raise NotImplementedError(
            "ServiceBrowser.start must be implemented by subclasses."
        )

    @abstractmethod
    async def stop(self) -> None:
        """Stops browsing and releases the engine resources it owns."""
        raise NotImplementedError(
            "ServiceBrowser.stop must be implemented by subclasses."
        )

    @abstractmethod
    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called when a new service is discovered."""
        raise NotImplementedError()

    @abstractmethod
    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called when a service is removed."""
        raise NotImplementedError()

    @abstractmethod
    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Called when a service is updated."""
        raise NotImplementedError()

    class Client(ABC):
        """Interface for `ServiceBrowser` clients.

        Receives one call per engine event, one at a time.
        """

        @abstractmethod
        async def _on_service_up(self, record: ServiceRecord) -> None:
            """Callback for a newly resolved service.

            Args:
                record: The resolved service, with every candidate address.
            """
            raise NotImplementedError(
                "ServiceBrowser.Client._on_service_up must be implemented by subclasses."
            )

        @abstractmethod
        async def _on_service_down(self, record: ServiceRecord) -> None:
            """Callback for a service that stopped advertising.

            Args:
                record: The removed service. Only name and type are set.
            """
            raise NotImplementedError(
                "ServiceBrowser.Client._on_service_down must be implemented by subclasses."
            )

        @abstractmethod
        async def _on_service_changed(self, record: ServiceRecord) -> None:
            """Callback for a service whose records were updated.

            Args:
                record: The service as resolved after the update.
            """
            raise NotImplementedError(
                "ServiceBrowser.Client._on_service_changed must be implemented by subclasses."
            )
