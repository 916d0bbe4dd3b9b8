"""ServiceAdvertiser ABC for announcing services via mDNS."""

from abc import ABC, abstractmethod


class ServiceAdvertiser(ABC):
    """Abstract base class for mDNS service advertisers.

    Defines a common interface for making a service discoverable on the
    local network, and for withdrawing it again.
    """

    @abstractmethod
    async def publish(self) -> None:
        """Announces the service via mDNS."""

    @abstractmethod
    async def close(self) -> None:
        """Withdraws the announcement and releases engine resources."""
