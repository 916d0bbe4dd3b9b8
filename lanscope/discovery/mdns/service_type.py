"""Helpers for mDNS service type and instance name strings."""

from typing import Optional


def to_full_service_type(service_type: str) -> str:
    """Expands a base service type to its fully-qualified mDNS form.

    "_zmq" becomes "_zmq._tcp.local.", "_zmq._udp" becomes
    "_zmq._udp.local.", and a fully-qualified type is returned unchanged.

    Raises:
        TypeError: If |service_type| is not a str.
        ValueError: If |service_type| does not start with '_'.
    """
    if not isinstance(service_type, str):
        raise TypeError(
            f"service_type must be str, got {type(service_type).__name__}."
        )
    # mDNS service types usually start with an underscore.
    if not service_type.startswith("_"):
        raise ValueError(f"service_type must start with '_', got '{service_type}'.")

    if service_type.endswith("._tcp.local.") or service_type.endswith(
        "._udp.local."
    ):
        return service_type
    if service_type.endswith("._tcp") or service_type.endswith("._udp"):
        return f"{service_type}.local."
    return f"{service_type}._tcp.local."


def to_instance_name(mdns_name: str, full_service_type: str) -> Optional[str]:
    """Strips the service type from a fully-qualified instance name.

    "MyDevice._zmq._tcp.local." with type "_zmq._tcp.local." gives
    "MyDevice". Names of another type are returned unchanged, and an empty
    instance part gives None.
    """
    suffix = f".{full_service_type}"
    if mdns_name.endswith(suffix):
        mdns_name = mdns_name[: -len(suffix)]
    return mdns_name or None
