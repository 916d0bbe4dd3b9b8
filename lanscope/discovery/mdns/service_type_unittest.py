import pytest

from lanscope.discovery.mdns.service_type import (
    to_full_service_type,
    to_instance_name,
)


@pytest.mark.parametrize(
    "service_type,expected",
    [
        ("_zmq", "_zmq._tcp.local."),
        ("_zmq._tcp", "_zmq._tcp.local."),
        ("_zmq._udp", "_zmq._udp.local."),
        ("_zmq._tcp.local.", "_zmq._tcp.local."),
        ("_mqtt._udp.local.", "_mqtt._udp.local."),
    ],
)
def test_to_full_service_type(service_type, expected):
    assert to_full_service_type(service_type) == expected


def test_to_full_service_type_requires_underscore():
    with pytest.raises(ValueError):
        to_full_service_type("zmq")


def test_to_full_service_type_requires_str():
    with pytest.raises(TypeError):
        to_full_service_type(None)  # type: ignore[arg-type]


def test_to_instance_name():
    assert to_instance_name("dev1._zmq._tcp.local.", "_zmq._tcp.local.") == "dev1"
    assert to_instance_name("dev1.other.", "_zmq._tcp.local.") == "dev1.other."
    assert to_instance_name("._zmq._tcp.local.", "_zmq._tcp.local.") is None
