import re

import pytest

from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_record import ServiceRecord
from lanscope.discovery.service_spec import ServiceSpec


def test_suggested_address_is_first_suggestion():
    record = ServiceRecord(name="svc", type="_zmq._tcp.local.", port=1)
    assert record.suggested_address is None

    record.suggested_addresses = ["10.0.0.2", "10.0.0.3"]

    assert record.suggested_address == "10.0.0.2"


def test_to_service_spec_uses_suggested_address():
    record = ServiceRecord(
        name="svc",
        type="_zmq._tcp.local.",
        port=5555,
        addresses=["10.0.0.2", "192.168.0.2"],
        properties={"k": "v"},
        suggested_addresses=["192.168.0.2"],
    )

    spec = record.to_service_spec()

    assert spec == ServiceSpec(
        name="svc",
        type="_zmq._tcp.local.",
        port=5555,
        address="192.168.0.2",
        properties={"k": "v"},
    )
    spec.properties["k"] = "changed"
    assert record.properties == {"k": "v"}


def test_to_service_spec_requires_port():
    record = ServiceRecord(name="svc", type="_zmq._tcp.local.")
    with pytest.raises(ValueError):
        record.to_service_spec()


def test_query_compiles_name():
    query = ServiceQuery(type="_zmq", name="^temp.*")
    assert isinstance(query.name_regex, re.Pattern)
    assert ServiceQuery(type="_zmq").name_regex is None


def test_query_rejects_bad_pattern():
    with pytest.raises(re.error):
        ServiceQuery(type="_zmq", name="(")


def test_query_requires_type():
    with pytest.raises(ValueError):
        ServiceQuery(type="")


def test_query_rejects_non_int_port():
    with pytest.raises(TypeError):
        ServiceQuery(type="_zmq", port="80")  # type: ignore[arg-type]
