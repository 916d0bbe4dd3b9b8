import pytest

from lanscope.discovery.query_matcher import matches
from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_record import ServiceRecord

SERVICE_TYPE = "_zmq._tcp.local."


@pytest.fixture
def record() -> ServiceRecord:
    return ServiceRecord(
        name="temperature-sensor",
        type=SERVICE_TYPE,
        port=9090,
        addresses=["10.0.0.5"],
        properties={"role": "sensor", "unit": "celsius"},
    )


def test_type_only_query_matches_everything(record):
    assert matches(ServiceQuery(type=SERVICE_TYPE), record)
    assert matches(
        ServiceQuery(type=SERVICE_TYPE), ServiceRecord(name=None, type=SERVICE_TYPE)
    )


def test_port_mismatch(record):
    assert not matches(ServiceQuery(type=SERVICE_TYPE, port=8080), record)


def test_port_match(record):
    assert matches(ServiceQuery(type=SERVICE_TYPE, port=9090), record)


def test_name_regex_searches_name(record):
    assert matches(ServiceQuery(type=SERVICE_TYPE, name="^temp"), record)
    assert matches(ServiceQuery(type=SERVICE_TYPE, name="sensor"), record)
    assert not matches(ServiceQuery(type=SERVICE_TYPE, name="^humid"), record)


def test_name_regex_against_unnamed_record():
    record = ServiceRecord(name=None, type=SERVICE_TYPE, port=1)
    assert not matches(ServiceQuery(type=SERVICE_TYPE, name=".*"), record)


def test_any_property_value_matches(record):
    query = ServiceQuery(
        type=SERVICE_TYPE, properties={"role": "sensor", "location": "attic"}
    )
    assert matches(query, record)


def test_property_value_mismatch(record):
    query = ServiceQuery(type=SERVICE_TYPE, properties={"role": "actuator"})
    assert not matches(query, record)


def test_property_missing_from_record(record):
    query = ServiceQuery(type=SERVICE_TYPE, properties={"location": "attic"})
    assert not matches(query, record)


def test_fields_are_ored(record):
    # Name and properties miss, port hits.
    query = ServiceQuery(
        type=SERVICE_TYPE,
        name="^humid",
        port=9090,
        properties={"role": "actuator"},
    )
    assert matches(query, record)


def test_all_populated_fields_miss(record):
    query = ServiceQuery(
        type=SERVICE_TYPE,
        name="^humid",
        port=1,
        properties={"role": "actuator"},
    )
    assert not matches(query, record)


def test_empty_properties_count_as_unset(record):
    assert matches(ServiceQuery(type=SERVICE_TYPE, properties={}), record)
