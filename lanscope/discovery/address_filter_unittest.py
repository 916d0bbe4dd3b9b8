import logging

import pytest

from lanscope.discovery.address_filter import filter_service_addresses
from lanscope.discovery.service_cache import ServiceCache
from lanscope.discovery.service_record import ServiceRecord
from lanscope.util.ip import LocalAddressSet

LOOPBACK = "127.0.0.1"
LOCAL = LocalAddressSet.of(["10.0.0.1", "192.168.7.20"])


def make_record(name, *addresses):
    return ServiceRecord(
        name=name, type="_zmq._tcp.local.", port=5555, addresses=list(addresses)
    )


@pytest.fixture
def cache() -> ServiceCache:
    return ServiceCache()


def run(record, cache):
    return filter_service_addresses(record, cache, LOCAL, LOOPBACK)


def test_duplicate_event_is_suppressed(cache):
    record = make_record("svc", "10.0.0.5", "10.0.1.9")
    assert run(record, cache) == ["10.0.0.5"]
    assert run(record, cache) == []


def test_single_new_address_returned_verbatim(cache):
    assert run(make_record("svc", "172.31.0.9"), cache) == ["172.31.0.9"]


def test_only_new_addresses_are_ranked(cache):
    run(make_record("svc", "10.0.0.5"), cache)

    # 10.0.0.5 is known, so the single new address wins without ranking.
    assert run(make_record("svc", "10.0.0.5", "172.31.0.9"), cache) == [
        "172.31.0.9"
    ]


def test_multiple_new_addresses_are_ranked(cache):
    record = make_record("svc", "10.0.0.6", "172.31.0.9", "10.0.0.5")
    assert run(record, cache) == ["10.0.0.5", "10.0.0.6"]


def test_local_service_reports_loopback(cache):
    record = make_record("svc", "10.0.0.5", "192.168.7.20", "172.31.0.9")
    assert run(record, cache) == [LOOPBACK]


def test_locality_uses_all_cached_addresses(cache):
    run(make_record("svc", "192.168.7.20"), cache)

    # The local address was cached earlier; the new one is still local.
    assert run(make_record("svc", "10.0.0.77"), cache) == [LOOPBACK]


def test_missing_name_dropped_with_warning(cache, caplog):
    with caplog.at_level(logging.WARNING):
        assert run(make_record(None, "10.0.0.5"), cache) == []
    assert "without a name" in caplog.text
    assert len(cache) == 0


def test_missing_addresses_dropped_with_warning(cache, caplog):
    with caplog.at_level(logging.WARNING):
        assert run(make_record("svc"), cache) == []
    assert "without addresses" in caplog.text
    assert len(cache) == 0


def test_all_addresses_cached_even_when_local(cache):
    run(make_record("svc", "192.168.7.20", "10.0.0.5"), cache)
    assert cache.known_addresses("svc") == {"192.168.7.20", "10.0.0.5"}


def test_forget_readmits_service(cache):
    record = make_record("svc", "10.0.0.5")
    run(record, cache)
    cache.forget("svc")
    assert run(record, cache) == ["10.0.0.5"]


def test_no_local_addresses_returns_all_sorted(cache):
    record = make_record("svc", "10.0.0.9", "10.0.0.2")
    result = filter_service_addresses(
        record, cache, LocalAddressSet(), LOOPBACK
    )
    assert result == ["10.0.0.2", "10.0.0.9"]
