import logging
import threading

from lanscope.discovery.service_cache import ServiceCache


def test_record_if_new_is_idempotent():
    cache = ServiceCache()
    assert cache.record_if_new("printer", "10.0.0.5") is True
    assert cache.record_if_new("printer", "10.0.0.5") is False
    assert cache.known_addresses("printer") == {"10.0.0.5"}


def test_addresses_are_tracked_per_name():
    cache = ServiceCache()
    assert cache.record_if_new("a", "10.0.0.5")
    assert cache.record_if_new("b", "10.0.0.5")
    assert len(cache) == 2


def test_record_all_returns_new_addresses_in_order():
    cache = ServiceCache()
    cache.record_if_new("svc", "10.0.0.2")

    new = cache.record_all("svc", ["10.0.0.3", "10.0.0.2", "10.0.0.1", "10.0.0.3"])

    assert new == ["10.0.0.3", "10.0.0.1"]
    assert cache.known_addresses("svc") == {"10.0.0.1", "10.0.0.2", "10.0.0.3"}


def test_known_addresses_unknown_name_is_empty():
    cache = ServiceCache()
    assert cache.known_addresses("nope") == set()
    assert "nope" not in cache


def test_known_addresses_returns_copy():
    cache = ServiceCache()
    cache.record_if_new("svc", "10.0.0.1")
    cache.known_addresses("svc").add("10.0.0.2")
    assert cache.known_addresses("svc") == {"10.0.0.1"}


def test_forget_makes_address_new_again():
    cache = ServiceCache()
    cache.record_if_new("svc", "10.0.0.1")
    cache.forget("svc")

    assert "svc" not in cache
    assert cache.record_if_new("svc", "10.0.0.1") is True


def test_forget_unknown_name_is_noop():
    cache = ServiceCache()
    cache.record_if_new("svc", "10.0.0.1")
    cache.forget("other")
    assert "svc" in cache


def test_forget_without_name_warns_and_keeps_entries(caplog):
    cache = ServiceCache()
    cache.record_if_new("svc", "10.0.0.1")

    with caplog.at_level(logging.WARNING):
        cache.forget(None)
        cache.forget("")

    assert "svc" in cache
    assert len(cache) == 1
    assert caplog.text.count("Cannot remove service without a name") == 2


def test_reset_clears_everything():
    cache = ServiceCache()
    cache.record_if_new("a", "10.0.0.1")
    cache.record_if_new("b", "10.0.0.2")

    cache.reset()

    assert len(cache) == 0
    assert cache.record_if_new("a", "10.0.0.1") is True
    assert cache.record_if_new("b", "10.0.0.2") is True


def test_concurrent_record_reports_each_address_once():
    cache = ServiceCache()
    addresses = [f"10.0.{i // 256}.{i % 256}" for i in range(500)]
    new_counts = []
    lock = threading.Lock()

    def worker():
        new = cache.record_all("svc", addresses)
        with lock:
            new_counts.append(len(new))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(new_counts) == len(addresses)
    assert len(cache.known_addresses("svc")) == len(addresses)
