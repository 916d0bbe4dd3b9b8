from lanscope.discovery.local_service_detector import is_local


def test_is_local_when_any_address_matches():
    assert is_local(["10.0.0.7", "192.168.1.4"], ["192.168.1.4"])


def test_is_not_local_without_match():
    assert not is_local(["10.0.0.7"], ["10.0.0.1", "192.168.1.4"])


def test_is_not_local_for_empty_candidates():
    assert not is_local([], ["10.0.0.1"])


def test_is_not_local_without_local_addresses():
    assert not is_local(["10.0.0.1"], [])


def test_is_local_uses_exact_string_equality():
    assert not is_local(["10.0.0.10"], ["10.0.0.1"])
