import pytest

from lanscope.discovery.address_ranker import matching_prefix_len, rank


@pytest.mark.parametrize(
    "service_address,local_address,expected",
    [
        ("10.0.0.5", "10.0.0.1", 7),
        ("10.0.1.9", "10.0.0.1", 5),
        ("192.168.1.2", "10.0.0.1", 1),
        ("192.168.1.2", "8.8.8.8", 0),
        ("10.0.0.1", "10.0.0.1", 8),
        ("10.0.0.1", "10.0.0.10", 8),
        ("", "10.0.0.1", 0),
    ],
)
def test_matching_prefix_len(service_address, local_address, expected):
    assert matching_prefix_len(service_address, local_address) == expected


def test_rank_picks_longest_prefix():
    assert rank(["10.0.0.5", "10.0.1.9"], ["10.0.0.1"]) == ["10.0.0.5"]


def test_rank_returns_ties_sorted():
    assert rank(["10.0.0.6", "10.0.0.5"], ["10.0.0.1"]) == [
        "10.0.0.5",
        "10.0.0.6",
    ]


def test_rank_uses_best_local_address_per_candidate():
    # 192.168.1.20 is closest to the second interface.
    result = rank(
        ["10.1.2.3", "192.168.1.20"], ["10.9.9.9", "192.168.1.1"]
    )
    assert result == ["192.168.1.20"]


def test_rank_empty_candidates():
    assert rank([], ["10.0.0.1"]) == []


def test_rank_no_local_addresses_returns_all_sorted():
    assert rank(["10.0.0.9", "192.168.0.1", "10.0.0.2"], []) == [
        "10.0.0.2",
        "10.0.0.9",
        "192.168.0.1",
    ]


def test_rank_collapses_duplicate_candidates():
    assert rank(["10.0.0.5", "10.0.0.5"], ["10.0.0.1"]) == ["10.0.0.5"]


def test_rank_is_deterministic_across_input_order():
    local = ["172.16.4.1"]
    first = rank(["172.16.4.9", "172.16.4.7", "10.0.0.1"], local)
    second = rank(["10.0.0.1", "172.16.4.7", "172.16.4.9"], local)
    assert first == second == ["172.16.4.7", "172.16.4.9"]


def test_rank_compares_characters_not_subnets():
    # "10.0.0.100" shares more leading characters with "10.0.0.1" than
    # "10.0.0.2" does, although both sit in the same /24.
    assert rank(["10.0.0.2", "10.0.0.100"], ["10.0.0.1"]) == ["10.0.0.100"]
