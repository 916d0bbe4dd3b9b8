import pytest

import socket  # For AF_INET, AF_INET6 constants

from lanscope.util import ip as ip_util


# Helper to create a mock address object
def create_mock_address(mocker, family, address):
    mock_addr = mocker.MagicMock()
    mock_addr.family = family
    mock_addr.address = address
    return mock_addr


class TestIpUtils:

    # --- Tests for get_all_address_strings ---

    def test_get_all_address_strings_no_interfaces(self, mocker):
        mock_net_if_addrs = mocker.patch("psutil.net_if_addrs")
        mock_net_if_addrs.return_value = {}

        result = ip_util.get_all_address_strings()

        assert result == []
        mock_net_if_addrs.assert_called_once()

    def test_get_all_address_strings_skips_non_ipv4(self, mocker):
        mock_net_if_addrs = mocker.patch("psutil.net_if_addrs")
        mock_net_if_addrs.return_value = {
            "eth0": [
                create_mock_address(mocker, socket.AF_INET6, "fe80::1"),
                create_mock_address(mocker, socket.AF_INET, "192.168.1.100"),
            ]
        }

        result = ip_util.get_all_address_strings()

        assert result == ["192.168.1.100"]

    def test_get_all_address_strings_multiple_interfaces(self, mocker):
        mock_net_if_addrs = mocker.patch("psutil.net_if_addrs")
        mock_net_if_addrs.return_value = {
            "eth0": [
                create_mock_address(mocker, socket.AF_INET, "192.168.1.103"),
            ],
            "lo": [create_mock_address(mocker, socket.AF_INET, "127.0.0.1")],
            "eth1": [
                create_mock_address(mocker, socket.AF_INET6, "fe80::4"),
                create_mock_address(mocker, socket.AF_INET, "10.0.0.5"),
            ],
        }

        result = ip_util.get_all_address_strings()

        assert sorted(result) == sorted(
            ["192.168.1.103", "127.0.0.1", "10.0.0.5"]
        )

    # --- Tests for get_all_addresses ---

    def test_get_all_addresses_packs_strings(self, mocker):
        mocker.patch(
            "lanscope.util.ip.get_all_address_strings",
            return_value=["192.168.1.1", "10.0.0.1"],
        )

        result = ip_util.get_all_addresses()

        assert result == [b"\xc0\xa8\x01\x01", b"\x0a\x00\x00\x01"]

    # --- Tests for get_local_address_set ---

    def test_get_local_address_set_drops_loopback(self, mocker):
        mocker.patch(
            "lanscope.util.ip.get_all_address_strings",
            return_value=["127.0.0.1", "192.168.1.7", "127.0.1.1", "10.1.1.1"],
        )

        result = ip_util.get_local_address_set()

        assert result.addresses == ("192.168.1.7", "10.1.1.1")
        assert "10.1.1.1" in result
        assert "127.0.0.1" not in result
        assert len(result) == 2

    def test_get_local_address_set_drops_repeats_keeps_order(self, mocker):
        mocker.patch(
            "lanscope.util.ip.get_all_address_strings",
            return_value=["10.0.0.2", "10.0.0.1", "10.0.0.2"],
        )

        result = ip_util.get_local_address_set()

        assert list(result) == ["10.0.0.2", "10.0.0.1"]

    def test_local_address_set_is_immutable(self):
        local = ip_util.LocalAddressSet.of(["10.0.0.1"])
        with pytest.raises(AttributeError):
            local.addresses = ("10.0.0.2",)  # type: ignore[misc]

    @pytest.mark.parametrize(
        "address,expected",
        [
            ("127.0.0.1", True),
            ("127.5.5.5", True),
            ("10.0.0.1", False),
            ("not-an-ip", False),
        ],
    )
    def test_is_loopback(self, address, expected):
        assert ip_util.is_loopback(address) is expected
