import pytest
from unittest.mock import AsyncMock, patch

from zeroconf import InterfaceChoice, IPVersion, ServiceInfo
from zeroconf.asyncio import AsyncZeroconf

from lanscope.discovery.mdns.record_advertiser import (
    LOOPBACK_INTERFACE,
    RecordAdvertiser,
)


@pytest.mark.asyncio
async def test_publish_and_close_with_owned_zc_closes_zc():
    """Test that RecordAdvertiser closes its owned AsyncZeroconf instance."""
    mock_owned_zc_instance = AsyncMock(spec=AsyncZeroconf)

    with patch(
        "lanscope.discovery.mdns.record_advertiser.AsyncZeroconf",
        return_value=mock_owned_zc_instance,
    ) as mock_zc_constructor, patch(
        "lanscope.discovery.mdns.record_advertiser.get_all_addresses",
        return_value=[b"\x0a\x00\x00\x05"],
    ):
        advertiser = RecordAdvertiser(
            name="TestService",
            type_="_testtype",
            port=1234,
            properties={"key": "value"},
        )
        await advertiser.publish()

    mock_zc_constructor.assert_called_once_with(
        interfaces=InterfaceChoice.All, ip_version=IPVersion.V4Only
    )
    assert advertiser._zc is mock_owned_zc_instance

    mock_owned_zc_instance.async_register_service.assert_awaited_once()
    info = mock_owned_zc_instance.async_register_service.call_args.args[0]
    assert isinstance(info, ServiceInfo)
    assert info.type == "_testtype._tcp.local."
    assert info.name == "TestService._testtype._tcp.local."
    assert info.port == 1234
    assert info.parsed_addresses() == ["10.0.0.5"]
    assert info.properties == {b"key": b"value"}

    await advertiser.close()

    mock_owned_zc_instance.async_unregister_service.assert_awaited_once_with(info)
    mock_owned_zc_instance.async_close.assert_awaited_once()
    assert advertiser._zc is None


@pytest.mark.asyncio
async def test_publish_on_loopback_interface():
    mock_owned_zc_instance = AsyncMock(spec=AsyncZeroconf)

    with patch(
        "lanscope.discovery.mdns.record_advertiser.AsyncZeroconf",
        return_value=mock_owned_zc_instance,
    ) as mock_zc_constructor:
        advertiser = RecordAdvertiser(
            "Local", "_zmq", 5555, network_interface=LOOPBACK_INTERFACE
        )
        await advertiser.publish()

    mock_zc_constructor.assert_called_once_with(
        interfaces=[LOOPBACK_INTERFACE], ip_version=IPVersion.V4Only
    )
    info = mock_owned_zc_instance.async_register_service.call_args.args[0]
    assert info.parsed_addresses() == [LOOPBACK_INTERFACE]


@pytest.mark.asyncio
async def test_publish_and_close_with_shared_zc_does_not_close_shared_zc():
    mock_shared_zc_instance = AsyncMock(spec=AsyncZeroconf)

    advertiser = RecordAdvertiser(
        "TestSharedService",
        "_testsharedtype",
        5678,
        {"shared": "true"},
        "192.168.1.4",
        zc_instance=mock_shared_zc_instance,
    )
    await advertiser.publish()

    assert advertiser._zc is mock_shared_zc_instance
    mock_shared_zc_instance.async_register_service.assert_awaited_once()

    await advertiser.close()

    mock_shared_zc_instance.async_unregister_service.assert_awaited_once()
    mock_shared_zc_instance.async_close.assert_not_called()


@pytest.mark.asyncio
async def test_republish_unregisters_first():
    mock_shared_zc_instance = AsyncMock(spec=AsyncZeroconf)
    advertiser = RecordAdvertiser(
        "Again", "_zmq", 1, network_interface="10.0.0.5",
        zc_instance=mock_shared_zc_instance,
    )

    await advertiser.publish()
    await advertiser.publish()

    assert mock_shared_zc_instance.async_register_service.await_count == 2
    mock_shared_zc_instance.async_unregister_service.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_logs_unregister_failure(caplog):
    mock_shared_zc_instance = AsyncMock(spec=AsyncZeroconf)
    mock_shared_zc_instance.async_unregister_service.side_effect = RuntimeError(
        "not running"
    )
    advertiser = RecordAdvertiser(
        "Failing", "_zmq", 1, network_interface="10.0.0.5",
        zc_instance=mock_shared_zc_instance,
    )
    await advertiser.publish()

    await advertiser.close()

    assert "Exception during close operation" in caplog.text
    assert advertiser._service_info is None


def test_constructor_validation():
    with pytest.raises(ValueError):
        RecordAdvertiser("", "_zmq", 1)
    with pytest.raises(ValueError):
        RecordAdvertiser("name", "zmq", 1)


@pytest.mark.asyncio
async def test_failed_registration_closes_owned_zc():
    mock_owned_zc_instance = AsyncMock(spec=AsyncZeroconf)
    mock_owned_zc_instance.async_register_service.side_effect = OSError(
        "address in use"
    )

    with patch(
        "lanscope.discovery.mdns.record_advertiser.AsyncZeroconf",
        return_value=mock_owned_zc_instance,
    ):
        advertiser = RecordAdvertiser(
            "Broken", "_zmq", 1, network_interface="10.0.0.5"
        )
        with pytest.raises(OSError):
            await advertiser.publish()

    mock_owned_zc_instance.async_close.assert_awaited_once()
    mock_owned_zc_instance.async_unregister_service.assert_not_called()
    assert advertiser._zc is None
    assert advertiser._service_info is None


@pytest.mark.asyncio
async def test_failed_registration_leaves_shared_zc_open():
    mock_shared_zc_instance = AsyncMock(spec=AsyncZeroconf)
    mock_shared_zc_instance.async_register_service.side_effect = OSError("boom")
    advertiser = RecordAdvertiser(
        "Broken",
        "_zmq",
        1,
        network_interface="10.0.0.5",
        zc_instance=mock_shared_zc_instance,
    )

    with pytest.raises(OSError):
        await advertiser.publish()

    mock_shared_zc_instance.async_close.assert_not_called()
    mock_shared_zc_instance.async_unregister_service.assert_not_called()
