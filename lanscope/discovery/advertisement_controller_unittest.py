from unittest.mock import AsyncMock, MagicMock

import pytest

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.advertisement_controller import (
    AdvertisementController,
    AdvertisementOptions,
    make_advertisement_options,
)
from lanscope.discovery.mdns.record_advertiser import LOOPBACK_INTERFACE
from lanscope.discovery.mdns.service_advertiser import ServiceAdvertiser
from lanscope.discovery.service_spec import ServiceSpec


def make_spec(address=None):
    return ServiceSpec(
        name="temperature",
        type="_zmq",
        port=9999,
        address=address,
        properties={"role": "sensor"},
    )


def test_options_without_address_use_all_interfaces():
    options = make_advertisement_options(make_spec(), "127.0.0.1")
    assert options == AdvertisementOptions(
        name="temperature", txt_record={"role": "sensor"}
    )


def test_options_with_address_bind_interface():
    options = make_advertisement_options(make_spec("10.0.0.5"), "127.0.0.1")
    assert options.network_interface == "10.0.0.5"


def test_options_with_loopback_marker_use_loopback_interface():
    options = make_advertisement_options(make_spec("127.0.0.1"), "127.0.0.1")
    assert options.network_interface == LOOPBACK_INTERFACE


@pytest.fixture
def mock_advertiser() -> MagicMock:
    advertiser = MagicMock(spec=ServiceAdvertiser, name="MockAdvertiser")
    advertiser.publish = AsyncMock(name="publish")
    advertiser.close = AsyncMock(name="close")
    return advertiser


@pytest.mark.asyncio
async def test_advertise_service_publishes(mock_advertiser):
    factory = MagicMock(return_value=mock_advertiser)
    shared_zc = MagicMock(name="SharedZc")
    controller = AdvertisementController(
        DiscoveryConfig(zc_instance=shared_zc), advertiser_factory=factory
    )

    await controller.advertise_service(make_spec("127.0.0.1"))

    factory.assert_called_once_with(
        "temperature",
        "_zmq",
        9999,
        {"role": "sensor"},
        LOOPBACK_INTERFACE,
        shared_zc,
    )
    mock_advertiser.publish.assert_awaited_once()
    assert controller.is_advertising


@pytest.mark.asyncio
async def test_advertise_again_replaces_advertisement():
    first = MagicMock(spec=ServiceAdvertiser)
    first.publish = AsyncMock()
    first.close = AsyncMock()
    second = MagicMock(spec=ServiceAdvertiser)
    second.publish = AsyncMock()
    second.close = AsyncMock()
    factory = MagicMock(side_effect=[first, second])
    controller = AdvertisementController(advertiser_factory=factory)

    await controller.advertise_service(make_spec())
    await controller.advertise_service(make_spec("10.0.0.5"))

    first.close.assert_awaited_once()
    second.publish.assert_awaited_once()
    second.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_stop_advertising_is_idempotent(mock_advertiser):
    controller = AdvertisementController(
        advertiser_factory=MagicMock(return_value=mock_advertiser)
    )
    await controller.stop_advertising()

    await controller.advertise_service(make_spec())
    await controller.stop_advertising()
    await controller.stop_advertising()

    mock_advertiser.close.assert_awaited_once()
    assert not controller.is_advertising


@pytest.mark.asyncio
async def test_advertise_rejects_non_spec():
    controller = AdvertisementController(advertiser_factory=MagicMock())
    with pytest.raises(TypeError):
        await controller.advertise_service({"name": "x"})  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_failed_publish_closes_advertiser(mock_advertiser):
    mock_advertiser.publish.side_effect = OSError("no interface")
    controller = AdvertisementController(
        advertiser_factory=MagicMock(return_value=mock_advertiser)
    )

    with pytest.raises(OSError):
        await controller.advertise_service(make_spec("10.0.0.5"))

    mock_advertiser.close.assert_awaited_once()
    assert not controller.is_advertising

    await controller.stop_advertising()
    mock_advertiser.close.assert_awaited_once()
