import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.discovery_controller import (
    DiscoveryController,
    DiscoveryState,
)
from lanscope.discovery.mdns.service_browser import ServiceBrowser
from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_record import ServiceRecord
from lanscope.discovery.service_spec import ServiceSpec
from lanscope.util.ip import LocalAddressSet

SERVICE_TYPE = "_zmq._tcp.local."
LOCAL = LocalAddressSet.of(["10.0.0.1"])


def make_record(name="svc", addresses=("10.0.0.5",), port=5555, **properties):
    return ServiceRecord(
        name=name,
        type=SERVICE_TYPE,
        port=port,
        addresses=list(addresses),
        properties=dict(properties),
    )


@pytest.fixture
def mock_browser() -> MagicMock:
    browser = MagicMock(spec=ServiceBrowser, name="MockServiceBrowser")
    browser.start = AsyncMock(name="start")
    browser.stop = AsyncMock(name="stop")
    return browser


@pytest.fixture
def browser_factory(mock_browser) -> MagicMock:
    return MagicMock(name="BrowserFactory", return_value=mock_browser)


@pytest.fixture
def controller(browser_factory) -> DiscoveryController:
    return DiscoveryController(LOCAL, browser_factory=browser_factory)


@pytest.mark.asyncio
async def test_discover_services_starts_browser(
    controller, browser_factory, mock_browser
):
    query = ServiceQuery(type=SERVICE_TYPE)
    await controller.discover_services(query, None, MagicMock())

    browser_factory.assert_called_once()
    client, service_type, config = browser_factory.call_args.args
    assert client is controller
    assert service_type == SERVICE_TYPE
    assert isinstance(config, DiscoveryConfig)
    mock_browser.start.assert_awaited_once()
    assert controller.state is DiscoveryState.BROWSING


@pytest.mark.asyncio
async def test_discover_services_rejects_non_query(controller, browser_factory):
    with pytest.raises(TypeError, match="ServiceQuery"):
        await controller.discover_services(
            {"type": SERVICE_TYPE}, None, MagicMock()  # type: ignore[arg-type]
        )
    browser_factory.assert_not_called()
    assert controller.state is DiscoveryState.IDLE


@pytest.mark.asyncio
async def test_discover_services_twice_raises(controller):
    query = ServiceQuery(type=SERVICE_TYPE)
    await controller.discover_services(query, None, MagicMock())
    with pytest.raises(RuntimeError):
        await controller.discover_services(query, None, MagicMock())


@pytest.mark.asyncio
async def test_failed_browser_start_returns_to_idle(controller, mock_browser):
    mock_browser.start.side_effect = OSError("no multicast")
    with pytest.raises(OSError):
        await controller.discover_services(
            ServiceQuery(type=SERVICE_TYPE), None, MagicMock()
        )
    assert controller.state is DiscoveryState.IDLE
    mock_browser.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_service_up_invokes_callback_with_spec(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(
        make_record(addresses=["10.0.1.9", "10.0.0.5"], role="sensor")
    )

    callback.assert_called_once_with(
        ServiceSpec(
            name="svc",
            type=SERVICE_TYPE,
            port=5555,
            address="10.0.0.5",
            properties={"role": "sensor"},
        )
    )


@pytest.mark.asyncio
async def test_duplicate_service_up_reported_once(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(make_record())
    await controller._on_service_up(make_record())

    callback.assert_called_once()


@pytest.mark.asyncio
async def test_local_service_reported_at_loopback(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(
        make_record(addresses=["10.0.0.1", "10.0.0.5"])
    )

    assert callback.call_args.args[0].address == "127.0.0.1"


@pytest.mark.asyncio
async def test_custom_loopback_address(browser_factory):
    controller = DiscoveryController(
        LOCAL,
        DiscoveryConfig(loopback_address="localhost"),
        browser_factory=browser_factory,
    )
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(make_record(addresses=["10.0.0.1"]))

    assert callback.call_args.args[0].address == "localhost"


@pytest.mark.asyncio
async def test_query_mismatch_not_reported(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE, port=8080), None, callback
    )

    await controller._on_service_up(make_record(port=9090))

    callback.assert_not_called()


@pytest.mark.asyncio
async def test_user_filter_sees_full_record(controller):
    callback = MagicMock()
    seen = []

    def user_filter(record: ServiceRecord) -> bool:
        seen.append(record)
        return False

    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), user_filter, callback
    )
    await controller._on_service_up(
        make_record(addresses=["10.0.0.5", "10.0.0.6", "172.16.0.1"])
    )

    callback.assert_not_called()
    assert len(seen) == 1
    assert seen[0].addresses == ["10.0.0.5", "10.0.0.6", "172.16.0.1"]
    assert seen[0].suggested_addresses == ["10.0.0.5", "10.0.0.6"]


@pytest.mark.asyncio
async def test_callback_error_is_swallowed(controller):
    callback = MagicMock(side_effect=ValueError("consumer bug"))
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(make_record(name="a"))
    await controller._on_service_up(make_record(name="b"))

    assert callback.call_count == 2
    assert controller.state is DiscoveryState.BROWSING


@pytest.mark.asyncio
async def test_user_filter_error_is_swallowed(controller):
    callback = MagicMock()
    user_filter = MagicMock(side_effect=KeyError("role"))
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), user_filter, callback
    )

    await controller._on_service_up(make_record())

    callback.assert_not_called()


@pytest.mark.asyncio
async def test_async_callback_is_awaited(controller):
    callback = AsyncMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(make_record())

    callback.assert_awaited_once()


@pytest.mark.asyncio
async def test_record_without_port_dropped(controller, caplog):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    with caplog.at_level(logging.WARNING):
        await controller._on_service_up(make_record(port=None))

    callback.assert_not_called()
    assert "without a port" in caplog.text


@pytest.mark.asyncio
async def test_service_down_forgets_service(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )

    await controller._on_service_up(make_record())
    await controller._on_service_down(ServiceRecord(name="svc", type=SERVICE_TYPE))
    await controller._on_service_up(make_record())

    assert callback.call_count == 2
    assert "svc" in controller.cache


@pytest.mark.asyncio
async def test_service_changed_is_ignored(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )
    await controller._on_service_up(make_record())

    await controller._on_service_changed(
        make_record(addresses=["10.0.0.9"])
    )

    callback.assert_called_once()
    assert controller.cache.known_addresses("svc") == {"10.0.0.5"}


@pytest.mark.asyncio
async def test_stop_discovering_resets_cache_and_browser(controller, mock_browser):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )
    await controller._on_service_up(make_record())

    await controller.stop_discovering()

    mock_browser.stop.assert_awaited_once()
    assert controller.state is DiscoveryState.IDLE
    assert len(controller.cache) == 0


@pytest.mark.asyncio
async def test_stop_discovering_twice_is_safe(controller, mock_browser):
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, MagicMock()
    )

    await controller.stop_discovering()
    assert len(controller.cache) == 0
    await controller.stop_discovering()
    assert len(controller.cache) == 0

    mock_browser.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_stop_discovering_when_never_started(controller):
    await controller.stop_discovering()
    assert controller.state is DiscoveryState.IDLE


@pytest.mark.asyncio
async def test_browser_stop_error_is_logged(controller, mock_browser, caplog):
    mock_browser.stop.side_effect = RuntimeError("boom")
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, MagicMock()
    )

    with caplog.at_level(logging.ERROR):
        await controller.stop_discovering()

    assert controller.state is DiscoveryState.IDLE
    assert "Error stopping service browser" in caplog.text


@pytest.mark.asyncio
async def test_events_after_stop_are_ignored(controller):
    callback = MagicMock()
    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, callback
    )
    await controller.stop_discovering()

    await controller._on_service_up(make_record())

    callback.assert_not_called()
    assert len(controller.cache) == 0


@pytest.mark.asyncio
async def test_service_changed_while_idle_is_not_handled(controller, caplog):
    with caplog.at_level(logging.DEBUG, logger="lanscope.discovery.discovery_controller"):
        await controller._on_service_changed(make_record())

    assert "changed" not in caplog.text
    assert len(controller.cache) == 0

    await controller.discover_services(
        ServiceQuery(type=SERVICE_TYPE), None, MagicMock()
    )
    with caplog.at_level(logging.DEBUG, logger="lanscope.discovery.discovery_controller"):
        await controller._on_service_changed(make_record())

    assert "Service 'svc' changed" in caplog.text


@pytest.mark.asyncio
async def test_restart_reports_previously_seen_services(controller):
    callback = MagicMock()
    query = ServiceQuery(type=SERVICE_TYPE)
    await controller.discover_services(query, None, callback)
    await controller._on_service_up(make_record())
    await controller.stop_discovering()

    await controller.discover_services(query, None, callback)
    await controller._on_service_up(make_record())

    assert callback.call_count == 2


def test_local_addresses_queried_when_not_given(mocker):
    get_set = mocker.patch(
        "lanscope.discovery.discovery_controller.get_local_address_set",
        return_value=LOCAL,
    )
    controller = DiscoveryController()
    get_set.assert_called_once()
    assert controller.local_addresses is LOCAL
