import asyncio
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from zeroconf import IPVersion
from zeroconf.asyncio import AsyncServiceBrowser, AsyncZeroconf

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.mdns.record_browser import RecordBrowser, decode_txt_record
from lanscope.discovery.mdns.service_browser import ServiceBrowser
from lanscope.discovery.service_record import ServiceRecord

SERVICE_TYPE = "_zmq._tcp.local."
MDNS_NAME = f"MyDevice.{SERVICE_TYPE}"


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock(spec=ServiceBrowser.Client, name="MockBrowserClient")
    client._on_service_up = AsyncMock(name="on_service_up")
    client._on_service_down = AsyncMock(name="on_service_down")
    client._on_service_changed = AsyncMock(name="on_service_changed")
    return client


@pytest.fixture
def shared_zc() -> AsyncMock:
    zc = AsyncMock(spec=AsyncZeroconf)
    zc.zeroconf = MagicMock()
    return zc


def make_info(port=5555, addresses=("10.0.0.5",), properties=None):
    info = MagicMock(name="AsyncServiceInfo")
    info.port = port
    info.parsed_addresses.return_value = list(addresses)
    info.properties = properties if properties is not None else {}
    return info


@pytest_asyncio.fixture
async def browser(mock_client, shared_zc) -> AsyncIterator[RecordBrowser]:
    browser = RecordBrowser(
        mock_client, "_zmq", DiscoveryConfig(zc_instance=shared_zc)
    )
    with patch(
        "lanscope.discovery.mdns.record_browser.AsyncServiceBrowser",
        return_value=AsyncMock(spec=AsyncServiceBrowser),
    ):
        await browser.start()
    yield browser
    await browser.stop()


def test_constructor_validates_arguments(mock_client):
    with pytest.raises(ValueError):
        RecordBrowser(None, "_zmq")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        RecordBrowser(mock_client, "zmq")
    with pytest.raises(TypeError):
        RecordBrowser(mock_client, 42)  # type: ignore[arg-type]


def test_service_type_is_expanded(mock_client):
    assert RecordBrowser(mock_client, "_zmq").service_type == SERVICE_TYPE
    assert (
        RecordBrowser(mock_client, "_zmq._udp").service_type
        == "_zmq._udp.local."
    )


@pytest.mark.asyncio
async def test_start_and_stop_with_owned_zc(mock_client):
    owned_zc = AsyncMock(spec=AsyncZeroconf)
    owned_zc.zeroconf = MagicMock()
    mock_service_browser = AsyncMock(spec=AsyncServiceBrowser)

    with patch(
        "lanscope.discovery.mdns.record_browser.AsyncZeroconf",
        return_value=owned_zc,
    ) as zc_constructor, patch(
        "lanscope.discovery.mdns.record_browser.AsyncServiceBrowser",
        return_value=mock_service_browser,
    ) as browser_constructor:
        browser = RecordBrowser(mock_client, "_zmq")
        await browser.start()

        zc_constructor.assert_called_once_with(ip_version=IPVersion.V4Only)
        browser_constructor.assert_called_once_with(
            owned_zc.zeroconf, [SERVICE_TYPE], listener=browser
        )

        await browser.stop()

    mock_service_browser.async_cancel.assert_awaited_once()
    owned_zc.async_close.assert_awaited_once()


@pytest.mark.asyncio
async def test_stop_does_not_close_shared_zc(shared_zc, browser):
    await browser.stop()
    shared_zc.async_close.assert_not_called()


@pytest.mark.asyncio
async def test_start_twice_raises(browser):
    with pytest.raises(RuntimeError):
        await browser.start()


@pytest.mark.asyncio
async def test_stop_before_start_is_safe(mock_client):
    browser = RecordBrowser(mock_client, "_zmq")
    await browser.stop()


@pytest.mark.asyncio
async def test_added_service_is_resolved(mock_client, shared_zc, browser):
    shared_zc.async_get_service_info.return_value = make_info(
        addresses=["10.0.0.5", "192.168.1.4", "10.0.0.5"],
        properties={b"role": b"sensor", b"flag": None},
    )

    await browser._handle_add_service(SERVICE_TYPE, MDNS_NAME)

    shared_zc.async_get_service_info.assert_awaited_once_with(
        SERVICE_TYPE, MDNS_NAME
    )
    mock_client._on_service_up.assert_awaited_once_with(
        ServiceRecord(
            name="MyDevice",
            type=SERVICE_TYPE,
            port=5555,
            addresses=["10.0.0.5", "192.168.1.4"],
            properties={"role": "sensor", "flag": ""},
        )
    )


@pytest.mark.asyncio
async def test_duplicates_kept_when_dedup_disabled(mock_client, shared_zc):
    shared_zc.async_get_service_info.return_value = make_info(
        addresses=["10.0.0.5", "10.0.0.5"]
    )
    browser = RecordBrowser(
        mock_client,
        "_zmq",
        DiscoveryConfig(zc_instance=shared_zc, unique_addresses=False),
    )
    with patch(
        "lanscope.discovery.mdns.record_browser.AsyncServiceBrowser",
        return_value=AsyncMock(spec=AsyncServiceBrowser),
    ):
        await browser.start()

    await browser._handle_add_service(SERVICE_TYPE, MDNS_NAME)

    record = mock_client._on_service_up.call_args.args[0]
    assert record.addresses == ["10.0.0.5", "10.0.0.5"]

    await browser.stop()


@pytest.mark.asyncio
async def test_unresolved_service_not_reported(
    mock_client, shared_zc, browser
):
    shared_zc.async_get_service_info.return_value = None

    await browser._handle_add_service(SERVICE_TYPE, MDNS_NAME)

    mock_client._on_service_up.assert_not_called()


@pytest.mark.asyncio
async def test_other_type_ignored(mock_client, shared_zc, browser):
    await browser._handle_add_service("_http._tcp.local.", "x._http._tcp.local.")
    await browser._handle_remove_service("_http._tcp.local.", "x._http._tcp.local.")

    shared_zc.async_get_service_info.assert_not_called()
    mock_client._on_service_up.assert_not_called()
    mock_client._on_service_down.assert_not_called()


@pytest.mark.asyncio
async def test_updated_service_reported_as_changed(
    mock_client, shared_zc, browser
):
    shared_zc.async_get_service_info.return_value = make_info()

    await browser._handle_update_service(SERVICE_TYPE, MDNS_NAME)

    mock_client._on_service_changed.assert_awaited_once()
    mock_client._on_service_up.assert_not_called()


@pytest.mark.asyncio
async def test_removed_service_reported_by_name(mock_client, browser):
    await browser._handle_remove_service(SERVICE_TYPE, MDNS_NAME)

    mock_client._on_service_down.assert_awaited_once_with(
        ServiceRecord(name="MyDevice", type=SERVICE_TYPE)
    )


@pytest.mark.asyncio
async def test_listener_callbacks_schedule_handlers(
    mock_client, shared_zc, browser
):
    shared_zc.async_get_service_info.return_value = make_info()

    browser.add_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    browser.remove_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    for _ in range(10):
        await asyncio.sleep(0)

    mock_client._on_service_up.assert_awaited_once()
    mock_client._on_service_down.assert_awaited_once()


def test_decode_txt_record_skips_bad_entries():
    assert decode_txt_record(
        {b"ok": b"yes", b"\xff": b"x", b"empty": None, b"bad": b"\xfe"}
    ) == {"ok": "yes", "empty": ""}


def gated_resolver(gate: asyncio.Event, info: MagicMock):
    async def resolve(type_, name):
        await gate.wait()
        return info

    return resolve


@pytest.mark.asyncio
async def test_events_delivered_in_arrival_order(mock_client, shared_zc, browser):
    gate = asyncio.Event()
    shared_zc.async_get_service_info.side_effect = gated_resolver(
        gate, make_info()
    )
    order = []
    mock_client._on_service_up.side_effect = lambda r: order.append("up")
    mock_client._on_service_down.side_effect = lambda r: order.append("down")

    browser.add_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    browser.remove_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    for _ in range(10):
        await asyncio.sleep(0)

    # The removal waits behind the add that is still resolving.
    assert order == []

    gate.set()
    for _ in range(10):
        await asyncio.sleep(0)

    assert order == ["up", "down"]


@pytest.mark.asyncio
async def test_handler_error_does_not_stop_event_delivery(
    mock_client, shared_zc, browser, caplog
):
    shared_zc.async_get_service_info.return_value = make_info()
    mock_client._on_service_up.side_effect = [RuntimeError("boom"), None]

    browser.add_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    browser.add_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    for _ in range(10):
        await asyncio.sleep(0)

    assert mock_client._on_service_up.await_count == 2
    assert "Error handling mDNS event" in caplog.text


@pytest.mark.asyncio
async def test_stop_waits_for_cancelled_handler(mock_client, shared_zc, browser):
    gate = asyncio.Event()
    cancelled = []

    async def resolve(type_, name):
        try:
            await gate.wait()
        except asyncio.CancelledError:
            cancelled.append(name)
            raise
        return make_info()

    shared_zc.async_get_service_info.side_effect = resolve

    browser.add_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    for _ in range(5):
        await asyncio.sleep(0)

    await browser.stop()

    assert cancelled == [MDNS_NAME]
    mock_client._on_service_up.assert_not_called()


@pytest.mark.asyncio
async def test_events_after_stop_are_dropped(mock_client, shared_zc, browser):
    await browser.stop()

    browser.add_service(shared_zc.zeroconf, SERVICE_TYPE, MDNS_NAME)
    await asyncio.sleep(0)

    shared_zc.async_get_service_info.assert_not_called()
