"""Drives a DiscoveryController through a RecordBrowser with zeroconf mocked out."""

import asyncio
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest
from pytest_mock import MockerFixture
from zeroconf.asyncio import AsyncServiceBrowser, AsyncZeroconf

from lanscope.config.discovery_config import DiscoveryConfig
from lanscope.discovery.discovery_controller import (
    DiscoveryController,
    DiscoveryState,
)
from lanscope.discovery.mdns.record_browser import RecordBrowser
from lanscope.discovery.mdns.service_browser import ServiceBrowser
from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_spec import ServiceSpec
from lanscope.util.ip import LocalAddressSet

SERVICE_TYPE = "_zmq._tcp.local."


def info_for(port: int, addresses: List[str], **properties: str) -> MagicMock:
    info = MagicMock(name="AsyncServiceInfo")
    info.port = port
    info.parsed_addresses.return_value = addresses
    info.properties = {
        k.encode("utf-8"): v.encode("utf-8") for k, v in properties.items()
    }
    return info


class Harness:
    def __init__(self, local: List[str]) -> None:
        self.zc = AsyncMock(spec=AsyncZeroconf)
        self.zc.zeroconf = MagicMock()
        self.browsers: List[RecordBrowser] = []
        self.found: List[ServiceSpec] = []

        def factory(
            client: ServiceBrowser.Client, service_type: str, config: DiscoveryConfig
        ) -> RecordBrowser:
            browser = RecordBrowser(client, service_type, config)
            self.browsers.append(browser)
            return browser

        self.controller = DiscoveryController(
            LocalAddressSet.of(local),
            DiscoveryConfig(zc_instance=self.zc),
            browser_factory=factory,
        )

    @property
    def browser(self) -> RecordBrowser:
        return self.browsers[-1]

    async def up(self, name: str, info: MagicMock) -> None:
        self.zc.async_get_service_info.return_value = info
        await self.browser._handle_add_service(SERVICE_TYPE, f"{name}.{SERVICE_TYPE}")

    async def down(self, name: str) -> None:
        await self.browser._handle_remove_service(
            SERVICE_TYPE, f"{name}.{SERVICE_TYPE}"
        )


@pytest.fixture
def harness(mocker: MockerFixture) -> Harness:
    mocker.patch(
        "lanscope.discovery.mdns.record_browser.AsyncServiceBrowser",
        side_effect=lambda *args, **kwargs: AsyncMock(spec=AsyncServiceBrowser),
    )
    return Harness(["192.168.1.10", "10.20.0.3"])


@pytest.mark.asyncio
async def test_full_session(harness: Harness) -> None:
    await harness.controller.discover_services(
        ServiceQuery(type="_zmq", properties={"role": "sensor"}),
        None,
        harness.found.append,
    )
    assert harness.controller.state is DiscoveryState.BROWSING

    # A remote sensor reachable on two networks.
    await harness.up(
        "thermo", info_for(9000, ["10.20.0.77", "172.17.0.2"], role="sensor")
    )
    # An actuator does not match the query.
    await harness.up("valve", info_for(9001, ["10.20.0.78"], role="actuator"))
    # The same sensor announced again.
    await harness.up(
        "thermo", info_for(9000, ["10.20.0.77", "172.17.0.2"], role="sensor")
    )
    # A sensor running on this host.
    await harness.up(
        "local", info_for(9002, ["172.17.0.1", "192.168.1.10"], role="sensor")
    )

    assert [(s.name, s.address, s.port) for s in harness.found] == [
        ("thermo", "10.20.0.77", 9000),
        ("local", "127.0.0.1", 9002),
    ]

    # After it goes down and comes back, it is reported again.
    await harness.down("thermo")
    await harness.up("thermo", info_for(9000, ["10.20.0.77"], role="sensor"))
    assert len(harness.found) == 3

    await harness.controller.stop_discovering()
    assert harness.controller.state is DiscoveryState.IDLE
    assert len(harness.controller.cache) == 0
    harness.zc.async_close.assert_not_called()


@pytest.mark.asyncio
async def test_misbehaving_consumer_does_not_stop_discovery(
    harness: Harness,
) -> None:
    calls: List[str] = []

    def callback(spec: ServiceSpec) -> None:
        calls.append(spec.name)
        raise RuntimeError("consumer failure")

    await harness.controller.discover_services(
        ServiceQuery(type="_zmq"), None, callback
    )

    await harness.up("a", info_for(1, ["10.0.0.1"]))
    await harness.up("b", info_for(2, ["10.0.0.2"]))

    assert calls == ["a", "b"]

    await harness.controller.stop_discovering()


@pytest.mark.asyncio
async def test_rediscovery_after_stop(harness: Harness) -> None:
    query = ServiceQuery(type="_zmq")
    await harness.controller.discover_services(query, None, harness.found.append)
    await harness.up("a", info_for(1, ["10.0.0.1"]))
    await harness.controller.stop_discovering()

    await harness.controller.discover_services(query, None, harness.found.append)
    await harness.up("a", info_for(1, ["10.0.0.1"]))

    assert len(harness.browsers) == 2
    assert [s.name for s in harness.found] == ["a", "a"]

    await harness.controller.stop_discovering()


@pytest.mark.asyncio
async def test_removal_during_slow_resolve_evicts_service(
    harness: Harness,
) -> None:
    await harness.controller.discover_services(
        ServiceQuery(type="_zmq"), None, harness.found.append
    )
    browser = harness.browser
    zeroconf = harness.zc.zeroconf
    mdns_name = f"svc.{SERVICE_TYPE}"
    gate = asyncio.Event()

    async def slow_resolve(type_: str, name: str) -> MagicMock:
        await gate.wait()
        return info_for(7000, ["10.9.9.9"])

    harness.zc.async_get_service_info.side_effect = slow_resolve

    # The engine reports the service and its departure before resolution
    # of the first event completes.
    browser.add_service(zeroconf, SERVICE_TYPE, mdns_name)
    browser.remove_service(zeroconf, SERVICE_TYPE, mdns_name)
    gate.set()
    for _ in range(10):
        await asyncio.sleep(0)

    assert [s.name for s in harness.found] == ["svc"]
    assert "svc" not in harness.controller.cache

    # Coming back at the same address is reported again.
    browser.add_service(zeroconf, SERVICE_TYPE, mdns_name)
    for _ in range(10):
        await asyncio.sleep(0)

    assert [s.name for s in harness.found] == ["svc", "svc"]

    await harness.controller.stop_discovering()
