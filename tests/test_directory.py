"""Tests for device parsing and the hub directory client."""

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from devices.directory import DirectoryError, HubDirectory
from devices.models import HubDevice

LAMP = {
    "id": "d1",
    "name": "Kitchen lamp",
    "class": "socket",
    "virtualClass": "light",
    "capabilities": ["onoff", "dim"],
    "capabilitiesObj": {
        "onoff": {"value": True, "lastUpdated": "2026-10-16T11:00:00.000Z"},
        "dim": {"value": 0.4, "lastUpdated": None},
        "broken": None,
    },
    "flags": ["zigbee"],
    "driverUri": "homey:app:com.ikea.tradfri",
    "settings": {"zb_product_id": "TRADFRI bulb"},
    "zone": "z1",
}


def test_from_api_maps_hub_fields():
    device = HubDevice.from_api(LAMP)
    assert device.id == "d1"
    assert device.device_class == "socket"
    assert device.virtual_class == "light"
    assert device.capability_value("onoff") is True
    assert device.capabilities_obj["onoff"].last_updated == "2026-10-16T11:00:00.000Z"
    assert device.capabilities_obj["broken"].last_updated is None
    assert device.has_capability("dim")
    assert device.driver_uri == "homey:app:com.ikea.tradfri"
    assert device.zone == "z1"


def test_from_api_tolerates_sparse_entries():
    device = HubDevice.from_api({"id": 7, "driverId": "vdevice"})
    assert device.id == "7"
    assert device.name == ""
    assert device.capabilities_obj == {}
    assert device.driver_uri == "vdevice"


def hub_app(status=200):
    writes = []

    async def devices(request):
        if status != 200:
            return web.Response(status=status, text="nope")
        assert request.headers.get("Authorization") == "Bearer secret"
        return web.json_response({"d1": LAMP})

    async def zones(request):
        return web.json_response({"z1": {"id": "z1", "name": "Kitchen"}})

    async def zigbee_state(request):
        return web.json_response({"nodes": {
            "n1": {"name": "Kitchen lamp", "type": "Router", "lastSeen": "2026-10-16T11:58:00.000Z"},
            "n2": {"name": "Door sensor", "type": "EndDevice", "lastSeen": None},
        }})

    async def write(request):
        writes.append((request.match_info["device_id"], request.match_info["capability"], await request.json()))
        return web.json_response({})

    app = web.Application()
    app.router.add_get("/api/manager/devices/device/", devices)
    app.router.add_get("/api/manager/zones/zone/", zones)
    app.router.add_get("/api/manager/zigbee/state", zigbee_state)
    app.router.add_put("/api/manager/devices/device/{device_id}/capability/{capability}", write)
    return app, writes


async def with_directory(app, action):
    async with TestServer(app) as server:
        async with aiohttp.ClientSession() as session:
            directory = HubDirectory({"base_url": str(server.make_url("/")), "token": "secret"}, session)
            return await action(directory)


def test_fetch_devices_zones_and_write():
    app, writes = hub_app()

    async def action(directory):
        devices = await directory.get_devices()
        zones = await directory.get_zones()
        await directory.set_capability_value("d1", "onoff", True)
        return devices, zones

    devices, zones = asyncio.run(with_directory(app, action))

    assert [d.name for d in devices] == ["Kitchen lamp"]
    assert zones == {"z1": "Kitchen"}
    assert writes == [("d1", "onoff", {"value": True})]


def test_http_error_becomes_directory_error():
    app, _ = hub_app(status=503)

    async def action(directory):
        return await directory.get_devices()

    with pytest.raises(DirectoryError, match="HTTP 503"):
        asyncio.run(with_directory(app, action))


def test_unreachable_hub_becomes_directory_error():
    async def action():
        async with aiohttp.ClientSession() as session:
            directory = HubDirectory({"base_url": "http://127.0.0.1:9"}, session)
            return await directory.get_devices()

    with pytest.raises(DirectoryError):
        asyncio.run(action())


def test_fetch_zigbee_state():
    app, _ = hub_app()

    async def action(directory):
        return await directory.get_zigbee_state()

    nodes = asyncio.run(with_directory(app, action))

    by_name = {n.name: n for n in nodes}
    assert by_name["Kitchen lamp"].is_router
    assert by_name["Kitchen lamp"].node_id == "n1"
    assert by_name["Door sensor"].is_end_device
    assert by_name["Door sensor"].last_seen is None


def test_zigbee_state_without_node_table_is_a_directory_error():
    app = web.Application()

    async def empty(request):
        return web.json_response({"state": "down"})

    app.router.add_get("/api/manager/zigbee/state", empty)

    async def action(directory):
        return await directory.get_zigbee_state()

    with pytest.raises(DirectoryError, match="no node table"):
        asyncio.run(with_directory(app, action))
