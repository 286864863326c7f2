"""Fakes and builders shared by the monitor tests."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from devices.directory import DirectoryError
from devices.models import CapabilityState, HubDevice, MeshNode
from tags.sink import TagSink

NOW = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


def iso_minutes_ago(minutes: float) -> str:
    return (NOW - timedelta(minutes=minutes)).isoformat().replace("+00:00", "Z")


def make_device(device_id: str, *, name: Optional[str] = None, device_class: str = "light",
                minutes_ago: Optional[float] = 5, onoff: Optional[bool] = True,
                flags=("zigbee",), virtual_class: Optional[str] = None,
                zone: Optional[str] = None, driver_uri: str = "",
                settings: Optional[Dict] = None, extra: Optional[Dict[str, CapabilityState]] = None) -> HubDevice:
    """A light with an onoff capability updated `minutes_ago` (None = never)"""
    caps: Dict[str, CapabilityState] = {}
    if onoff is not None:
        stamp = iso_minutes_ago(minutes_ago) if minutes_ago is not None else None
        caps["onoff"] = CapabilityState(value=onoff, last_updated=stamp)
    caps.update(extra or {})
    return HubDevice(
        id=device_id,
        name=name or device_id,
        device_class=device_class,
        virtual_class=virtual_class,
        capabilities=list(caps),
        capabilities_obj=caps,
        flags=list(flags),
        driver_uri=driver_uri,
        settings=settings or {},
        zone=zone,
    )


class FakeDirectory:
    """In-memory hub: the first fetch returns `devices`, later fetches `refreshed` (or `devices`)"""

    def __init__(self, devices: List[HubDevice], refreshed: Optional[List[HubDevice]] = None,
                 zones: Optional[Dict[str, str]] = None, failing_writes=(),
                 fail_fetch: bool = False, fail_refetch: bool = False,
                 mesh: Optional[List[MeshNode]] = None, refreshed_mesh: Optional[List[MeshNode]] = None,
                 fail_mesh: bool = False):
        self.devices = devices
        self.refreshed = refreshed
        self.zones = zones or {}
        self.failing_writes = set(failing_writes)
        self.fail_fetch = fail_fetch
        self.fail_refetch = fail_refetch
        self.mesh = mesh or []
        self.refreshed_mesh = refreshed_mesh
        self.fail_mesh = fail_mesh
        self.fetches = 0
        self.mesh_fetches = 0
        self.writes = []

    async def get_devices(self) -> List[HubDevice]:
        self.fetches += 1
        if self.fetches == 1:
            if self.fail_fetch:
                raise DirectoryError("hub unreachable")
            return self.devices
        if self.fail_refetch:
            raise DirectoryError("hub unreachable on re-fetch")
        return self.refreshed if self.refreshed is not None else self.devices

    async def get_zones(self) -> Dict[str, str]:
        return self.zones

    async def get_zigbee_state(self) -> List[MeshNode]:
        self.mesh_fetches += 1
        if self.fail_mesh:
            raise DirectoryError("zigbee state unavailable")
        if self.mesh_fetches > 1 and self.refreshed_mesh is not None:
            return self.refreshed_mesh
        return self.mesh

    async def set_capability_value(self, device_id, capability, value):
        self.writes.append((device_id, capability, value))
        if device_id in self.failing_writes:
            raise RuntimeError(f"write to {device_id} timed out")


def mesh_node(name: str, node_type: str = "enddevice", minutes_ago: Optional[float] = 5) -> MeshNode:
    stamp = iso_minutes_ago(minutes_ago) if minutes_ago is not None else None
    return MeshNode(name=name, node_type=node_type, last_seen=stamp)


class RecordingSink(TagSink):
    def __init__(self):
        self.tags = {}

    async def tag(self, name, value):
        self.tags[name] = value


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)
