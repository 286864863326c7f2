"""
Last-seen sources
A device's latest sign of life comes either from its own capability timestamps
or from the Zigbee mesh node table, which the radio stack updates on any frame.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional
from datetime import datetime

from devices.models import HubDevice, MeshNode
from .durations import Threshold
from .models import StalenessResult
from .staleness import classify_last_seen, classify_staleness, parse_timestamp

logger = logging.getLogger(__name__)

class CapabilitySource:
    """Most recent capability update reported for the device"""
    kind = "capabilities"

    async def refresh(self) -> None:
        return None

    def includes(self, device: HubDevice) -> bool:
        return True

    def classify(self, device: HubDevice, now: datetime, threshold: Threshold) -> StalenessResult:
        return classify_staleness(device, now, threshold)

class MeshSource:
    """
    Zigbee mesh lastSeen, matched to hub devices by name.
    Only devices with a node of a wanted type are monitored; refresh() must run
    before every classification pass so the node table is current.
    """
    kind = "zigbee-mesh"

    def __init__(self, fetch_state: Callable[[], Awaitable[List[MeshNode]]],
                 include_routers: bool = True, include_end_devices: bool = True):
        self.fetch_state = fetch_state
        self.include_routers = include_routers
        self.include_end_devices = include_end_devices
        self.nodes: Dict[str, MeshNode] = {}

    @classmethod
    def from_config(cls, mesh_config: Dict, fetch_state) -> "MeshSource":
        return cls(
            fetch_state,
            include_routers=bool(mesh_config.get('include_routers', True)),
            include_end_devices=bool(mesh_config.get('include_end_devices', True))
        )

    def wants(self, node: MeshNode) -> bool:
        if node.is_router:
            return self.include_routers
        if node.is_end_device:
            return self.include_end_devices
        return True

    async def refresh(self) -> None:
        nodes = await self.fetch_state()
        self.nodes = {n.name: n for n in nodes if n.name and self.wants(n)}
        logger.info(f"[MESH] {len(self.nodes)} of {len(nodes)} zigbee node(s) in scope")

    def node_for(self, device: HubDevice) -> Optional[MeshNode]:
        return self.nodes.get(device.name)

    def includes(self, device: HubDevice) -> bool:
        return self.node_for(device) is not None

    def classify(self, device: HubDevice, now: datetime, threshold: Threshold) -> StalenessResult:
        node = self.node_for(device)
        last_seen = parse_timestamp(node.last_seen) if node else None
        return classify_last_seen(last_seen, now, threshold)

def create_source(config: Dict, directory):
    """Mesh source when mesh.enabled is set, capability timestamps otherwise"""
    mesh_config = config.get('mesh', {})
    if mesh_config.get('enabled', False):
        return MeshSource.from_config(mesh_config, directory.get_zigbee_state)
    return CapabilitySource()
