"""
Hub device directory client
Reads devices and zones from the hub's local Web API and performs capability writes
"""

import logging
from typing import List, Dict, Optional, Any
import aiohttp

from .models import HubDevice, MeshNode, Zone

logger = logging.getLogger(__name__)

class DirectoryError(Exception):
    """Raised when the device or zone directory cannot be fetched"""

class HubDirectory:
    """Device/zone directory and capability writer backed by the hub Web API"""

    DEVICES_PATH = "/api/manager/devices/device/"
    ZONES_PATH = "/api/manager/zones/zone/"
    ZIGBEE_STATE_PATH = "/api/manager/zigbee/state"

    def __init__(self, config: Dict, session: aiohttp.ClientSession):
        self.base_url = config['base_url'].rstrip('/')
        self.token = config.get('token')
        self.session = session

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _get_json(self, path: str, what: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self.session.get(url, headers=self._headers()) as response:
                if response.status != 200:
                    text = await response.text()
                    raise DirectoryError(f"Fetching {what} failed: HTTP {response.status}: {text[:200]}")
                return await response.json()
        except DirectoryError:
            raise
        except (aiohttp.ClientError, ValueError) as e:
            raise DirectoryError(f"Fetching {what} failed: {e}") from e

    async def get_devices(self) -> List[HubDevice]:
        """Fetch the full device directory"""
        data = await self._get_json(self.DEVICES_PATH, "devices")
        entries = data.values() if isinstance(data, dict) else data
        devices = [HubDevice.from_api(entry) for entry in entries if isinstance(entry, dict)]
        logger.debug(f"Fetched {len(devices)} devices from {self.base_url}")
        return devices

    async def get_zones(self) -> Dict[str, str]:
        """Fetch zone id -> zone name"""
        data = await self._get_json(self.ZONES_PATH, "zones")
        entries = data.values() if isinstance(data, dict) else data
        zones = [Zone(id=str(z.get('id')), name=z.get('name') or '') for z in entries if isinstance(z, dict)]
        return {z.id: z.name for z in zones}

    async def get_zigbee_state(self) -> List[MeshNode]:
        """Fetch the Zigbee mesh node table (name, node type, last seen)"""
        data = await self._get_json(self.ZIGBEE_STATE_PATH, "zigbee state")
        nodes = data.get('nodes') if isinstance(data, dict) else None
        if nodes is None:
            raise DirectoryError("Fetching zigbee state failed: no node table in response")
        if isinstance(nodes, dict):
            entries = [MeshNode.from_api(n, node_id) for node_id, n in nodes.items() if isinstance(n, dict)]
        else:
            entries = [MeshNode.from_api(n) for n in nodes if isinstance(n, dict)]
        logger.debug(f"Fetched {len(entries)} zigbee nodes from {self.base_url}")
        return entries

    async def set_capability_value(self, device_id: str, capability: str, value: Any) -> None:
        """Write a capability value; raises on any non-2xx answer"""
        url = f"{self.base_url}/api/manager/devices/device/{device_id}/capability/{capability}"
        async with self.session.put(url, json={"value": value}, headers=self._headers()) as response:
            if not 200 <= response.status < 300:
                text = await response.text()
                raise RuntimeError(f"Hub HTTP {response.status}: {text[:200]}")
