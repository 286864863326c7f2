"""
Device directory data structures
"""

from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field

@dataclass
class CapabilityState:
    """Current value of one capability and when the hub last saw it change"""
    value: Any = None
    last_updated: Any = None  # ISO string or epoch ms as reported by the hub, may be invalid

@dataclass
class HubDevice:
    """Represents a device as reported by the hub device directory"""
    id: str
    name: str
    device_class: str = ""
    virtual_class: Optional[str] = None
    capabilities: List[str] = field(default_factory=list)
    capabilities_obj: Dict[str, CapabilityState] = field(default_factory=dict)
    flags: List[str] = field(default_factory=list)
    driver_uri: str = ""
    settings: Dict[str, Any] = field(default_factory=dict)
    zone: Optional[str] = None

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities or capability in self.capabilities_obj

    def capability_value(self, capability: str) -> Any:
        state = self.capabilities_obj.get(capability)
        return state.value if state else None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "HubDevice":
        """Build a device from one entry of the hub's device listing"""
        caps_obj = {}
        for cap_id, cap in (data.get('capabilitiesObj') or {}).items():
            if isinstance(cap, dict):
                caps_obj[cap_id] = CapabilityState(
                    value=cap.get('value'),
                    last_updated=cap.get('lastUpdated')
                )
            else:
                caps_obj[cap_id] = CapabilityState()

        return cls(
            id=str(data.get('id', '')),
            name=data.get('name') or '',
            device_class=data.get('class') or '',
            virtual_class=data.get('virtualClass'),
            capabilities=list(data.get('capabilities') or []),
            capabilities_obj=caps_obj,
            flags=[str(f) for f in (data.get('flags') or [])],
            driver_uri=data.get('driverUri') or data.get('driverId') or '',
            settings=dict(data.get('settings') or {}),
            zone=data.get('zone')
        )

@dataclass
class Zone:
    """Hub zone (room) record"""
    id: str
    name: str

@dataclass
class MeshNode:
    """One node of the hub's Zigbee mesh as reported by the radio stack"""
    name: str
    node_type: str = ""          # 'router' or 'enddevice', lowercased
    last_seen: Any = None        # ISO string or epoch ms, may be missing
    node_id: Optional[str] = None

    @property
    def is_router(self) -> bool:
        return self.node_type == 'router'

    @property
    def is_end_device(self) -> bool:
        return self.node_type == 'enddevice'

    @classmethod
    def from_api(cls, data: Dict[str, Any], node_id: Optional[str] = None) -> "MeshNode":
        return cls(
            name=data.get('name') or '',
            node_type=str(data.get('type') or '').lower(),
            last_seen=data.get('lastSeen'),
            node_id=str(data.get('nodeId') or node_id or '') or None
        )
