"""
Devices module for hub device directory access
"""

from .directory import HubDirectory, DirectoryError
from .models import HubDevice, CapabilityState, MeshNode, Zone

__all__ = ['HubDirectory', 'DirectoryError', 'HubDevice', 'CapabilityState', 'MeshNode', 'Zone']
