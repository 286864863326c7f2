"""
Battery evaluation
A device is low by level (measure_battery at/below threshold) or by alarm (alarm_battery true); both are checked
"""

import math
from typing import Optional

from devices.models import HubDevice
from .models import BatteryStatus

LEVEL_CAPABILITY = "measure_battery"
ALARM_CAPABILITY = "alarm_battery"

def evaluate_battery(device: HubDevice, threshold_percent: float, include_alarm: bool = True) -> Optional[BatteryStatus]:
    """Battery status, or None if the device reports neither capability"""
    has_level = device.has_capability(LEVEL_CAPABILITY)
    has_alarm = device.has_capability(ALARM_CAPABILITY)
    if not (has_level or has_alarm):
        return None

    status = BatteryStatus(device_id=device.id, name=device.name)

    if has_level:
        level = device.capability_value(LEVEL_CAPABILITY)
        if isinstance(level, (int, float)) and not isinstance(level, bool) and math.isfinite(level):
            status.level = float(level)
            status.low_by_level = level <= threshold_percent

    if has_alarm:
        status.alarm = device.capability_value(ALARM_CAPABILITY) is True
        status.low_by_alarm = status.alarm and include_alarm

    return status
