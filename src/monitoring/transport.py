"""
Transport (radio/link technology) detection for hub devices
No single device field is authoritative, so every signal is consulted and the results are unioned
"""

import re
from typing import FrozenSet

from devices.models import HubDevice

TRANSPORTS = ("zigbee", "zwave", "ble", "wifi", "infrared", "rf433", "rf868")

# Substring rules against declared technology flags
_FLAG_RULES = (
    ("zigbee", re.compile(r"zigbee")),
    ("zwave", re.compile(r"zwave")),
    ("ble", re.compile(r"ble|bluetooth")),
    ("wifi", re.compile(r"wifi|wi-fi")),
    ("infrared", re.compile(r"infrared|^ir$")),
    ("rf433", re.compile(r"433")),
    ("rf868", re.compile(r"868")),
)

# Substring rules against the driver URI
_DRIVER_RULES = (
    ("zigbee", re.compile(r"zigbee")),
    ("zwave", re.compile(r"zwave")),
)

# Two-letter technology prefix on settings keys (zb_*, zw-*)
_SETTINGS_RULES = (
    ("zigbee", re.compile(r"^zb[_-]", re.IGNORECASE)),
    ("zwave", re.compile(r"^zw[_-]", re.IGNORECASE)),
)

def detect_transports(device: HubDevice) -> FrozenSet[str]:
    found = set()

    for flag in device.flags:
        lowered = str(flag).lower()
        for tag, rule in _FLAG_RULES:
            if rule.search(lowered):
                found.add(tag)

    driver = (device.driver_uri or "").lower()
    for tag, rule in _DRIVER_RULES:
        if rule.search(driver):
            found.add(tag)

    for key in device.settings:
        for tag, rule in _SETTINGS_RULES:
            if rule.search(str(key)):
                found.add(tag)

    return frozenset(found)
