"""
Staleness classification
Finds a device's most recent capability update and compares its age with the threshold
"""

import math
import logging
from functools import reduce
from typing import Any, Optional
from datetime import datetime, timezone, timedelta

from devices.models import HubDevice
from .durations import Threshold
from .models import StalenessResult, StalenessState

logger = logging.getLogger(__name__)

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds to an aware UTC datetime; None if invalid"""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)):
            if not math.isfinite(value):
                return None
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        else:
            text = str(value).strip()
            if not text:
                return None
            if text.endswith(('Z', 'z')):
                text = text[:-1] + '+00:00'
            parsed = datetime.fromisoformat(text)
    except (ValueError, OverflowError, OSError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def _later(current: Optional[datetime], candidate: Optional[datetime]) -> Optional[datetime]:
    if candidate is None:
        return current
    if current is None or candidate > current:
        return candidate
    return current

def most_recent_update(device: HubDevice) -> Optional[datetime]:
    """Latest valid capability timestamp, or None when no capability has one"""
    stamps = (parse_timestamp(cap.last_updated) for cap in device.capabilities_obj.values())
    return reduce(_later, stamps, None)

def classify_last_seen(most_recent: Optional[datetime], now: datetime, threshold: Threshold) -> StalenessResult:
    """Classify a single last-seen instant; None means no valid timestamp"""
    if most_recent is None:
        return StalenessResult(StalenessState.UNKNOWN, math.inf, None)

    age = now - most_recent
    age_ms = age / timedelta(milliseconds=1)
    if age >= timedelta(milliseconds=threshold.millis):
        return StalenessResult(StalenessState.STALE, age_ms, most_recent)
    return StalenessResult(StalenessState.FRESH, age_ms, most_recent)

def classify_staleness(device: HubDevice, now: datetime, threshold: Threshold) -> StalenessResult:
    return classify_last_seen(most_recent_update(device), now, threshold)
