"""
Duration expressions ("30m", "2h", "45", "[30m,3s]") to milliseconds
"""

import re
import math
import logging
from typing import List, Optional, Sequence, Any
from dataclasses import dataclass
from datetime import timedelta

logger = logging.getLogger(__name__)

UNIT_MS = {
    's': 1000,
    'm': 60 * 1000,
    'h': 60 * 60 * 1000,
    'd': 24 * 60 * 60 * 1000,
}

_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)([smhd])?$")
_ARG_SPLIT_RE = re.compile(r"[,\s]+")

# Largest span a datetime comparison can hold
MAX_MS = int(timedelta.max / timedelta(milliseconds=1))

def _apply_unit(value: float, unit: str) -> Optional[int]:
    millis = value * UNIT_MS[unit]
    if not math.isfinite(millis) or millis > MAX_MS:
        return None
    return int(round(millis))

def parse_duration_ms(value: Any, default_unit: str = 'm', default_ms: int = 0) -> int:
    """
    Parse a duration expression into whole milliseconds.
    Unit-less numbers use default_unit; anything unparseable yields default_ms.
    """
    if default_unit not in UNIT_MS:
        raise ValueError(f"Unsupported default unit: {default_unit}")

    if value is None:
        return default_ms
    raw = str(value).strip().lower()
    if not raw:
        return default_ms

    match = _DURATION_RE.match(raw)
    if match:
        number, unit = float(match.group(1)), match.group(2) or default_unit
    else:
        try:
            number, unit = float(raw), default_unit
        except ValueError:
            logger.warning(f"Unparseable duration '{value}' - using default {default_ms}ms")
            return default_ms

    millis = _apply_unit(number, unit) if number >= 0 else None
    if millis is None:
        logger.warning(f"Invalid duration '{value}' - using default {default_ms}ms")
        return default_ms
    return millis

def split_duration_args(args: Optional[Sequence[str]]) -> List[str]:
    """Normalize ["30m", "3s"], ["30m 3s"], ["30m,3s"] and ["[30m,3s]"] to ["30m", "3s"]"""
    if not args:
        return []
    if len(args) == 1:
        raw = str(args[0]).strip()
        raw = re.sub(r"^\[|\]$", "", raw)
        return [part for part in _ARG_SPLIT_RE.split(raw) if part]
    return [str(a) for a in args]

@dataclass(frozen=True)
class Threshold:
    """Non-negative duration and the unit it was declared in"""
    millis: int
    unit: str

    @classmethod
    def from_expression(cls, value: Any, default_unit: str = 'm', default_ms: int = 0) -> "Threshold":
        millis = parse_duration_ms(value, default_unit, default_ms)
        unit = default_unit
        if value is not None:
            match = _DURATION_RE.match(str(value).strip().lower())
            if match and match.group(2):
                unit = match.group(2)
        return cls(millis=millis, unit=unit)

    @property
    def minutes(self) -> int:
        return round(self.millis / 60000)

    @property
    def seconds(self) -> int:
        return round(self.millis / 1000)
