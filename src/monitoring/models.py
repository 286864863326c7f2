"""
Monitoring value objects
All of these live for a single monitoring run only
"""

import math
from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field
from datetime import datetime

class InclusionReason(str, Enum):
    TRANSPORT_REJECTED = "transport-rejected"
    NOT_INCLUDED = "not-included"
    NAME_EXCLUDED = "name-excluded"
    CLASS_EXCLUDED = "class-excluded"
    INCLUDED = "included"

@dataclass(frozen=True)
class InclusionDecision:
    included: bool
    reason: InclusionReason

class StalenessState(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    UNKNOWN = "unknown"

@dataclass(frozen=True)
class StalenessResult:
    """Classification of one device at one instant"""
    state: StalenessState
    age_ms: float  # math.inf when unknown
    most_recent: Optional[datetime] = None

    @property
    def is_failing(self) -> bool:
        return self.state is not StalenessState.FRESH

    @property
    def reason(self) -> str:
        if self.state is StalenessState.UNKNOWN:
            return "no updates"
        if self.state is StalenessState.STALE:
            return "threshold exceeded"
        return ""

    @property
    def age_minutes(self) -> str:
        if math.isinf(self.age_ms):
            return "∞"
        return f"{self.age_ms / 60000:.2f}"

class WakeState(str, Enum):
    """Per-device progress through wake-then-verify"""
    UNTESTED = "untested"
    ACTION_ISSUED = "action-issued"
    PENDING_VERIFICATION = "pending-verification"
    RECOVERED = "recovered"
    STILL_FAILING = "still-failing"

@dataclass
class WakeAttempt:
    device_id: str
    device_name: str
    capability: str
    value: bool
    attempted_at: datetime
    succeeded: bool = False
    error: Optional[str] = None

@dataclass
class FailingDevice:
    """A device that failed the first classification pass"""
    device_id: str
    name: str
    device_class: str
    zone_name: Optional[str]
    staleness: StalenessResult
    wake_state: WakeState = WakeState.UNTESTED
    wake_attempt: Optional[WakeAttempt] = None

@dataclass
class ReconciliationResult:
    device_id: str
    name: str
    original: StalenessResult
    final: Optional[StalenessResult]  # None when the device vanished from the directory
    wake_state: WakeState
    wake_attempted: bool

    @property
    def recovered(self) -> bool:
        return self.wake_state is WakeState.RECOVERED

    @property
    def missing(self) -> bool:
        return self.final is None

    @property
    def recovered_after_wake(self) -> bool:
        return self.recovered and self.wake_attempted

@dataclass
class BatteryStatus:
    device_id: str
    name: str
    level: Optional[float] = None
    alarm: bool = False
    low_by_level: bool = False
    low_by_alarm: bool = False

    @property
    def is_low(self) -> bool:
        return self.low_by_level or self.low_by_alarm

@dataclass
class MonitorReport:
    """Terminal result of one monitoring run"""
    ok_count: int
    nok_count: int
    woken_attempted: int
    woken_succeeded: int
    low_battery_count: int
    failing_devices: List[str] = field(default_factory=list)
    low_battery_devices: List[str] = field(default_factory=list)
    reconciliation: List[ReconciliationResult] = field(default_factory=list)
    wake_attempts: List[WakeAttempt] = field(default_factory=list)
    threshold_minutes: int = 0
    validation_delay_seconds: int = 0
    router_count: Optional[int] = None       # mesh mode only
    end_device_count: Optional[int] = None   # mesh mode only
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def any_failing(self) -> bool:
        return self.error is None and self.nok_count > 0

    @classmethod
    def failed(cls, error: str, threshold_minutes: int = 0, validation_delay_seconds: int = 0,
               started_at: Optional[datetime] = None, mesh: bool = False) -> "MonitorReport":
        """Error result with sentinel counts"""
        return cls(
            ok_count=-1,
            nok_count=-1,
            woken_attempted=-1,
            woken_succeeded=-1,
            low_battery_count=-1,
            threshold_minutes=threshold_minutes,
            validation_delay_seconds=validation_delay_seconds,
            router_count=-1 if mesh else None,
            end_device_count=-1 if mesh else None,
            started_at=started_at,
            error=error
        )
