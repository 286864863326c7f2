"""
Result aggregation and flow tag values
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime
import pytz

from .durations import Threshold
from .models import (
    BatteryStatus, FailingDevice, MonitorReport, ReconciliationResult,
    StalenessResult, WakeAttempt
)

NO_UPDATES_LABEL = "No updates"

def format_timestamp(value: Optional[datetime], tz_name: str = "UTC") -> str:
    """Render as 'YYYY-MM-DD, HH:MM:SS' in the given zone"""
    if value is None:
        return NO_UPDATES_LABEL
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return value.astimezone(tz).strftime('%Y-%m-%d, %H:%M:%S')

def describe_failing(name: str, staleness: Optional[StalenessResult], tz_name: str = "UTC") -> str:
    if staleness is None:
        return f"{name} [unknown] (Last: {NO_UPDATES_LABEL}; Reason: missing from directory)"
    last = format_timestamp(staleness.most_recent, tz_name)
    return f"{name} [{staleness.age_minutes}m] (Last: {last}; Reason: {staleness.reason})"

def describe_battery(status: BatteryStatus) -> str:
    if status.low_by_level and status.level is not None:
        return f"{status.name} {round(status.level)}%"
    return f"{status.name} ALARM"

def build_report(ok_count: int,
                 failing: Sequence[FailingDevice],
                 reconciliation: Sequence[ReconciliationResult],
                 wake_attempts: Sequence[WakeAttempt],
                 batteries: Sequence[BatteryStatus],
                 threshold: Threshold,
                 delay: Threshold,
                 tz_name: str = "UTC",
                 started_at: Optional[datetime] = None,
                 finished_at: Optional[datetime] = None,
                 mesh_counts: Optional[Tuple[int, int]] = None) -> MonitorReport:
    """
    Fold the run's value objects into the outbound report.
    Reconciled state wins over the first pass: recovered devices count as OK.
    mesh_counts is (routers, end devices) when last-seen came from the Zigbee mesh.
    """
    if reconciliation:
        still_failing = [r for r in reconciliation if not r.recovered]
        ok_count += len(reconciliation) - len(still_failing)
        failing_lines = [describe_failing(r.name, r.final, tz_name) for r in still_failing]
    else:
        failing_lines = [describe_failing(f.name, f.staleness, tz_name) for f in failing]

    low = [b for b in batteries if b.is_low]

    return MonitorReport(
        ok_count=ok_count,
        nok_count=len(failing_lines),
        woken_attempted=len(wake_attempts),
        woken_succeeded=sum(1 for a in wake_attempts if a.succeeded),
        low_battery_count=len(low),
        failing_devices=failing_lines,
        low_battery_devices=[describe_battery(b) for b in low],
        reconciliation=list(reconciliation),
        wake_attempts=list(wake_attempts),
        threshold_minutes=threshold.minutes,
        validation_delay_seconds=delay.seconds,
        router_count=mesh_counts[0] if mesh_counts else None,
        end_device_count=mesh_counts[1] if mesh_counts else None,
        started_at=started_at,
        finished_at=finished_at
    )

def report_tags(report: MonitorReport) -> Dict[str, Any]:
    """Flow tag name -> value; error reports carry -1 counts and empty lists"""
    tags = {
        "InvalidatedDevices": "\n".join(report.failing_devices),
        "notReportingCount": report.nok_count,
        "okCount": report.ok_count,
        "WokenAttempted": report.woken_attempted,
        "WokenSucceeded": report.woken_succeeded,
        "LowBatteryDevices": "\n".join(report.low_battery_devices),
        "lowBatteryCount": report.low_battery_count,
        "ThresholdMinutes": report.threshold_minutes,
        "ValidationDelaySeconds": report.validation_delay_seconds,
        "AnyDeviceFailing": report.any_failing,
    }
    if report.router_count is not None:
        tags["RouterCount"] = report.router_count
        tags["EndDeviceCount"] = report.end_device_count
    return tags

def summary_text(report: MonitorReport) -> str:
    if report.error:
        return f"Error while retrieving devices: {report.error}"
    text = (
        f"Not Reporting Count: {report.nok_count}\n"
        f"Low Battery Count:   {report.low_battery_count}\n"
        f"Devices Not Reporting:\n" + "\n".join(report.failing_devices)
    )
    if report.low_battery_devices:
        text += "\nDevices Low Battery:\n" + "\n".join(report.low_battery_devices)
    return text
