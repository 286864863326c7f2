"""
Liveness Monitor - one monitoring run from directory fetch to published tags
filter -> classify -> wake (join) -> delay -> re-fetch -> reclassify -> aggregate
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone

from devices.directory import DirectoryError
from devices.models import HubDevice
from monitoring.battery import evaluate_battery
from monitoring.durations import Threshold
from monitoring.inclusion import InclusionRules, ScopeRules, evaluate_inclusion, out_of_scope_reason
from monitoring.models import BatteryStatus, FailingDevice, MonitorReport
from monitoring.report import build_report, format_timestamp, report_tags, summary_text
from monitoring.sources import MeshSource, create_source
from monitoring.transport import detect_transports
from monitoring.validation import ValidationScheduler
from monitoring.wake import WakeActuator
from tags.sink import TagSink

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_MS = 600 * 60 * 1000  # 10h
DEFAULT_DELAY_MS = 5 * 1000

class LivenessMonitor:
    """Runs the staleness check and wake-then-verify protocol against a hub directory"""

    def __init__(self, config: Dict, directory, tag_sink: TagSink,
                 sleep: Optional[Callable] = asyncio.sleep,
                 clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self.monitor_config = config.get('monitor', {})
        self.directory = directory
        self.tag_sink = tag_sink
        self.sleep = sleep
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.tz_name = self.monitor_config.get('timezone', 'UTC')

        filters = config.get('filters', {})
        self.rules = InclusionRules.from_config(filters)
        self.scope = ScopeRules.from_config(filters)
        self.verbose_skips = filters.get('verbose_skip_logs', False)
        self.battery = config.get('battery', {})
        self.mesh_enabled = bool(config.get('mesh', {}).get('enabled', False))

    def _thresholds(self, threshold_expr: Optional[str], delay_expr: Optional[str]):
        threshold = Threshold.from_expression(
            threshold_expr if threshold_expr is not None else self.monitor_config.get('threshold'),
            default_unit='m', default_ms=DEFAULT_THRESHOLD_MS
        )
        delay = Threshold.from_expression(
            delay_expr if delay_expr is not None else self.monitor_config.get('validation_delay'),
            default_unit='s', default_ms=DEFAULT_DELAY_MS
        )
        return threshold, delay

    async def run(self, threshold_expr: Optional[str] = None, delay_expr: Optional[str] = None) -> MonitorReport:
        """
        Execute one run. Never raises: directory failures and unexpected errors
        produce an error report with sentinel counts, which is still published.
        """
        started_at = self.clock()
        threshold = delay = None

        try:
            threshold, delay = self._thresholds(threshold_expr, delay_expr)
            logger.info(f"[MONITOR] Run started (threshold {threshold.minutes}m; validation {delay.seconds}s)")
            report = await self._run(threshold, delay, started_at)
        except DirectoryError as e:
            logger.error(f"[MONITOR] Directory unavailable: {e}")
            report = self._failed(str(e), threshold, delay, started_at)
        except Exception as e:
            logger.exception("[MONITOR] Run failed")
            report = self._failed(str(e) or e.__class__.__name__, threshold, delay, started_at)

        if report.finished_at is None:
            report.finished_at = self.clock()

        self._log_summary(report)
        failures = await self.tag_sink.publish(report_tags(report))
        if failures:
            logger.warning(f"[TAGS] {failures} tag(s) could not be published")
        return report

    def _failed(self, error: str, threshold: Optional[Threshold], delay: Optional[Threshold],
                started_at: datetime) -> MonitorReport:
        return MonitorReport.failed(
            error,
            threshold.minutes if threshold else 0,
            delay.seconds if delay else 0,
            started_at,
            mesh=self.mesh_enabled
        )

    async def _run(self, threshold: Threshold, delay: Threshold, started_at: datetime) -> MonitorReport:
        source = create_source(self.config, self.directory)
        devices = await self.directory.get_devices()
        zone_map = await self.directory.get_zones()
        await source.refresh()
        now = self.clock()

        ok_count = 0
        routers = end_devices = 0
        failing: List[FailingDevice] = []
        candidates = []
        batteries: List[BatteryStatus] = []

        for device in devices:
            if not self._is_monitored(device, zone_map):
                continue
            if not source.includes(device):
                if self.verbose_skips:
                    logger.info(f"[SKIP] {device.name} - {device.device_class} (not-in-mesh)")
                continue

            if isinstance(source, MeshSource):
                node = source.node_for(device)
                routers += int(node.is_router)
                end_devices += int(node.is_end_device)

            zone_name = zone_map.get(device.zone) if device.zone else None
            info = source.classify(device, now, threshold)
            last = format_timestamp(info.most_recent, self.tz_name)

            if info.is_failing:
                logger.info(f"[NOK] {device.name} - {device.device_class} [{info.age_minutes}m] "
                            f"(Last: {last}; Reason: {info.reason})")
                entry = FailingDevice(
                    device_id=device.id,
                    name=device.name,
                    device_class=device.device_class,
                    zone_name=zone_name,
                    staleness=info
                )
                failing.append(entry)
                candidates.append((device, entry))
            else:
                logger.info(f"[OK] {device.name} - {device.device_class} [{info.age_minutes}m] (Last: {last})")
                ok_count += 1

            if self.battery.get('enabled', True):
                status = evaluate_battery(
                    device,
                    self.battery.get('threshold_percent', 30),
                    self.battery.get('include_battery_alarm', True)
                )
                if status is not None:
                    batteries.append(status)

        actuator = WakeActuator(self.config.get('wake', {}), self.directory.set_capability_value, self.clock)
        attempts = await actuator.wake(candidates)

        scheduler = ValidationScheduler(self.directory.get_devices, threshold, delay, self.sleep, self.clock, source)
        reconciliation = await scheduler.reconcile(failing)

        return build_report(
            ok_count, failing, reconciliation, attempts, batteries,
            threshold, delay, self.tz_name,
            started_at=started_at, finished_at=self.clock(),
            mesh_counts=(routers, end_devices) if isinstance(source, MeshSource) else None
        )

    def _is_monitored(self, device: HubDevice, zone_map: Dict[str, str]) -> bool:
        skip = out_of_scope_reason(device, zone_map, self.scope)
        if skip:
            if self.verbose_skips:
                logger.info(f"[SKIP] {device.name} - {device.device_class} ({skip})")
            return False

        decision = evaluate_inclusion(device, self.rules)
        if not decision.included:
            if self.verbose_skips:
                logger.info(f"[SKIP] {device.name} - {device.device_class} ({decision.reason.value}) "
                            f"transports={sorted(detect_transports(device))}")
            return False
        return True

    def _log_summary(self, report: MonitorReport):
        logger.info("---------------------------------------------")
        if report.error:
            logger.error(f"[SUMMARY] {summary_text(report)}")
            return
        logger.info(f"[SUMMARY] threshold {report.threshold_minutes} minutes; "
                    f"validation {report.validation_delay_seconds} seconds")
        logger.info(f"[SUMMARY] OK devices:      {report.ok_count}")
        logger.info(f"[SUMMARY] NOK devices:     {report.nok_count}")
        logger.info(f"[SUMMARY] WAKE attempted:  {report.woken_attempted}")
        logger.info(f"[SUMMARY] WAKE succeeded:  {report.woken_succeeded}")
        logger.info(f"[SUMMARY] Low battery:     {report.low_battery_count}")
        if report.router_count is not None:
            logger.info(f"[SUMMARY] Router: {report.router_count}, EndDevice: {report.end_device_count}")
        failed_list = ", ".join(report.failing_devices) if report.failing_devices else "(none)"
        logger.info(f"[SUMMARY] Failed devices list: {failed_list}")

def report_to_dict(report: MonitorReport) -> Dict[str, Any]:
    """Plain dict view of a report for the API layer"""
    return {
        "ok_count": report.ok_count,
        "nok_count": report.nok_count,
        "woken_attempted": report.woken_attempted,
        "woken_succeeded": report.woken_succeeded,
        "low_battery_count": report.low_battery_count,
        "failing_devices": list(report.failing_devices),
        "low_battery_devices": list(report.low_battery_devices),
        "any_failing": report.any_failing,
        "threshold_minutes": report.threshold_minutes,
        "validation_delay_seconds": report.validation_delay_seconds,
        "router_count": report.router_count,
        "end_device_count": report.end_device_count,
        "started_at": report.started_at,
        "finished_at": report.finished_at,
        "error": report.error,
        "reconciliation": [
            {
                "device_id": r.device_id,
                "name": r.name,
                "wake_state": r.wake_state.value,
                "wake_attempted": r.wake_attempted,
                "recovered_after_wake": r.recovered_after_wake,
                "missing": r.missing
            }
            for r in report.reconciliation
        ]
    }
