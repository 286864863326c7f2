"""
Post-wake validation
Waits, re-fetches the directory and reclassifies only the devices that failed the first pass
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence
from datetime import datetime, timezone

from devices.models import HubDevice
from .durations import Threshold
from .models import FailingDevice, ReconciliationResult, WakeState
from .sources import CapabilitySource

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]

class ValidationScheduler:

    def __init__(self, fetch_devices: Callable[[], Awaitable[List[HubDevice]]],
                 threshold: Threshold, delay: Threshold,
                 sleep: Optional[Sleeper] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 source=None):
        self.fetch_devices = fetch_devices
        self.source = source or CapabilitySource()
        self.threshold = threshold
        self.delay = delay
        self.sleep = sleep
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _wait(self):
        if self.delay.millis <= 0:
            return
        if self.sleep is None:
            logger.info("[VALIDATE] No timer available - skipping wait")
            return
        logger.info(f"[VALIDATE] Waiting {self.delay.seconds}s for capability updates...")
        await self.sleep(self.delay.millis / 1000)

    async def reconcile(self, failing: Sequence[FailingDevice]) -> List[ReconciliationResult]:
        """
        Reclassify the originally failing devices after the delay.
        Directory errors propagate to the caller; they are fatal for the run.
        """
        if not failing:
            return []

        await self._wait()

        refreshed = await self.fetch_devices()
        await self.source.refresh()
        by_id: Dict[str, HubDevice] = {d.id: d for d in refreshed}
        now = self.clock()

        results = []
        for candidate in failing:
            woken = candidate.wake_attempt is not None
            device = by_id.get(candidate.device_id)
            if device is None:
                candidate.wake_state = WakeState.STILL_FAILING
                logger.info(f"[VALIDATE] {candidate.name} missing from directory - still failing")
                results.append(ReconciliationResult(
                    device_id=candidate.device_id,
                    name=candidate.name,
                    original=candidate.staleness,
                    final=None,
                    wake_state=candidate.wake_state,
                    wake_attempted=woken
                ))
                continue

            final = self.source.classify(device, now, self.threshold)
            if final.is_failing:
                candidate.wake_state = WakeState.STILL_FAILING
            else:
                candidate.wake_state = WakeState.RECOVERED
                after_wake = " (after WAKE)" if woken else ""
                logger.info(f"[RECOVERED] {device.name}{after_wake} [{final.age_minutes}m]")

            results.append(ReconciliationResult(
                device_id=candidate.device_id,
                name=device.name or candidate.name,
                original=candidate.staleness,
                final=final,
                wake_state=candidate.wake_state,
                wake_attempted=woken
            ))

        recovered = sum(1 for r in results if r.recovered)
        logger.info(f"[VALIDATE] {recovered}/{len(results)} failing devices recovered")
        return results
