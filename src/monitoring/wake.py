"""
Wake actuator
Pokes failing devices by writing a toggle capability's current value back to itself.
The write changes nothing visible but makes the device's radio stack re-confirm its state.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from datetime import datetime, timezone

from devices.models import HubDevice
from .models import FailingDevice, WakeAttempt, WakeState

logger = logging.getLogger(__name__)

CapabilityWriter = Callable[[str, str, Any], Awaitable[Any]]

class WakeActuator:
    """Issues no-op capability writes concurrently and records every outcome"""

    def __init__(self, config: Dict, writer: CapabilityWriter,
                 clock: Optional[Callable[[], datetime]] = None):
        self.enabled = config.get('enabled', True)
        self.capability = config.get('capability', 'onoff')
        self.classes = frozenset(str(c).lower() for c in config.get('classes') or [])
        self.writer = writer
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def is_eligible(self, device: HubDevice) -> bool:
        if not self.enabled or self.capability not in device.capabilities_obj:
            return False
        if not self.classes:
            return True
        return (device.device_class or "").lower() in self.classes or \
            (device.virtual_class or "").lower() in self.classes

    async def _poke(self, device: HubDevice, failing: FailingDevice) -> WakeAttempt:
        value = bool(device.capability_value(self.capability))
        attempt = WakeAttempt(
            device_id=device.id,
            device_name=device.name,
            capability=self.capability,
            value=value,
            attempted_at=self.clock()
        )
        failing.wake_attempt = attempt
        failing.wake_state = WakeState.ACTION_ISSUED
        logger.info(f"[WAKE] Trying {device.name} -> set {self.capability}={value} (noop poke)")

        try:
            await self.writer(device.id, self.capability, value)
            attempt.succeeded = True
            logger.info(f"[WAKE] OK: {device.name}")
        except Exception as e:
            attempt.error = str(e) or e.__class__.__name__
            logger.warning(f"[WAKE] Failed: {device.name} ({attempt.error})")
        return attempt

    async def wake(self, candidates: Sequence[tuple]) -> List[WakeAttempt]:
        """
        Poke every eligible (device, failing) pair at once and wait for all of them.
        Every candidate ends in PENDING_VERIFICATION whether or not it was poked.
        """
        pokes = [self._poke(device, failing) for device, failing in candidates if self.is_eligible(device)]

        attempts = []
        if pokes:
            results = await asyncio.gather(*pokes, return_exceptions=True)
            for result in results:
                if isinstance(result, WakeAttempt):
                    attempts.append(result)
                else:
                    logger.error(f"[WAKE] Unexpected poke error: {result}")

        for _, failing in candidates:
            failing.wake_state = WakeState.PENDING_VERIFICATION

        succeeded = sum(1 for a in attempts if a.succeeded)
        if attempts:
            logger.info(f"[WAKE] {succeeded}/{len(attempts)} pokes succeeded")
        return attempts
