"""Tests for the concurrent wake poke."""

import asyncio

from monitoring.durations import Threshold
from monitoring.models import FailingDevice, WakeState
from monitoring.staleness import classify_staleness
from monitoring.wake import WakeActuator
from support import NOW, FakeDirectory, make_device

HOUR = Threshold(millis=60 * 60_000, unit="m")


def failing_pair(device):
    entry = FailingDevice(device.id, device.name, device.device_class, None,
                          classify_staleness(device, NOW, HOUR))
    return device, entry


def test_one_failed_write_does_not_affect_the_others():
    devices = [make_device(i, minutes_ago=120) for i in ("A", "B", "C")]
    hub = FakeDirectory(devices, failing_writes={"B"})
    actuator = WakeActuator({"capability": "onoff", "classes": ["light"]}, hub.set_capability_value)
    pairs = [failing_pair(d) for d in devices]

    attempts = asyncio.run(actuator.wake(pairs))

    assert len(attempts) == 3
    assert sum(1 for a in attempts if a.succeeded) == 2
    by_id = {a.device_id: a for a in attempts}
    assert by_id["A"].succeeded and by_id["C"].succeeded
    assert not by_id["B"].succeeded
    assert "timed out" in by_id["B"].error
    assert all(entry.wake_state is WakeState.PENDING_VERIFICATION for _, entry in pairs)
    assert all(entry.wake_attempt is not None for _, entry in pairs)


def test_poke_writes_current_value_back():
    on = make_device("on", onoff=True, minutes_ago=120)
    off = make_device("off", onoff=False, minutes_ago=120)
    hub = FakeDirectory([on, off])
    actuator = WakeActuator({}, hub.set_capability_value)

    asyncio.run(actuator.wake([failing_pair(on), failing_pair(off)]))

    assert sorted(hub.writes) == [("off", "onoff", False), ("on", "onoff", True)]


def test_writes_run_concurrently():
    devices = [make_device(str(i), minutes_ago=120) for i in range(3)]
    in_flight = []
    peak = []

    async def slow_writer(device_id, capability, value):
        in_flight.append(device_id)
        peak.append(len(in_flight))
        await asyncio.sleep(0.01)
        in_flight.remove(device_id)

    actuator = WakeActuator({}, slow_writer)
    asyncio.run(actuator.wake([failing_pair(d) for d in devices]))

    assert max(peak) == 3


def test_ineligible_devices_are_not_poked():
    sensor = make_device("sensor", device_class="sensor", minutes_ago=120)
    no_toggle = make_device("dimless", onoff=None)
    hub = FakeDirectory([sensor, no_toggle])
    actuator = WakeActuator({"classes": ["light"]}, hub.set_capability_value)
    pairs = [failing_pair(sensor), failing_pair(no_toggle)]

    attempts = asyncio.run(actuator.wake(pairs))

    assert attempts == []
    assert hub.writes == []
    assert all(entry.wake_attempt is None for _, entry in pairs)
    assert all(entry.wake_state is WakeState.PENDING_VERIFICATION for _, entry in pairs)


def test_empty_class_list_allows_any_class():
    sensor = make_device("sensor", device_class="sensor", minutes_ago=120)
    actuator = WakeActuator({"classes": []}, FakeDirectory([sensor]).set_capability_value)
    assert actuator.is_eligible(sensor)


def test_disabled_actuator_pokes_nothing():
    device = make_device("a", minutes_ago=120)
    actuator = WakeActuator({"enabled": False}, FakeDirectory([device]).set_capability_value)
    assert not actuator.is_eligible(device)
