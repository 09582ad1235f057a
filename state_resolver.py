"""
State resolver fusing motion, temperature and the SOS latch into one device state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import config
from device_state import DeviceState, SubsystemHealth
from sos_latch import SosLatch


@dataclass(frozen=True)
class SensorSnapshot:
    """One tick of readings. None marks an invalid reading or a missing fix."""

    timestamp: float
    acc_deviation: Optional[float] = None  # |acc| - 1 g
    temperature: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    sos_edge: bool = False  # button released since the previous tick

    @property
    def has_fix(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def total_acc(self) -> float:
        if self.acc_deviation is None:
            return 0.0
        return 1.0 + self.acc_deviation


@dataclass
class MotionTimer:
    last_moved: Optional[float] = None

    def still_for(self, now: float) -> float:
        if self.last_moved is None:
            return 0.0
        return max(0.0, now - self.last_moved)


@dataclass(frozen=True)
class ResolverThresholds:
    movement_g: float = config.MOVEMENT_THRESHOLD_G
    still_warning: float = config.STILL_WARNING_SECONDS
    still_emergency: float = config.STILL_EMERGENCY_SECONDS
    temp_warning: float = config.TEMP_WARNING_C
    temp_critical: float = config.TEMP_CRITICAL_C


@dataclass
class Resolution:
    state: DeviceState
    causes: List[str] = field(default_factory=list)
    health: SubsystemHealth = field(default_factory=SubsystemHealth)
    moving: bool = False
    still_seconds: float = 0.0

    @property
    def cause(self) -> str:
        return ", ".join(self.causes)


def _motion_rule(
    snapshot: SensorSnapshot, timer: MotionTimer, limits: ResolverThresholds
) -> Tuple[DeviceState, Optional[str], bool, float]:
    """Returns (state, cause, moving, still_seconds) and updates the timer."""
    if timer.last_moved is None:
        timer.last_moved = snapshot.timestamp
    if snapshot.acc_deviation is None:
        return DeviceState.NORMAL, None, False, 0.0

    if abs(snapshot.acc_deviation) > limits.movement_g:
        timer.last_moved = snapshot.timestamp
        return DeviceState.NORMAL, None, True, 0.0

    still = timer.still_for(snapshot.timestamp)
    if still >= limits.still_emergency:
        return DeviceState.EMERGENCY, "NO MOVEMENT", False, still
    if still >= limits.still_warning:
        return DeviceState.WARNING, "INACTIVITY", False, still
    return DeviceState.NORMAL, None, False, still


def _temperature_rule(temperature: Optional[float], limits: ResolverThresholds) -> Tuple[DeviceState, Optional[str]]:
    if temperature is None:
        return DeviceState.NORMAL, None
    if temperature >= limits.temp_critical:
        return DeviceState.EMERGENCY, "HIGH TEMP"
    if temperature >= limits.temp_warning:
        return DeviceState.WARNING, "TEMP RISING"
    return DeviceState.NORMAL, None


def resolve(
    snapshot: SensorSnapshot,
    timer: MotionTimer,
    latch: SosLatch,
    limits: Optional[ResolverThresholds] = None,
) -> Resolution:
    """Evaluate one snapshot. Mutates only `timer`."""
    limits = limits or ResolverThresholds()
    health = SubsystemHealth(
        motion_ok=snapshot.acc_deviation is not None,
        environment_ok=snapshot.temperature is not None,
        position_fix=snapshot.has_fix,
    )

    motion_state, motion_cause, moving, still = _motion_rule(snapshot, timer, limits)

    if latch.active:
        return Resolution(DeviceState.SOS, ["SOS ACTIVATED"], health, moving, still)

    temp_state, temp_cause = _temperature_rule(snapshot.temperature, limits)

    state = max(DeviceState.NORMAL, motion_state, temp_state)
    causes = [
        cause
        for rule_state, cause in ((temp_state, temp_cause), (motion_state, motion_cause))
        if cause and rule_state == state
    ]
    return Resolution(state, causes, health, moving, still)


class StateResolver:
    """Owns the motion timer for one device session."""

    def __init__(self, limits: Optional[ResolverThresholds] = None):
        self.limits = limits or ResolverThresholds()
        self.timer = MotionTimer()

    def evaluate(self, snapshot: SensorSnapshot, latch: SosLatch) -> Resolution:
        return resolve(snapshot, self.timer, latch, self.limits)
