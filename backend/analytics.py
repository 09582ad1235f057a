"""Rolling windows and derived trend statistics per device."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Generic, Iterator, List, TypeVar

import numpy as np

import config
from device_state import DeviceState
from telemetry_envelope import TelemetryEnvelope

T = TypeVar("T")


class RollingWindow(Generic[T]):
    """Fixed-capacity, insertion-ordered buffer; the oldest entry is evicted on overflow."""

    def __init__(self, capacity: int = config.ROLLING_WINDOW_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)

    def push(self, item: T) -> None:
        self._items.append(item)

    def items(self) -> List[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))


class RollingAnalytics:
    """Feeds windows from accepted envelopes. Every derived value is computed from window contents."""

    def __init__(self, capacity: int = config.ROLLING_WINDOW_SIZE):
        self.temperatures: RollingWindow[float] = RollingWindow(capacity)
        self.movement: RollingWindow[bool] = RollingWindow(capacity)
        self.states: RollingWindow[DeviceState] = RollingWindow(capacity)

    def push(self, envelope: TelemetryEnvelope) -> None:
        if envelope.temperature is not None:
            self.temperatures.push(envelope.temperature)
        if envelope.movement is not None:
            self.movement.push(envelope.moving)
        self.states.push(envelope.state)

    def temperature_stats(self) -> Dict[str, float]:
        if not len(self.temperatures):
            return {"min": 0.0, "avg": 0.0, "max": 0.0}
        temps = np.asarray(self.temperatures.items(), dtype=float)
        return {
            "min": round(float(temps.min()), 1),
            "avg": round(float(temps.mean()), 1),
            "max": round(float(temps.max()), 1),
        }

    def moving_percentage(self) -> float:
        if not len(self.movement):
            return 0.0
        return round(100.0 * sum(self.movement.items()) / len(self.movement), 1)

    def state_breakdown(self) -> Dict[str, float]:
        total = len(self.states)
        counts = {state.name: 0 for state in DeviceState.reportable()}
        for state in self.states:
            counts[state.name] += 1
        return {name: round(100.0 * count / total, 1) if total else 0.0 for name, count in counts.items()}

    def summary(self) -> Dict:
        return {
            "temperature": self.temperature_stats(),
            "temperature_history": self.temperatures.items(),
            "moving_pct": self.moving_percentage(),
            "movement_history": [int(m) for m in self.movement],
            "state_breakdown": self.state_breakdown(),
        }
