"""Liveness overlay: a device with no recent telemetry is displayed as OFFLINE."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple

import config
from device_state import DeviceState


class LivenessMonitor:
    def __init__(self, timeout: float = config.LIVENESS_TIMEOUT):
        self.timeout = timeout
        self._last_seen: Dict[str, float] = {}
        self._offline: set = set()
        self._lock = threading.Lock()

    def record(self, device_id: str, received_at: float) -> bool:
        """Note an envelope arrival. Returns True if the device was displayed OFFLINE until now."""
        with self._lock:
            self._last_seen[device_id] = max(received_at, self._last_seen.get(device_id, received_at))
            was_offline = device_id in self._offline
            self._offline.discard(device_id)
            return was_offline

    def lapse(self, device_id: str, now: float) -> Optional[float]:
        """Mark one device OFFLINE if its timeout ran out unobserved. Returns its last_seen if so."""
        with self._lock:
            last = self._last_seen.get(device_id)
            if last is None or device_id in self._offline or now - last < self.timeout:
                return None
            self._offline.add(device_id)
            return last

    def last_seen(self, device_id: str) -> Optional[float]:
        return self._last_seen.get(device_id)

    def is_online(self, device_id: str, now: float) -> bool:
        last = self._last_seen.get(device_id)
        return last is not None and now - last < self.timeout

    def displayed_state(self, device_id: str, reported: DeviceState, now: float) -> DeviceState:
        return reported if self.is_online(device_id, now) else DeviceState.OFFLINE

    def evaluate(self, now: float) -> List[Tuple[str, float]]:
        """Returns (device_id, last_seen) for each device that went OFFLINE since the previous call."""
        went_offline = []
        with self._lock:
            for device_id, last in self._last_seen.items():
                if device_id in self._offline or now - last < self.timeout:
                    continue
                self._offline.add(device_id)
                went_offline.append((device_id, last))
        return went_offline
