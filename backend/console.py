"""
Live operational picture built from the telemetry stream.
Per-device updates are serialized; different devices proceed independently.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from flask import current_app

import config
from backend.analytics import RollingAnalytics
from backend.liveness import LivenessMonitor
from device_state import DeviceState
from telemetry_envelope import TelemetryEnvelope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertLogEntry:
    received_at: float
    device_id: str
    state: DeviceState
    message: str

    def to_dict(self) -> Dict:
        return {
            "timestamp": self.received_at,
            "device_id": self.device_id,
            "status": self.state.name,
            "message": self.message,
        }


@dataclass
class DeviceView:
    device_id: str
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    latest: Optional[TelemetryEnvelope] = None
    analytics: RollingAnalytics = field(default_factory=RollingAnalytics)
    trail: Deque[Tuple[float, float]] = field(default_factory=lambda: deque(maxlen=config.TRAIL_SIZE))

    def add_position(self, lat: float, lng: float) -> None:
        if self.trail:
            last_lat, last_lng = self.trail[-1]
            if abs(last_lat - lat) <= config.TRAIL_MIN_DELTA and abs(last_lng - lng) <= config.TRAIL_MIN_DELTA:
                return
        self.trail.append((lat, lng))


class TelemetryConsole:
    def __init__(self, liveness_timeout: float = config.LIVENESS_TIMEOUT, alert_log_size: int = config.ALERT_LOG_SIZE):
        self.liveness = LivenessMonitor(liveness_timeout)
        self._devices: Dict[str, DeviceView] = {}
        self._devices_lock = threading.Lock()
        self._alerts: Deque[AlertLogEntry] = deque(maxlen=alert_log_size)
        self._alerts_lock = threading.Lock()

    def _view(self, device_id: str) -> DeviceView:
        with self._devices_lock:
            if device_id not in self._devices:
                self._devices[device_id] = DeviceView(device_id)
            return self._devices[device_id]

    def _log(self, received_at: float, device_id: str, state: DeviceState, message: str) -> None:
        with self._alerts_lock:
            self._alerts.append(AlertLogEntry(received_at, device_id, state, message))
        logger.info("[%s] %s: %s", device_id, state.name, message)

    def accept(self, envelope: TelemetryEnvelope, received_at: Optional[float] = None) -> DeviceState:
        """Apply one envelope. Returns the state now displayed for the device."""
        received_at = time.time() if received_at is None else received_at
        view = self._view(envelope.device_id)
        with view.lock:
            # Outages no read observed are logged on arrival
            lapsed_since = self.liveness.lapse(envelope.device_id, received_at)
            if lapsed_since is not None:
                self._log_offline(received_at, envelope.device_id, lapsed_since)

            previous = view.latest.state if view.latest is not None else None
            view.latest = envelope
            view.analytics.push(envelope)
            if envelope.health.position_fix and envelope.latitude is not None and envelope.longitude is not None:
                view.add_position(envelope.latitude, envelope.longitude)

            if self.liveness.record(envelope.device_id, received_at):
                self._log(received_at, envelope.device_id, envelope.state, "Device back online")
            if envelope.state >= DeviceState.WARNING and envelope.state != previous:
                message = envelope.cause or f"Status changed to {envelope.state.name}"
                self._log(received_at, envelope.device_id, envelope.state, message)
        return envelope.state

    def tick(self, now: Optional[float] = None) -> None:
        """Re-evaluate liveness; logs devices that just went OFFLINE."""
        now = time.time() if now is None else now
        for device_id, last in self.liveness.evaluate(now):
            self._log_offline(now, device_id, last)

    def _log_offline(self, at: float, device_id: str, last: float) -> None:
        self._log(at, device_id, DeviceState.OFFLINE, f"No telemetry for {at - last:.0f}s")

    def displayed_state(self, device_id: str, now: Optional[float] = None) -> Optional[DeviceState]:
        now = time.time() if now is None else now
        view = self._devices.get(device_id)
        if view is None or view.latest is None:
            return None
        return self.liveness.displayed_state(device_id, view.latest.state, now)

    def device_ids(self) -> List[str]:
        with self._devices_lock:
            return sorted(self._devices)

    def snapshot(self, device_id: str, now: Optional[float] = None, detail: bool = False) -> Optional[Dict]:
        now = time.time() if now is None else now
        view = self._devices.get(device_id)
        if view is None or view.latest is None:
            return None
        with view.lock:
            wire = view.latest.to_wire()
            payload = {
                "device_id": device_id,
                "reported_status": view.latest.state.name,
                "status": self.liveness.displayed_state(device_id, view.latest.state, now).name,
                "cause": view.latest.cause,
                "seconds_since_seen": round(now - self.liveness.last_seen(device_id), 1),
                "temperature": view.latest.temperature,
                "movement": view.latest.movement,
                "location": {"lat": view.latest.latitude, "lng": view.latest.longitude},
                "sensors": {k: wire[k] for k in ("mpu_status", "dht_status", "gps_status", "system_status")},
            }
            if detail:
                payload["analytics"] = view.analytics.summary()
                payload["trail"] = [list(point) for point in view.trail]
        return payload

    def alerts(self) -> List[AlertLogEntry]:
        with self._alerts_lock:
            return list(reversed(self._alerts))


def get_console() -> TelemetryConsole:
    return current_app.extensions["telemetry_console"]
