"""
Telemetry envelope and its JSON wire form.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import config
from device_state import DeviceState, SubsystemHealth


class EnvelopeError(ValueError):
    """Payload cannot be decoded into an envelope."""


def movement_label(moving: bool, still_seconds: float) -> str:
    if moving:
        return "MOVING"
    return f"STILL ({int(still_seconds)}s)"


def is_moving(movement: Optional[str]) -> bool:
    return str(movement or "").strip().upper().startswith("MOVING")


@dataclass(frozen=True)
class TelemetryEnvelope:
    device_id: str
    state: DeviceState
    cause: str = ""
    temperature: Optional[float] = None
    total_acc: float = 0.0
    movement: Optional[str] = None
    health: SubsystemHealth = SubsystemHealth()
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: float = 0.0

    @property
    def moving(self) -> bool:
        return is_moving(self.movement)

    @classmethod
    def from_resolution(cls, device_id, resolution, snapshot, sent_at: float) -> "TelemetryEnvelope":
        return cls(
            device_id=device_id,
            state=resolution.state,
            cause=resolution.cause,
            temperature=snapshot.temperature,
            total_acc=round(snapshot.total_acc, 3),
            movement=movement_label(resolution.moving, resolution.still_seconds),
            health=resolution.health,
            latitude=snapshot.latitude,
            longitude=snapshot.longitude,
            timestamp=sent_at,
        )

    def to_wire(self) -> Dict[str, Any]:
        health = self.health
        return {
            "device_id": self.device_id,
            "status": self.state.name,
            "cause": self.cause,
            "temperature": self.temperature if health.environment_ok else config.TEMPERATURE_INVALID,
            "total_acc": self.total_acc,
            "movement": self.movement,
            "mpu_status": "OK" if health.motion_ok else "ERROR",
            "dht_status": "OK" if health.environment_ok else "ERROR",
            "gps_status": "OK" if health.position_fix else "NO_SIGNAL",
            "system_status": "SENSOR_FAILURE" if health.sensor_failure else "OK",
            "latitude": 0.0 if self.latitude is None else self.latitude,
            "longitude": 0.0 if self.longitude is None else self.longitude,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_wire(cls, payload: Any) -> "TelemetryEnvelope":
        """Decode a full or reduced wire payload. Raises EnvelopeError."""
        if not isinstance(payload, dict):
            raise EnvelopeError("payload must be a JSON object")
        device_id = payload.get("device_id")
        if not isinstance(device_id, str) or not device_id.strip():
            raise EnvelopeError("device_id is required")

        status = payload.get("status", DeviceState.NORMAL.name)
        state = DeviceState.from_wire(status)
        if state is None:
            raise EnvelopeError(f"unknown status: {status!r}")

        # "EMERGENCY (HIGH TEMP)" carries its cause in the suffix
        cause = payload.get("cause") or str(status)[len(state.name):].strip(" ()")

        # An omitted reading is absent, not failed
        temperature = _number(payload, "temperature")
        sentinel = temperature is not None and temperature <= config.TEMPERATURE_INVALID
        dht_ok = payload.get("dht_status", "OK") == "OK" and not sentinel
        if not dht_ok:
            temperature = None

        latitude = _number(payload, "latitude")
        longitude = _number(payload, "longitude")
        gps_ok = latitude is not None and longitude is not None
        if "gps_status" in payload:
            gps_ok = gps_ok and payload["gps_status"] == "OK"
        else:
            gps_ok = gps_ok and (latitude, longitude) != (0.0, 0.0)

        return cls(
            device_id=device_id.strip(),
            state=state,
            cause=str(cause),
            temperature=temperature,
            total_acc=_number(payload, "total_acc") or 0.0,
            movement=str(payload["movement"]) if payload.get("movement") else None,
            health=SubsystemHealth(
                motion_ok=payload.get("mpu_status", "OK") == "OK",
                environment_ok=dht_ok,
                position_fix=gps_ok,
            ),
            latitude=latitude if gps_ok else None,
            longitude=longitude if gps_ok else None,
            timestamp=_number(payload, "timestamp") or 0.0,
        )


def _number(payload: Dict[str, Any], key: str) -> Optional[float]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EnvelopeError(f"{key} must be a number")
    if math.isnan(value) or math.isinf(value):
        raise EnvelopeError(f"{key} must be finite")
    return float(value)
