"""
Severity levels shared by the device and the console.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class DeviceState(IntEnum):
    """
    Severity-ordered device state. OFFLINE is only derived by the console and
    sorts below NORMAL, so max() and threshold checks never select it.
    """

    OFFLINE = -1
    NORMAL = 0
    WARNING = 1
    EMERGENCY = 2
    SOS = 3

    @classmethod
    def reportable(cls):
        return (cls.NORMAL, cls.WARNING, cls.EMERGENCY, cls.SOS)

    @classmethod
    def from_wire(cls, value: str) -> Optional["DeviceState"]:
        """
        Recover the base severity from a wire status string.
        Prefix matching accepts suffixed forms like "EMERGENCY (HIGH TEMP)".
        """
        text = str(value).strip().upper()
        for state in cls.reportable():
            if text.startswith(state.name):
                return state
        return None


@dataclass(frozen=True)
class SubsystemHealth:
    motion_ok: bool = True
    environment_ok: bool = True
    position_fix: bool = True

    @property
    def sensor_failure(self) -> bool:
        # A lost position fix is not a sensor failure
        return not (self.motion_ok and self.environment_ok)
