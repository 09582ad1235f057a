"""
Local alarm actuation on the wearable: buzzer tones per severity with a repeat lockout.
"""

from __future__ import annotations

import io
import logging
import wave
from typing import Dict, Optional

import numpy as np

import config
from device_state import DeviceState

logger = logging.getLogger(__name__)

TONES = {
    DeviceState.WARNING: (660.0, 0.25),
    DeviceState.EMERGENCY: (880.0, 0.35),
    DeviceState.SOS: (1320.0, 0.6),
}


class LocalAlarm:
    def __init__(self, repeat_after: float = config.ALARM_REPEAT_SECONDS):
        self.repeat_after = repeat_after
        self._audio_cache: Dict[DeviceState, bytes] = {}
        self._last_state: Optional[DeviceState] = None
        self._last_sounded_at: Optional[float] = None

    def _generate_beep(self, freq: float, seconds: float) -> bytes:
        rate = 44100
        t = np.linspace(0, seconds, int(rate * seconds), False)
        tone = 0.5 * np.sin(freq * 2 * np.pi * t)
        audio = (tone * 32767).astype(np.int16)
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wav_file:
            wav_file.setnchannels(1)
            wav_file.setsampwidth(2)
            wav_file.setframerate(rate)
            wav_file.writeframes(audio.tobytes())
        return buf.getvalue()

    def tone(self, state: DeviceState) -> bytes:
        """WAV bytes for the state's buzzer pattern. Empty for NORMAL."""
        if state not in TONES:
            return b""
        if state not in self._audio_cache:
            self._audio_cache[state] = self._generate_beep(*TONES[state])
        return self._audio_cache[state]

    def should_sound(self, state: DeviceState) -> bool:
        return state >= DeviceState.WARNING

    def update(self, state: DeviceState, now: float) -> Optional[bytes]:
        """
        Returns the tone to play this tick, or None.
        A changed state sounds immediately; a persisting one repeats after the lockout.
        """
        changed = state != self._last_state
        self._last_state = state
        if not self.should_sound(state):
            self._last_sounded_at = None
            return None
        if changed or self._last_sounded_at is None or now - self._last_sounded_at >= self.repeat_after:
            self._last_sounded_at = now
            if changed:
                logger.warning("Local alarm: %s", state.name)
            return self.tone(state)
        return None
