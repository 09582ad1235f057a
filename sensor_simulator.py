"""
Virtual sensor adapter for the wearable.
Generates a plausible wearer (walking, resting, collapsing) with optional CSV playback.
"""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from state_resolver import SensorSnapshot

CSV_COLUMNS = {"acc_deviation", "temperature", "latitude", "longitude", "sos"}


def _bounded(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def _optional(value) -> Optional[float]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return float(value)


@dataclass
class VirtualSensorSimulator:
    device_id: str
    latitude: float = 40.7128
    longitude: float = -74.0060
    temperature: float = 31.0
    scenario: str = "walking"  # walking | resting | collapsed | heat
    dataset: Optional[pd.DataFrame] = None
    dataset_index: int = 0
    fault_rate: float = 0.02
    _pending_release: bool = field(default=False, repr=False)
    _scenario_started: Optional[str] = field(default=None, repr=False)
    _scenario_ticks: int = field(default=0, repr=False)

    def load_csv_dataset(self, csv_path: Path) -> None:
        """Load dataset from CSV. Expected columns: acc_deviation, temperature, latitude, longitude, sos."""
        df = pd.read_csv(csv_path)
        self.set_dataset(df)

    def set_dataset(self, df: pd.DataFrame) -> None:
        missing = CSV_COLUMNS - set(df.columns)
        if missing:
            raise ValueError(f"Dataset missing columns: {missing}")
        self.dataset = df.reset_index(drop=True)
        self.dataset_index = 0

    def release_button(self) -> None:
        """Simulate the wearer releasing the SOS button. Delivered on the next snapshot."""
        self._pending_release = True

    def _sample_from_dataset(self) -> Dict:
        """Return the next row from dataset, cycling when reaching the end."""
        assert self.dataset is not None
        row = self.dataset.iloc[self.dataset_index]
        self.dataset_index = (self.dataset_index + 1) % len(self.dataset)
        return {
            "acc_deviation": _optional(row["acc_deviation"]),
            "temperature": _optional(row["temperature"]),
            "latitude": _optional(row["latitude"]),
            "longitude": _optional(row["longitude"]),
            "sos_edge": bool(row["sos"]),
        }

    def _generate_random_reading(self) -> Dict:
        if self.scenario != self._scenario_started:
            self._scenario_started = self.scenario
            self._scenario_ticks = 0
        self._scenario_ticks += 1

        if self.scenario == "walking":
            deviation = random.gauss(0.0, 0.3)
            self.latitude += (random.random() - 0.5) * 0.0002
            self.longitude += (random.random() - 0.5) * 0.0002
        elif self.scenario == "collapsed":
            # impact on the first sample, then a motionless wearer
            deviation = 2.5 if self._scenario_ticks == 1 else random.gauss(0.0, 0.005)
        else:
            deviation = random.gauss(0.0, 0.02)

        target = 55.0 if self.scenario == "heat" else 31.0
        self.temperature += (target - self.temperature) * 0.05 + random.gauss(0, 0.2)
        self.temperature = _bounded(self.temperature, -20.0, 80.0)

        temperature: Optional[float] = round(self.temperature, 1)
        if random.random() < self.fault_rate:
            temperature = None
        has_fix = random.random() > self.fault_rate

        return {
            "acc_deviation": round(deviation, 3),
            "temperature": temperature,
            "latitude": self.latitude if has_fix else None,
            "longitude": self.longitude if has_fix else None,
            "sos_edge": False,
        }

    def read_snapshot(self, now: Optional[float] = None) -> SensorSnapshot:
        if self.dataset is not None and len(self.dataset) > 0:
            values = self._sample_from_dataset()
        else:
            values = self._generate_random_reading()
        values["sos_edge"] = values["sos_edge"] or self._pending_release
        self._pending_release = False
        return SensorSnapshot(timestamp=time.time() if now is None else now, **values)
