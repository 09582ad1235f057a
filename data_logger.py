"""
Device session log: one CSV row per resolved tick and per publish outcome.
"""

from __future__ import annotations

import csv
import datetime as dt
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import pandas as pd

from state_resolver import Resolution, SensorSnapshot

TICK_HEADER = ["timestamp", "device_id", "state", "cause", "temperature", "acc_deviation", "mpu", "dht", "gps"]
PUBLISH_HEADER = ["timestamp", "device_id", "outcome"]


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _ok(flag: bool) -> str:
    return "OK" if flag else "ERROR"


@dataclass
class DataLogger:
    tick_log_path: Path = Path("logs/device_ticks.csv")
    publish_log_path: Path = Path("logs/publish_outcomes.csv")

    def __post_init__(self):
        _ensure_parent(self.tick_log_path)
        _ensure_parent(self.publish_log_path)
        self._init_file(self.tick_log_path, TICK_HEADER)
        self._init_file(self.publish_log_path, PUBLISH_HEADER)

    def _init_file(self, path: Path, header: list) -> None:
        if not path.exists():
            with path.open("w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(header)

    def log_tick(self, device_id: str, snapshot: SensorSnapshot, resolution: Resolution) -> None:
        health = resolution.health
        row = [
            dt.datetime.fromtimestamp(snapshot.timestamp).isoformat(),
            device_id,
            resolution.state.name,
            resolution.cause,
            "" if snapshot.temperature is None else snapshot.temperature,
            "" if snapshot.acc_deviation is None else snapshot.acc_deviation,
            _ok(health.motion_ok),
            _ok(health.environment_ok),
            "OK" if health.position_fix else "NO_SIGNAL",
        ]
        with self.tick_log_path.open("a", newline="") as f:
            csv.writer(f).writerow(row)

    def log_publish(self, device_id: str, at: float, outcome: str) -> None:
        with self.publish_log_path.open("a", newline="") as f:
            csv.writer(f).writerow([dt.datetime.fromtimestamp(at).isoformat(), device_id, outcome])

    def session_report(self) -> Dict:
        """Summarise the logged session."""
        ticks = pd.read_csv(self.tick_log_path)
        publishes = pd.read_csv(self.publish_log_path)
        if ticks.empty:
            return {"total_ticks": 0}

        temps = pd.to_numeric(ticks["temperature"], errors="coerce").dropna()
        return {
            "total_ticks": len(ticks),
            "ticks_per_state": {k: int(v) for k, v in ticks["state"].value_counts().items()},
            "min_temperature": round(float(temps.min()), 2) if not temps.empty else None,
            "max_temperature": round(float(temps.max()), 2) if not temps.empty else None,
            "mean_temperature": round(float(temps.mean()), 2) if not temps.empty else None,
            "sensor_errors": int(((ticks["mpu"] == "ERROR") | (ticks["dht"] == "ERROR")).sum()),
            "publish_outcomes": {k: int(v) for k, v in publishes["outcome"].value_counts().items()},
        }
