"""
Demo runner that replays recorded wearable scenarios into the console via HTTP.
Assumes the console is running on localhost:5000.
"""
from __future__ import annotations

import argparse
import time
from pathlib import Path

import pandas as pd
import requests

SERVER = "http://localhost:5000"


def send_csv(path: Path, device_id: str, interval: float):
    """Each row is one envelope; columns follow the wire field names."""
    df = pd.read_csv(path)
    start = time.time()
    for _, row in df.iterrows():
        payload = {k: (None if pd.isna(v) else getattr(v, "item", lambda: v)()) for k, v in row.to_dict().items()}
        payload.setdefault("device_id", device_id)
        payload["timestamp"] = time.time() - start
        r = requests.post(f"{SERVER}/telemetry", json=payload, timeout=5)
        if r.status_code != 200:
            print(f"{path.name}: {r.status_code} {r.text.strip()}")
        time.sleep(interval)
    print(f"Scenario {path.name} done in {time.time() - start:.1f}s")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("scenarios", nargs="+", type=Path)
    parser.add_argument("--device-id", default="FF_DEMO")
    parser.add_argument("--interval", type=float, default=3.0)
    args = parser.parse_args()
    for scenario in args.scenarios:
        send_csv(scenario, args.device_id, args.interval)
    r = requests.get(f"{SERVER}/devices/{args.device_id}", timeout=5)
    print(r.json())


if __name__ == "__main__":
    main()
