"""
Device-side entry-point: runs the sampling loop against the simulator and publishes over HTTP.
"""

from __future__ import annotations

import argparse
import logging
import time
from concurrent.futures import Future
from typing import Optional

import config
from alert_system import LocalAlarm
from data_logger import DataLogger
from sensor_simulator import VirtualSensorSimulator
from sos_latch import SosLatch
from state_resolver import Resolution, StateResolver
from telemetry_publisher import HttpTransport, TelemetryPublisher

logger = logging.getLogger(__name__)


class DeviceController:
    """One wearable session: latch, resolver, local alarm and publisher on a shared timeline."""

    def __init__(self, device_id, adapter, publisher: TelemetryPublisher, data_logger: Optional[DataLogger] = None):
        self.device_id = device_id
        self.adapter = adapter
        self.publisher = publisher
        self.data_logger = data_logger
        self.latch = SosLatch()
        self.resolver = StateResolver()
        self.alarm = LocalAlarm()
        self.last_resolution: Optional[Resolution] = None
        self.pending_tone: Optional[bytes] = None

    def tick(self, now: float) -> Resolution:
        snapshot = self.adapter.read_snapshot(now)
        if snapshot.sos_edge:
            self.latch.register_edge(snapshot.timestamp)

        resolution = self.resolver.evaluate(snapshot, self.latch)
        self.last_resolution = resolution

        # Local alerting never waits on the network
        self.pending_tone = self.alarm.update(resolution.state, now)

        future = self.publisher.tick(now, resolution, snapshot)
        if self.data_logger is not None:
            self.data_logger.log_tick(self.device_id, snapshot, resolution)
            if future is not None:
                future.add_done_callback(lambda f, at=now: self._log_outcome(f, at))
        return resolution

    def _log_outcome(self, future: Future, at: float) -> None:
        self.data_logger.log_publish(self.device_id, at, future.result().value)


def run_cli(device_id: str = config.DEVICE_ID, iterations: int = 600, url: str = config.TELEMETRY_URL) -> None:
    simulator = VirtualSensorSimulator(device_id)
    publisher = TelemetryPublisher(device_id, HttpTransport(url))
    data_logger = DataLogger()
    controller = DeviceController(device_id, simulator, publisher, data_logger)

    try:
        for i in range(iterations):
            resolution = controller.tick(time.time())
            if i % 10 == 0:
                print(
                    f"{device_id} | {resolution.state.name:<9} | {resolution.cause or '-'} | "
                    f"still {resolution.still_seconds:.0f}s | last publish {publisher.last_outcome}"
                )
            time.sleep(config.SAMPLE_INTERVAL)
    except KeyboardInterrupt:
        pass
    finally:
        publisher.close()
    print(data_logger.session_report())


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a simulated wearable against a telemetry console")
    parser.add_argument("--device-id", default=config.DEVICE_ID)
    parser.add_argument("--iterations", type=int, default=600)
    parser.add_argument("--url", default=config.TELEMETRY_URL)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    run_cli(args.device_id, args.iterations, args.url)


if __name__ == "__main__":
    main()
