"""
Rate-limited telemetry publishing, decoupled from the sampling loop.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Dict, Optional

import requests

import config
from state_resolver import Resolution, SensorSnapshot
from telemetry_envelope import TelemetryEnvelope

logger = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
    DELIVERED = "DELIVERED"
    REJECTED = "REJECTED"  # remote refused, do not retry
    UNREACHABLE = "UNREACHABLE"  # retry on the next scheduled tick


def classify_status(status_code: int) -> DeliveryOutcome:
    if 200 <= status_code < 300:
        return DeliveryOutcome.DELIVERED
    if 400 <= status_code < 500:
        return DeliveryOutcome.REJECTED
    return DeliveryOutcome.UNREACHABLE


class HttpTransport:
    """POSTs envelopes as JSON. `link_up` reports local connectivity (e.g. Wi-Fi associated)."""

    def __init__(
        self,
        url: str = config.TELEMETRY_URL,
        timeout: float = config.PUBLISH_TIMEOUT,
        link_up: Optional[Callable[[], bool]] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._link_up = link_up or (lambda: True)
        self.session = requests.Session()

    def available(self) -> bool:
        return self._link_up()

    def send(self, payload: Dict) -> DeliveryOutcome:
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.info("Telemetry endpoint unreachable: %s", exc)
            return DeliveryOutcome.UNREACHABLE
        except requests.RequestException as exc:
            logger.warning("Telemetry request failed: %s", exc)
            return DeliveryOutcome.UNREACHABLE
        outcome = classify_status(response.status_code)
        if outcome is DeliveryOutcome.REJECTED:
            logger.warning("Telemetry rejected (%s): %s", response.status_code, response.text[:200])
        return outcome

    def close(self) -> None:
        self.session.close()


class CallbackTransport:
    """In-process transport handing payloads to a callable, used by the simulation console."""

    def __init__(self, deliver: Callable[[Dict], object], link_up: Optional[Callable[[], bool]] = None):
        self._deliver = deliver
        self._link_up = link_up or (lambda: True)

    def available(self) -> bool:
        return self._link_up()

    def send(self, payload: Dict) -> DeliveryOutcome:
        self._deliver(payload)
        return DeliveryOutcome.DELIVERED

    def close(self) -> None:
        pass


class TelemetryPublisher:
    """
    Builds one envelope per publish interval and hands it to a single background worker.
    A tick that finds the previous attempt still running is skipped, never queued.
    """

    def __init__(self, device_id: str, transport, interval: float = config.PUBLISH_INTERVAL):
        self.device_id = device_id
        self.transport = transport
        self.interval = interval
        self.outcomes: Counter = Counter()
        self.last_outcome: Optional[DeliveryOutcome] = None
        self.skipped = 0
        self._lock = threading.Lock()
        self._last_publish_at: Optional[float] = None
        self._in_flight: Optional[Future] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="telemetry")

    def due(self, now: float) -> bool:
        return self._last_publish_at is None or now - self._last_publish_at >= self.interval

    def tick(self, now: float, resolution: Resolution, snapshot: SensorSnapshot) -> Optional[Future]:
        """Call every loop iteration. Returns the delivery future when an attempt was started."""
        if not self.due(now):
            return None
        self._last_publish_at = now

        if self._in_flight is not None and not self._in_flight.done():
            self.skipped += 1
            logger.debug("Previous publish still in flight, skipping tick")
            return None

        if not self.transport.available():
            self._record(DeliveryOutcome.UNREACHABLE)
            logger.info("No connectivity, telemetry skipped")
            return None

        envelope = TelemetryEnvelope.from_resolution(self.device_id, resolution, snapshot, sent_at=now)
        self._in_flight = self._executor.submit(self._deliver, envelope)
        return self._in_flight

    def _deliver(self, envelope: TelemetryEnvelope) -> DeliveryOutcome:
        try:
            outcome = self.transport.send(envelope.to_wire())
        except Exception:
            logger.exception("Telemetry transport raised")
            outcome = DeliveryOutcome.UNREACHABLE
        self._record(outcome)
        return outcome

    def _record(self, outcome: DeliveryOutcome) -> None:
        with self._lock:
            self.outcomes[outcome] += 1
            self.last_outcome = outcome

    def close(self, wait: bool = True) -> None:
        """Stop the worker. An in-flight attempt is bounded by the transport timeout."""
        self._executor.shutdown(wait=wait)
        self.transport.close()
