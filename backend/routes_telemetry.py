"""Telemetry ingress: persists each envelope and feeds the live console."""

from __future__ import annotations

import datetime as dt
import logging
import time

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import OperationalError

from backend.console import get_console
from backend.db import db, store_ready
from backend.models import Device, Reading
from telemetry_envelope import EnvelopeError, TelemetryEnvelope

logger = logging.getLogger(__name__)

telemetry_bp = Blueprint("telemetry", __name__)


def _persist(envelope: TelemetryEnvelope, received_at: float) -> None:
    """Append to the history log and merge into the latest-state row in one commit."""
    wire = envelope.to_wire()
    when = dt.datetime.fromtimestamp(received_at, dt.timezone.utc)
    db.session.add(
        Reading(
            device_id=envelope.device_id,
            received_at=when,
            status=envelope.state.name,
            cause=envelope.cause,
            temperature=envelope.temperature,
            total_acc=envelope.total_acc,
            movement=envelope.movement,
            mpu_status=wire["mpu_status"],
            dht_status=wire["dht_status"],
            gps_status=wire["gps_status"],
            latitude=envelope.latitude,
            longitude=envelope.longitude,
            device_timestamp=envelope.timestamp,
        )
    )
    device = db.session.get(Device, envelope.device_id)
    if device is None:
        device = Device(device_id=envelope.device_id)
        db.session.add(device)
    device.status = envelope.state.name
    device.cause = envelope.cause
    # Absent fields keep the stored value
    if envelope.temperature is not None or not envelope.health.environment_ok:
        device.temperature = envelope.temperature
    if envelope.movement is not None:
        device.movement = envelope.movement
    if envelope.latitude is not None:
        device.latitude = envelope.latitude
        device.longitude = envelope.longitude
    device.last_seen = when
    db.session.commit()


@telemetry_bp.route("/telemetry", methods=["POST"])
def ingest():
    if not store_ready():
        logger.warning("Telemetry store not initialised, refusing envelope")
        return jsonify({"error": "Database service unavailable"}), 503

    payload = request.get_json(silent=True)
    try:
        envelope = TelemetryEnvelope.from_wire(payload)
    except EnvelopeError as exc:
        return jsonify({"error": str(exc)}), 400

    received_at = time.time()
    try:
        _persist(envelope, received_at)
    except OperationalError:
        db.session.rollback()
        logger.exception("Telemetry store unreachable")
        return jsonify({"error": "Database service unavailable"}), 503
    except Exception:
        db.session.rollback()
        logger.exception("Error processing telemetry")
        return jsonify({"error": "Internal Server Error"}), 500

    displayed = get_console().accept(envelope, received_at)
    return jsonify({"success": True, "device_id": envelope.device_id, "status": displayed.name})
