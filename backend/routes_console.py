"""Read side of the live console: displayed device states, analytics and the alert log."""

from __future__ import annotations

from flask import Blueprint, jsonify

from backend.console import get_console

console_bp = Blueprint("console", __name__)


@console_bp.route("/devices", methods=["GET"])
def devices():
    console = get_console()
    console.tick()
    return jsonify([console.snapshot(device_id) for device_id in console.device_ids()])


@console_bp.route("/devices/<device_id>", methods=["GET"])
def device_detail(device_id):
    console = get_console()
    console.tick()
    payload = console.snapshot(device_id, detail=True)
    if payload is None:
        return jsonify({"error": "device not found"}), 404
    return jsonify(payload)


@console_bp.route("/alerts", methods=["GET"])
def alerts():
    console = get_console()
    console.tick()
    return jsonify([entry.to_dict() for entry in console.alerts()])
