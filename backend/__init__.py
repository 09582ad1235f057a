"""Flask application factory for the telemetry console."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from flask import Flask

import config
from backend.console import TelemetryConsole
from backend.db import db, init_db
from backend.routes_console import console_bp
from backend.routes_telemetry import telemetry_bp


def create_app(test_config: Optional[Mapping] = None):
    app = Flask(__name__)
    app.config.from_object(config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if app.config["TELEMETRY_STORE_ENABLED"]:
        db.init_app(app)
        with app.app_context():
            init_db()
    else:
        logging.warning("Telemetry store disabled; POST /telemetry will answer 503")

    app.extensions["telemetry_console"] = TelemetryConsole(
        liveness_timeout=app.config["LIVENESS_TIMEOUT"],
        alert_log_size=app.config["ALERT_LOG_SIZE"],
    )
    app.register_blueprint(telemetry_bp)
    app.register_blueprint(console_bp)

    @app.route("/healthz")
    def healthz():
        return {"status": "ok"}

    return app
