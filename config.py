"""
Global configuration for the Wearable Safety Monitor.
Thresholds are fixed at start-up; deployment values can be overridden via environment.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DB_PATH = os.path.join(BASE_DIR, "telemetry.db")
SQLALCHEMY_DATABASE_URI = os.environ.get("SAFETY_DATABASE_URI", f"sqlite:///{DB_PATH}")
SQLALCHEMY_TRACK_MODIFICATIONS = False
TELEMETRY_STORE_ENABLED = os.environ.get("SAFETY_STORE_ENABLED", "1") not in {"0", "false", "False"}

# Device identity and uplink
DEVICE_ID = os.environ.get("SAFETY_DEVICE_ID", "FF_001")
TELEMETRY_URL = os.environ.get("SAFETY_TELEMETRY_URL", "http://localhost:5000/telemetry")

# Sampling loop period in seconds
SAMPLE_INTERVAL = 0.1

# Movement: deviation of |acc| from 1 g (in g) that counts as moving
MOVEMENT_THRESHOLD_G = 0.15

# Stillness escalation windows in seconds (single-tier policy)
STILL_WARNING_SECONDS = 5.0
STILL_EMERGENCY_SECONDS = 15.0

# Ambient temperature thresholds in °C
TEMP_WARNING_C = 40.0
TEMP_CRITICAL_C = 50.0

# Wire sentinel for an invalid temperature reading
TEMPERATURE_INVALID = -999.0

# SOS button
SOS_DEBOUNCE_SECONDS = 0.2
SOS_DEACTIVATION_PRESSES = 2

# Telemetry publishing
PUBLISH_INTERVAL = 3.0
PUBLISH_TIMEOUT = 2.5

# Local alarm re-announce lockout for a persisting state
ALARM_REPEAT_SECONDS = 10.0

# Consumer side
LIVENESS_TIMEOUT = 10.0
ROLLING_WINDOW_SIZE = 60
ALERT_LOG_SIZE = 20
TRAIL_SIZE = 50
TRAIL_MIN_DELTA = 0.0001
