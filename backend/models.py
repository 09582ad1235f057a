"""SQLAlchemy models for the latest device state and the historical readings log."""

from __future__ import annotations

import datetime as dt

from backend.db import db


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Device(db.Model):
    __tablename__ = "devices"
    device_id = db.Column(db.String, primary_key=True)
    status = db.Column(db.String, nullable=False)  # NORMAL | WARNING | EMERGENCY | SOS
    cause = db.Column(db.String, nullable=True)
    temperature = db.Column(db.Float, nullable=True)
    movement = db.Column(db.String, nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    last_seen = db.Column(db.DateTime, default=_utcnow)


class Reading(db.Model):
    __tablename__ = "readings"
    id = db.Column(db.Integer, primary_key=True)
    device_id = db.Column(db.String, nullable=False, index=True)
    received_at = db.Column(db.DateTime, default=_utcnow)
    status = db.Column(db.String, nullable=False)
    cause = db.Column(db.String, nullable=True)
    temperature = db.Column(db.Float, nullable=True)
    total_acc = db.Column(db.Float, nullable=True)
    movement = db.Column(db.String, nullable=True)
    mpu_status = db.Column(db.String, nullable=True)
    dht_status = db.Column(db.String, nullable=True)
    gps_status = db.Column(db.String, nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    device_timestamp = db.Column(db.Float, nullable=True)  # device-local, not wall-clock
