"""Database setup and initialization helpers."""

from __future__ import annotations

from flask import current_app
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def init_db():
    """Create the devices and readings tables if they do not exist."""
    from backend import models  # noqa: F401

    db.create_all()


def store_ready() -> bool:
    """True when the backing store was initialised for the current app."""
    return "sqlalchemy" in current_app.extensions
