from sqlalchemy.exc import OperationalError

import backend.routes_telemetry as routes_telemetry
from backend import create_app
from backend.db import db
from backend.models import Device, Reading


def setup_module(module):
    module.app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "TELEMETRY_STORE_ENABLED": True,
        }
    )
    module.client = module.app.test_client()


def teardown_module(module):
    with module.app.app_context():
        db.session.remove()
        db.drop_all()


ENVELOPE = {
    "device_id": "FF_001",
    "status": "EMERGENCY (HIGH TEMP)",
    "temperature": 55.2,
    "total_acc": 1.01,
    "movement": "STILL (20s)",
    "mpu_status": "OK",
    "dht_status": "OK",
    "gps_status": "OK",
    "system_status": "OK",
    "latitude": 40.7128,
    "longitude": -74.006,
    "timestamp": 1234.5,
}


def test_full_envelope_is_stored_and_displayed():
    resp = client.post("/telemetry", json=ENVELOPE)
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "device_id": "FF_001", "status": "EMERGENCY"}

    with app.app_context():
        device = db.session.get(Device, "FF_001")
        assert device.status == "EMERGENCY"
        assert device.cause == "HIGH TEMP"
        assert Reading.query.filter_by(device_id="FF_001").count() == 1

    detail = client.get("/devices/FF_001").get_json()
    assert detail["status"] == "EMERGENCY"
    assert detail["analytics"]["temperature"]["max"] == 55.2
    assert detail["analytics"]["moving_pct"] == 0.0

    alerts = client.get("/alerts").get_json()
    assert alerts[0]["status"] == "EMERGENCY"
    assert alerts[0]["message"] == "HIGH TEMP"


def test_reduced_envelope_merges_latest_state():
    resp = client.post(
        "/telemetry",
        json={"device_id": "FF_002", "temperature": 30.0, "movement": "MOVING", "status": "NORMAL", "latitude": 1.0, "longitude": 2.0},
    )
    assert resp.status_code == 200
    client.post("/telemetry", json={"device_id": "FF_002", "status": "WARNING"})
    with app.app_context():
        device = db.session.get(Device, "FF_002")
        assert device.status == "WARNING"
        assert device.latitude == 1.0
        assert device.temperature == 30.0
        assert device.movement == "MOVING"
        assert Reading.query.filter_by(device_id="FF_002").count() == 2
    listed = {d["device_id"]: d for d in client.get("/devices").get_json()}
    assert listed["FF_002"]["status"] == "WARNING"
    detail = client.get("/devices/FF_002").get_json()
    assert detail["sensors"]["system_status"] == "OK"
    assert detail["analytics"]["moving_pct"] == 100.0


def test_missing_device_id_is_rejected_without_write():
    with app.app_context():
        before = Reading.query.count()
    resp = client.post("/telemetry", json={"temperature": 30.0})
    assert resp.status_code == 400
    assert "device_id" in resp.get_json()["error"]
    with app.app_context():
        assert Reading.query.count() == before


def test_non_json_body_is_rejected():
    resp = client.post("/telemetry", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_unknown_device_detail_is_404():
    assert client.get("/devices/nobody").status_code == 404


def test_store_failure_is_503(monkeypatch):
    def down(envelope, received_at):
        raise OperationalError("INSERT INTO readings", {}, Exception("database is locked"))

    monkeypatch.setattr(routes_telemetry, "_persist", down)
    resp = client.post("/telemetry", json={"device_id": "FF_003"})
    assert resp.status_code == 503


def test_unexpected_failure_is_500(monkeypatch):
    def broken(envelope, received_at):
        raise RuntimeError("boom")

    monkeypatch.setattr(routes_telemetry, "_persist", broken)
    resp = client.post("/telemetry", json={"device_id": "FF_003"})
    assert resp.status_code == 500
    assert client.get("/devices/FF_003").status_code == 404


def test_missing_store_is_503():
    offline_app = create_app({"TESTING": True, "TELEMETRY_STORE_ENABLED": False})
    resp = offline_app.test_client().post("/telemetry", json=ENVELOPE)
    assert resp.status_code == 503


def test_healthz():
    assert client.get("/healthz").get_json() == {"status": "ok"}
