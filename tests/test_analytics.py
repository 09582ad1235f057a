import pytest

from backend.analytics import RollingAnalytics, RollingWindow
from device_state import DeviceState
from telemetry_envelope import TelemetryEnvelope


def _envelope(temp=30.0, movement="MOVING", state=DeviceState.NORMAL):
    return TelemetryEnvelope(device_id="FF_001", state=state, temperature=temp, movement=movement)


def test_window_keeps_last_capacity_items_in_order():
    window = RollingWindow(capacity=60)
    for i in range(75):
        window.push(i)
    assert len(window) == 60
    assert window.items() == list(range(15, 75))


def test_window_rejects_zero_capacity():
    with pytest.raises(ValueError):
        RollingWindow(capacity=0)


def test_temperature_stats():
    analytics = RollingAnalytics()
    for temp in (30.0, 40.0, 35.0):
        analytics.push(_envelope(temp=temp))
    assert analytics.temperature_stats() == {"min": 30.0, "avg": 35.0, "max": 40.0}


def test_invalid_temperature_is_not_averaged():
    analytics = RollingAnalytics()
    analytics.push(_envelope(temp=30.0))
    analytics.push(_envelope(temp=None))
    assert analytics.temperature_stats()["avg"] == 30.0
    assert len(analytics.movement) == 2


def test_empty_analytics():
    analytics = RollingAnalytics()
    assert analytics.temperature_stats() == {"min": 0.0, "avg": 0.0, "max": 0.0}
    assert analytics.moving_percentage() == 0.0
    assert set(analytics.state_breakdown().values()) == {0.0}


def test_moving_percentage_follows_window():
    analytics = RollingAnalytics(capacity=4)
    for movement in ("MOVING", "STILL (3s)", "STILL (6s)", "MOVING", "MOVING"):
        analytics.push(_envelope(movement=movement))
    # window now holds STILL, STILL, MOVING, MOVING
    assert analytics.moving_percentage() == 50.0


def test_state_breakdown_is_normalized():
    analytics = RollingAnalytics()
    for state in (DeviceState.NORMAL, DeviceState.NORMAL, DeviceState.WARNING, DeviceState.SOS):
        analytics.push(_envelope(state=state))
    breakdown = analytics.state_breakdown()
    assert breakdown == {"NORMAL": 50.0, "WARNING": 25.0, "EMERGENCY": 0.0, "SOS": 25.0}
    assert sum(breakdown.values()) == pytest.approx(100.0)


def test_missing_movement_is_not_counted():
    analytics = RollingAnalytics()
    analytics.push(_envelope(movement="STILL (4s)"))
    analytics.push(_envelope(movement=None))
    assert len(analytics.movement) == 1
    assert analytics.moving_percentage() == 0.0
    assert len(analytics.states) == 2
