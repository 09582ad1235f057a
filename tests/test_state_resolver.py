from device_state import DeviceState
from sos_latch import SosLatch
from state_resolver import MotionTimer, SensorSnapshot, StateResolver, resolve


def _still(t, **kwargs):
    return SensorSnapshot(timestamp=t, acc_deviation=0.01, **kwargs)


def _active_latch():
    latch = SosLatch()
    latch.register_edge(0.0)
    return latch


def test_normal_when_moving_and_cool():
    result = resolve(SensorSnapshot(timestamp=0.0, acc_deviation=0.4, temperature=25.0), MotionTimer(), SosLatch())
    assert result.state == DeviceState.NORMAL
    assert result.moving


def test_high_temperature_and_long_stillness_is_emergency():
    timer = MotionTimer(last_moved=0.0)
    result = resolve(_still(20.0, temperature=55.0), timer, SosLatch())
    assert result.state == DeviceState.EMERGENCY
    assert "HIGH TEMP" in result.causes
    assert "NO MOVEMENT" in result.causes


def test_sos_dominates_cool_moving_wearer():
    result = resolve(SensorSnapshot(timestamp=3.0, acc_deviation=0.5, temperature=20.0), MotionTimer(), _active_latch())
    assert result.state == DeviceState.SOS


def test_sos_still_updates_motion_timer():
    timer = MotionTimer(last_moved=0.0)
    resolve(SensorSnapshot(timestamp=7.0, acc_deviation=0.5), timer, _active_latch())
    assert timer.last_moved == 7.0


def test_sos_only_when_latch_active():
    timer = MotionTimer(last_moved=0.0)
    for temperature in (None, 20.0, 45.0, 60.0):
        for deviation in (None, 0.0, 0.5):
            snap = SensorSnapshot(timestamp=30.0, acc_deviation=deviation, temperature=temperature)
            assert resolve(snap, timer, SosLatch()).state != DeviceState.SOS
            assert resolve(snap, timer, _active_latch()).state == DeviceState.SOS


def test_invalid_temperature_while_moving_is_normal_with_env_error():
    result = resolve(SensorSnapshot(timestamp=1.0, acc_deviation=-0.3, temperature=None), MotionTimer(), SosLatch())
    assert result.state == DeviceState.NORMAL
    assert not result.health.environment_ok
    assert result.health.motion_ok


def test_temperature_at_or_above_critical_is_at_least_emergency():
    for temperature in (50.0, 50.1, 75.0):
        result = resolve(SensorSnapshot(timestamp=0.0, acc_deviation=0.5, temperature=temperature), MotionTimer(), SosLatch())
        assert result.state >= DeviceState.EMERGENCY


def test_temperature_warning_band():
    result = resolve(SensorSnapshot(timestamp=0.0, acc_deviation=0.5, temperature=42.0), MotionTimer(), SosLatch())
    assert result.state == DeviceState.WARNING


def test_stillness_windows():
    for elapsed, expected in ((4.9, DeviceState.NORMAL), (5.0, DeviceState.WARNING), (14.9, DeviceState.WARNING), (15.0, DeviceState.EMERGENCY)):
        timer = MotionTimer(last_moved=100.0)
        assert resolve(_still(100.0 + elapsed), timer, SosLatch()).state == expected


def test_stillness_never_lowers_temperature_severity():
    timer = MotionTimer(last_moved=0.0)
    result = resolve(_still(6.0, temperature=52.0), timer, SosLatch())
    assert result.state == DeviceState.EMERGENCY
    assert result.causes == ["HIGH TEMP"]


def test_movement_resets_timer_and_clears_stillness():
    timer = MotionTimer(last_moved=0.0)
    assert resolve(_still(16.0), timer, SosLatch()).state == DeviceState.EMERGENCY
    assert resolve(SensorSnapshot(timestamp=17.0, acc_deviation=-0.2), timer, SosLatch()).state == DeviceState.NORMAL
    assert timer.last_moved == 17.0
    assert resolve(_still(18.0), timer, SosLatch()).state == DeviceState.NORMAL


def test_invalid_motion_reading_contributes_nothing():
    timer = MotionTimer(last_moved=0.0)
    result = resolve(SensorSnapshot(timestamp=30.0, acc_deviation=None, temperature=25.0), timer, SosLatch())
    assert result.state == DeviceState.NORMAL
    assert not result.health.motion_ok
    assert timer.last_moved == 0.0


def test_first_snapshot_starts_the_stillness_clock():
    resolver = StateResolver()
    latch = SosLatch()
    assert resolver.evaluate(_still(1000.0), latch).state == DeviceState.NORMAL
    assert resolver.evaluate(_still(1006.0), latch).state == DeviceState.WARNING


def test_no_fix_is_not_a_sensor_failure():
    result = resolve(SensorSnapshot(timestamp=0.0, acc_deviation=0.5, temperature=25.0), MotionTimer(), SosLatch())
    assert not result.health.position_fix
    assert not result.health.sensor_failure
