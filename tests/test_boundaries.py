import numpy as np
import pytest

from src.ride_analysis.boundaries import BoundaryDetector, detect_boundaries, _runs
from src.ride_analysis.core import FilterConfig, RideRecording
from src.ride_analysis.pipeline import recompute
from src.ride_analysis.processing import SignalProcessor
from src.ride_analysis.synthetic import demo_ride, trapezoid_ride


def process(rec, config=None):
    sig, _ = SignalProcessor.process(rec, config or FilterConfig.passthrough())
    return sig


def test_runs_helper():
    mask = np.array([0, 1, 1, 0, 0, 1, 1, 1], dtype=bool)
    assert _runs(mask) == [(1, 3), (5, 8)]
    assert _runs(np.zeros(4, dtype=bool)) == []


def test_trapezoid_ride_boundaries():
    # rest 1 s | +50 Gal 2 s | cruise 6 s | -50 Gal 2 s | rest 1 s  -> peak 1 m/s
    sig = process(trapezoid_ride(sample_rate=200.0))
    b = detect_boundaries(sig)

    assert b.is_valid
    assert b.t0 == pytest.approx(1.1, abs=0.05)
    assert 3.0 <= b.t1 <= 3.4
    assert 8.6 <= b.t2 <= 9.0
    assert b.t3 == pytest.approx(10.9, abs=0.05)


def test_boundaries_are_ordered():
    for rec in (trapezoid_ride(), trapezoid_ride(accel_gal=80.0, cruise_s=3.0), demo_ride(sample_rate=400.0)):
        sig = process(rec)
        b = detect_boundaries(sig)
        assert b.is_valid
        assert 0.0 <= b.t0 <= b.t1 <= b.t2 <= b.t3 <= sig.max_time


def test_downward_ride_is_detected():
    rec = trapezoid_ride()
    down = RideRecording(rec.ax, rec.ay, -rec.az, rec.sample_rate)
    b = detect_boundaries(process(down))
    assert b.is_valid
    assert 3.0 <= b.t1 <= 3.4


def test_demo_ride_with_vibration():
    b = detect_boundaries(process(demo_ride(sample_rate=400.0)))
    assert b.is_valid
    assert 1.0 <= b.t0 <= 1.6
    assert 3.2 <= b.t1 <= 4.0
    assert 10.0 <= b.t2 <= 10.8
    assert 12.4 <= b.t3 <= 13.0


def test_short_jog_has_no_plateau():
    sig = process(trapezoid_ride(cruise_s=0.3))
    b = detect_boundaries(sig)
    assert not b.is_valid
    assert b.t3 == pytest.approx(sig.max_time)


def test_noise_only_recording_is_invalid():
    rng = np.random.default_rng(3)
    fs = 200.0
    noise = rng.normal(0.0, 1.0, 2000)
    b = detect_boundaries(process(RideRecording(noise, noise, noise, fs)))
    assert not b.is_valid


def test_ride_cut_during_cruise_ends_at_record_end():
    fs = 200.0
    az = np.concatenate([np.zeros(200), np.full(400, 50.0), np.zeros(800)])
    zeros = np.zeros_like(az)
    sig = process(RideRecording(zeros, zeros, az, fs))
    b = detect_boundaries(sig)

    assert b.is_valid
    assert b.t3 == pytest.approx(sig.max_time)
    assert b.t2 <= b.t3


def test_single_sample_spike_does_not_start_motion():
    rec = trapezoid_ride()
    az = np.array(rec.az)
    # +/- pulse pair gives a 2-sample velocity blip well above threshold at t = 0.5 s
    az[100] += 4000.0
    az[101] -= 4000.0
    sig = process(RideRecording(rec.ax, rec.ay, az, rec.sample_rate))
    b = detect_boundaries(sig)
    assert b.is_valid
    assert b.t0 > 1.0


def test_stricter_plateau_dwell_rejects_ride():
    sig = process(trapezoid_ride(cruise_s=2.0))
    assert BoundaryDetector().detect(sig).is_valid
    assert not BoundaryDetector(min_plateau_s=3.0).detect(sig).is_valid


def test_second_trip_does_not_stretch_constant_velocity_window():
    # up trip, 3 s stop, down trip
    trip = trapezoid_ride()
    az = np.concatenate([trip.az, np.zeros(600), -trip.az])
    zeros = np.zeros_like(az)
    state = recompute(RideRecording(zeros, zeros, az, trip.sample_rate))
    b = state.boundaries

    assert b.is_valid
    assert 3.0 <= b.t1 <= 3.4
    assert 8.6 <= b.t2 <= 9.0
    assert b.t3 == pytest.approx(10.9, abs=0.05)
    assert state.iso_stats.z.const_vel.peak_val == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("rest_s", [0.1, 0.2, 0.3])
def test_short_lead_in_ride_is_valid(rest_s):
    state = recompute(trapezoid_ride(rest_s=rest_s))
    assert state.boundaries.is_valid
    assert np.max(np.abs(state.signal.vz)) == pytest.approx(1.0, abs=0.01)
