import numpy as np
import pytest

from src.ride_analysis.core import FilterConfig, RideRecording
from src.ride_analysis.processing import SignalProcessor
from src.ride_analysis.synthetic import trapezoid_ride


def sine_recording(freq, fs=200.0, duration=10.0, amplitude=10.0):
    t = np.arange(int(fs * duration)) / fs
    x = amplitude * np.sin(2 * np.pi * freq * t)
    return RideRecording(x, x, x, fs)


def lag_of_max_correlation(x, y, max_lag=20):
    n = len(x)
    mid = slice(n // 4, 3 * n // 4)
    lags = range(-max_lag, max_lag + 1)
    scores = [np.dot(x[mid], np.roll(y, -lag)[mid]) for lag in lags]
    return list(lags)[int(np.argmax(scores))]


def test_biquad_dc_gain():
    b, a = SignalProcessor.biquad_coefficients("lowpass", 10.0, 200.0)
    assert a[0] == pytest.approx(1.0)
    assert np.sum(b) / np.sum(a) == pytest.approx(1.0)

    b, a = SignalProcessor.biquad_coefficients("highpass", 1.0, 200.0)
    assert np.sum(b) == pytest.approx(0.0, abs=1e-12)


def test_biquad_rejects_unknown_type():
    with pytest.raises(ValueError):
        SignalProcessor.biquad_coefficients("bandpass", 10.0, 200.0)


@pytest.mark.parametrize(
    "config",
    [
        FilterConfig(enabled=True, low_pass_freq=10.0),
        FilterConfig(enabled=True, high_pass_freq=0.5, low_pass_freq=100.0),
    ],
)
def test_zero_phase_introduces_no_lag(config):
    rec = sine_recording(2.0)
    result = SignalProcessor.apply_filters(rec, config)
    assert lag_of_max_correlation(rec.az, result.recording.az) == 0


def test_causal_pass_would_lag():
    rec = sine_recording(2.0)
    b, a = SignalProcessor.biquad_coefficients("lowpass", 10.0, rec.sample_rate)
    from scipy.signal import lfilter

    assert lag_of_max_correlation(rec.az, lfilter(b, a, rec.az)) > 0


def test_low_pass_attenuates_out_of_band():
    fs = 200.0
    t = np.arange(2000) / fs
    slow = np.sin(2 * np.pi * 1.0 * t)
    fast = np.sin(2 * np.pi * 40.0 * t)
    rec = RideRecording(slow, slow, slow + fast, fs)

    result = SignalProcessor.apply_filters(rec, FilterConfig(enabled=True, low_pass_freq=5.0))
    residual = result.recording.az - slow
    assert np.max(np.abs(residual[200:-200])) < 0.05


def test_nyquist_low_pass_is_skipped_and_reported():
    rec = sine_recording(2.0, fs=200.0)
    result = SignalProcessor.apply_filters(rec, FilterConfig(enabled=True, low_pass_freq=100.0))

    assert not result.report.low_pass_applied
    assert "low_pass" in result.report.skipped
    assert result.report.degraded
    np.testing.assert_array_equal(result.recording.az, rec.az)


def test_negative_high_pass_is_skipped_and_reported():
    rec = sine_recording(2.0)
    result = SignalProcessor.apply_filters(rec, FilterConfig(enabled=True, high_pass_freq=-1.0, low_pass_freq=20.0))

    assert not result.report.high_pass_applied
    assert result.report.low_pass_applied
    assert "high_pass" in result.report.skipped


def test_zero_high_pass_is_off_not_degraded():
    rec = sine_recording(2.0)
    result = SignalProcessor.apply_filters(rec, FilterConfig(enabled=True, high_pass_freq=0.0, low_pass_freq=20.0))
    assert not result.report.degraded


def test_z_only_leaves_horizontal_axes_untouched():
    rec = sine_recording(40.0)
    config = FilterConfig(enabled=True, low_pass_freq=5.0, target_axes="z", enable_kalman=True)
    result = SignalProcessor.apply_filters(rec, config)

    np.testing.assert_array_equal(result.recording.ax, rec.ax)
    np.testing.assert_array_equal(result.recording.ay, rec.ay)
    assert not np.allclose(result.recording.az, rec.az)
    assert result.report.filtered_axes == ("az",)


def test_disabled_config_passes_through():
    rec = sine_recording(2.0)
    sig, report = SignalProcessor.process(rec, FilterConfig(enabled=False, low_pass_freq=1.0))

    assert not report.enabled
    np.testing.assert_array_equal(sig.az, rec.az)


def test_filter_output_is_new_array():
    rec = sine_recording(2.0)
    result = SignalProcessor.apply_filters(rec, FilterConfig(enabled=True, low_pass_freq=10.0))
    assert result.recording.az is not rec.az
    assert not result.recording.az.flags.writeable


@pytest.mark.parametrize("q", [0.001, 0.01, 0.5])
@pytest.mark.parametrize("r", [0.1, 1.0, 10.0])
def test_kalman_converges_to_constant(q, r):
    data = np.concatenate(([0.0], np.full(2000, 5.0)))
    out = SignalProcessor.kalman_1d(data, q, r)
    assert out[0] == 0.0
    assert out[-1] == pytest.approx(5.0, abs=1e-6)


def test_kalman_larger_r_smooths_more():
    rng = np.random.default_rng(1)
    data = rng.normal(0.0, 1.0, 5000)
    loose = SignalProcessor.kalman_1d(data, 0.01, 0.1)
    tight = SignalProcessor.kalman_1d(data, 0.01, 10.0)
    assert np.std(tight) < np.std(loose)


def test_kalman_empty():
    assert len(SignalProcessor.kalman_1d(np.zeros(0), 0.01, 1.0)) == 0


def test_integration_of_constant_acceleration():
    fs = 1000.0
    a_gal = 100.0  # 1 m/s^2
    T = 2.0
    az = np.full(int(T * fs) + 1, a_gal)

    vz, sz = SignalProcessor.integrate(az, fs, detrend=False)

    assert vz[0] == 0.0 and sz[0] == 0.0
    assert vz[-1] == pytest.approx(1.0 * T, rel=1e-6)
    assert sz[-1] == pytest.approx(1.0 * T**2 / 2, rel=1e-6)


def test_integration_removes_sensor_bias():
    rec = trapezoid_ride(sample_rate=200.0, accel_gal=50.0, ramp_s=2.0, cruise_s=6.0, rest_s=1.0, bias_gal=7.0)
    vz, sz = SignalProcessor.integrate(rec.az, rec.sample_rate)

    end_of_ramp = int(3.0 * rec.sample_rate)
    assert vz[end_of_ramp] == pytest.approx(1.0, abs=1e-6)
    assert vz[-1] == pytest.approx(0.0, abs=1e-6)
    assert sz[-1] == pytest.approx(8.0, abs=0.01)


def test_integration_without_detrend_drifts():
    rec = trapezoid_ride(bias_gal=7.0)
    vz, _ = SignalProcessor.integrate(rec.az, rec.sample_rate, detrend=False)
    assert vz[-1] > 0.5


def test_integration_removes_linear_drift():
    fs = 100.0
    n = 1000
    drift = np.linspace(2.0, 4.0, n)
    vz, _ = SignalProcessor.integrate(drift, fs)
    assert np.max(np.abs(vz)) < 1e-3


@pytest.mark.parametrize("rest_s", [0.1, 0.2, 0.3])
def test_short_lead_in_keeps_motion_out_of_bias(rest_s):
    rec = trapezoid_ride(rest_s=rest_s, bias_gal=7.0)
    vz, sz = SignalProcessor.integrate(rec.az, rec.sample_rate)

    assert np.max(np.abs(vz)) == pytest.approx(1.0, abs=1e-6)
    assert vz[-1] == pytest.approx(0.0, abs=1e-6)
    assert sz[-1] == pytest.approx(8.0, abs=0.01)


def test_rest_width_stops_at_motion_start():
    fs = 200.0
    az = np.concatenate([np.zeros(40), np.full(400, 50.0), np.zeros(400)])
    # motion at sample 40 is first seen by the 20-sample window starting at 22
    assert SignalProcessor.rest_width(az, fs) == 22
    assert SignalProcessor.rest_width(az[::-1], fs) == 100


def test_unset_low_pass_is_off_not_degraded():
    rec = sine_recording(2.0)
    result = SignalProcessor.apply_filters(rec, FilterConfig(enabled=True, high_pass_freq=0.5, low_pass_freq=None))

    assert result.report.high_pass_applied
    assert not result.report.low_pass_applied
    assert not result.report.degraded


def test_cli_filter_options_without_low_pass():
    from argparse import Namespace

    from scripts.run_ride_analysis import build_filter_config

    args = Namespace(
        iso=False,
        high_pass=0.5,
        low_pass=None,
        kalman=True,
        z_only=False,
        kalman_q=0.01,
        kalman_r=1.0,
        sample_rate=1600.0,
    )
    config = build_filter_config(args)
    report = SignalProcessor.apply_filters(sine_recording(2.0, fs=1600.0, duration=2.0), config).report

    assert config.low_pass_freq is None
    assert report.kalman_applied
    assert not report.degraded
