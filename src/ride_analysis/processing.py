"""
Signal processing engine for elevator ride recordings.
Butterworth band shaping (zero-phase), Kalman smoothing and kinematic integration.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
from loguru import logger
from scipy import integrate, signal

from src.ride_analysis.core import (
    ACCEL_AXES,
    FilterConfig,
    FilterReport,
    RideRecording,
    RideSignal,
)

BUTTERWORTH_Q = 0.707
GAL_TO_MPS2 = 0.01
QUIET_WINDOW_S = 0.5  # longest rest window used at each end of a recording
MOTION_SMOOTHING_S = 0.1
MOTION_THRESHOLD_GAL = 3.0  # short-window mean departure that marks motion
DEFAULT_KALMAN_Q = 0.01
DEFAULT_KALMAN_R = 1.0


@dataclass(frozen=True)
class FilterResult:
    recording: RideRecording
    report: FilterReport


class SignalProcessor:
    """Filtering and integration, all static and side-effect free."""

    @staticmethod
    def process(recording: RideRecording, config: FilterConfig) -> Tuple[RideSignal, FilterReport]:
        """
        Raw Data -> Filtering -> Integration

        :return: processed signal and the report of which filter stages ran.
        """
        # 1. Filtering (only if enabled)
        if config.enabled:
            result = SignalProcessor.apply_filters(recording, config)
            filtered, report = result.recording, result.report
        else:
            filtered, report = recording, FilterReport(enabled=False)

        # 2. Integration (az -> vz -> sz)
        vz, sz = SignalProcessor.integrate(filtered.az, filtered.sample_rate)

        return (
            RideSignal(
                time=filtered.time,
                ax=filtered.ax,
                ay=filtered.ay,
                az=filtered.az,
                vz=vz,
                sz=sz,
                sample_rate=filtered.sample_rate,
            ),
            report,
        )

    @staticmethod
    def biquad_coefficients(kind: str, cutoff: float, fs: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        2nd order Butterworth section (RBJ cookbook, bilinear transform).
        Returns (b, a) normalized so that a[0] == 1.
        """
        omega = 2.0 * np.pi * cutoff / fs
        sn = np.sin(omega)
        cs = np.cos(omega)
        alpha = sn / (2.0 * BUTTERWORTH_Q)
        a0 = 1.0 + alpha

        if kind == "lowpass":
            b = np.array([(1.0 - cs) / 2.0, 1.0 - cs, (1.0 - cs) / 2.0])
        elif kind == "highpass":
            b = np.array([(1.0 + cs) / 2.0, -(1.0 + cs), (1.0 + cs) / 2.0])
        else:
            raise ValueError(f"Unknown biquad type: {kind}")

        a = np.array([a0, -2.0 * cs, 1.0 - alpha])
        return b / a0, a / a0

    @staticmethod
    def zero_phase(data: np.ndarray, b: np.ndarray, a: np.ndarray) -> np.ndarray:
        """Forward-backward application (filtfilt): no phase shift, squared magnitude."""
        if len(data) <= 3 * max(len(a), len(b)):
            # too short for the edge padding; plain forward/backward passes
            forward = signal.lfilter(b, a, data)
            return signal.lfilter(b, a, forward[::-1])[::-1]
        return signal.filtfilt(b, a, data)

    @staticmethod
    def kalman_1d(data: np.ndarray, q: float, r: float) -> np.ndarray:
        """
        Scalar Kalman smoother with a constant-value process model.
        Larger Q follows the data faster, larger R smooths harder.
        """
        n = len(data)
        if n == 0:
            return np.zeros(0)

        result = np.empty(n)
        x = float(data[0])
        p = 1.0
        for i in range(n):
            # 1. Prediction (state is assumed constant)
            p = p + q
            # 2. Update
            k = p / (p + r)
            x = x + k * (data[i] - x)
            p = (1.0 - k) * p
            result[i] = x
        return result

    @staticmethod
    def apply_filters(recording: RideRecording, config: FilterConfig) -> FilterResult:
        fs = recording.sample_rate
        nyq = 0.5 * fs
        skipped: Dict[str, str] = {}
        target = ACCEL_AXES if config.target_axes == "all" else ("az",)

        # 1. Band design; invalid cutoffs skip the stage instead of failing
        stages = []
        if config.high_pass_freq == 0:
            pass  # 0 is the "off" setting
        elif config.high_pass_freq < 0:
            skipped["high_pass"] = f"cutoff {config.high_pass_freq} Hz <= 0"
        elif config.high_pass_freq >= nyq:
            skipped["high_pass"] = f"cutoff {config.high_pass_freq} Hz >= Nyquist {nyq} Hz"
        else:
            stages.append(("high_pass", SignalProcessor.biquad_coefficients("highpass", config.high_pass_freq, fs)))

        if config.low_pass_freq is None:
            pass  # stage not requested
        elif config.low_pass_freq <= 0:
            skipped["low_pass"] = f"cutoff {config.low_pass_freq} Hz <= 0"
        elif config.low_pass_freq >= nyq:
            skipped["low_pass"] = f"cutoff {config.low_pass_freq} Hz >= Nyquist {nyq} Hz"
        else:
            stages.append(("low_pass", SignalProcessor.biquad_coefficients("lowpass", config.low_pass_freq, fs)))

        for stage, reason in skipped.items():
            logger.warning(f"Filter stage '{stage}' skipped: {reason}")

        q = config.kalman_q or DEFAULT_KALMAN_Q
        r = config.kalman_r or DEFAULT_KALMAN_R

        def run_axis(data: np.ndarray) -> np.ndarray:
            out = np.asarray(data, dtype=float)
            for _, (b, a) in stages:
                out = SignalProcessor.zero_phase(out, b, a)
            if config.enable_kalman:
                out = SignalProcessor.kalman_1d(out, q, r)
            return out

        # 2. One task per axis; axes never share buffers
        channels = {name: getattr(recording, name) for name in ACCEL_AXES}
        if len(recording):
            with ThreadPoolExecutor(max_workers=len(target)) as pool:
                futures = {name: pool.submit(run_axis, channels[name]) for name in target}
                for name, future in futures.items():
                    channels[name] = future.result()

        names = [name for name, _ in stages]
        report = FilterReport(
            enabled=True,
            high_pass_applied="high_pass" in names,
            low_pass_applied="low_pass" in names,
            kalman_applied=config.enable_kalman,
            filtered_axes=tuple(target),
            skipped=skipped,
        )
        filtered = RideRecording(channels["ax"], channels["ay"], channels["az"], fs)
        return FilterResult(recording=filtered, report=report)

    @staticmethod
    def rest_width(accel: np.ndarray, fs: float) -> int:
        """
        Number of leading samples recorded before the car starts moving,
        capped at QUIET_WINDOW_S (and a quarter of the record).
        Motion starts at the first short-window mean that leaves the
        initial level by more than MOTION_THRESHOLD_GAL.
        """
        n = len(accel)
        cap = max(1, min(int(QUIET_WINDOW_S * fs), n // 4))
        w = max(1, min(int(MOTION_SMOOTHING_S * fs), cap))
        level = float(np.mean(accel[:w]))

        # window i covers [i, i + w)
        csum = np.concatenate(([0.0], np.cumsum(accel, dtype=float)))
        means = (csum[w:] - csum[:-w]) / w
        off = np.flatnonzero(np.abs(means - level) > MOTION_THRESHOLD_GAL)
        if len(off) == 0:
            return cap
        return int(min(max(off[0], w), cap))

    @staticmethod
    def quiet_bias(accel: np.ndarray, fs: float) -> np.ndarray:
        """
        Sensor bias estimated from the rest periods at both ends of the ride.
        Each rest window stops where motion starts, so a short lead-in never
        pulls acceleration into the estimate. The bias is interpolated
        linearly between the head and tail window centres.
        """
        n = len(accel)
        head_w = SignalProcessor.rest_width(accel, fs)
        tail_w = SignalProcessor.rest_width(accel[::-1], fs)
        head = float(np.mean(accel[:head_w]))
        tail = float(np.mean(accel[-tail_w:]))
        centres = [(head_w - 1) / 2.0, n - 1 - (tail_w - 1) / 2.0]
        return np.interp(np.arange(n), centres, [head, tail])

    @staticmethod
    def integrate(
        az_gal: np.ndarray, fs: float, detrend: bool = True
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vertical acceleration (Gal) -> velocity (m/s) -> displacement (m).
        Trapezoidal rule; both series start at 0.
        """
        az = np.asarray(az_gal, dtype=float)
        if len(az) == 0:
            return np.zeros(0), np.zeros(0)

        # [Bias Removal] rest periods define the zero line
        if detrend:
            az = az - SignalProcessor.quiet_bias(az, fs)

        # Gal -> m/s^2
        accel_mps2 = az * GAL_TO_MPS2

        velocity = integrate.cumulative_trapezoid(accel_mps2, dx=1.0 / fs, initial=0)
        displacement = integrate.cumulative_trapezoid(velocity, dx=1.0 / fs, initial=0)
        return velocity, displacement
