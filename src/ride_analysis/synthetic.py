"""
Synthetic elevator rides for demos and calibration.
"""

import numpy as np

from src.ride_analysis.core import RideRecording


def trapezoid_ride(
    sample_rate: float = 200.0,
    accel_gal: float = 50.0,
    ramp_s: float = 2.0,
    cruise_s: float = 6.0,
    rest_s: float = 1.0,
    bias_gal: float = 0.0,
) -> RideRecording:
    """
    Rest -> constant acceleration -> cruise -> constant deceleration -> rest.
    Velocity is a trapezoid peaking at accel_gal / 100 * ramp_s (m/s).
    """
    segments = [
        (rest_s, 0.0),
        (ramp_s, accel_gal),
        (cruise_s, 0.0),
        (ramp_s, -accel_gal),
        (rest_s, 0.0),
    ]
    az = np.concatenate([np.full(int(round(d * sample_rate)), a) for d, a in segments]) + bias_gal
    zeros = np.zeros_like(az)
    return RideRecording(zeros, zeros, az, sample_rate)


def demo_ride(
    sample_rate: float = 1600.0, duration_s: float = 14.0, rest_s: float = 1.0, seed: int = 0
) -> RideRecording:
    """
    Half-sine acceleration and deceleration (40 Gal, 2.5 s each) with a 15 Hz
    car vibration plus noise; horizontal axes carry 2 Hz / 3 Hz sway.
    """
    rng = np.random.default_rng(seed)
    n = int(sample_rate * duration_s)
    t = np.arange(n) / sample_rate
    ramp = 2.5
    decel_start = duration_s - rest_s - ramp

    base = np.zeros(n)
    accel = (t >= rest_s) & (t < rest_s + ramp)
    decel = (t >= decel_start) & (t < decel_start + ramp)
    base[accel] = 40.0 * np.sin(np.pi * (t[accel] - rest_s) / ramp)
    base[decel] = -40.0 * np.sin(np.pi * (t[decel] - decel_start) / ramp)

    vibration = (rng.random(n) - 0.5) * 5.0 + 3.0 * np.sin(2 * np.pi * 15.0 * t)
    ax = (rng.random(n) - 0.5) * 3.0 + 1.5 * np.sin(2 * np.pi * 2.0 * t)
    ay = (rng.random(n) - 0.5) * 3.0 + 1.2 * np.sin(2 * np.pi * 3.0 * t)

    return RideRecording(ax, ay, base + vibration, sample_rate)
