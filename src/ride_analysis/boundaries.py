"""
Ride-phase boundary detection (ISO 18738 t0..t3) from the vertical velocity profile.

    t0  motion start            |v| rises above the start threshold and stays there
    t1  constant velocity entry first sustained flat run inside the plateau band
    t2  constant velocity exit  end of the last sustained flat run before the car first stops
    t3  motion stop             |v| falls back below the start threshold and stays there
"""

from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from src.ride_analysis.core import ElevatorBoundaries, RideSignal

MIN_PEAK_VELOCITY = 0.05  # m/s, below this there is no ride to analyze
START_FRACTION = 0.05  # motion threshold as a fraction of peak |v|
START_DWELL_S = 0.2
PLATEAU_TOLERANCE = 0.05  # plateau band: |v| >= (1 - tol) * peak |v|
FLATNESS_FRACTION = 0.1  # smoothed |dv/dt| limit, fraction of its maximum
SLOPE_SMOOTHING_S = 0.5
MIN_PLATEAU_S = 1.0


def _runs(mask: np.ndarray) -> List[Tuple[int, int]]:
    """[start, stop) index pairs of consecutive True values."""
    padded = np.concatenate(([0], mask.astype(np.int8), [0]))
    edges = np.flatnonzero(np.diff(padded))
    return list(zip(edges[0::2].tolist(), edges[1::2].tolist()))


def _moving_average(data: np.ndarray, width: int) -> np.ndarray:
    if width <= 1:
        return data
    kernel = np.ones(width) / width
    return np.convolve(data, kernel, mode="same")


class BoundaryDetector:
    def __init__(
        self,
        start_fraction: float = START_FRACTION,
        start_dwell_s: float = START_DWELL_S,
        plateau_tolerance: float = PLATEAU_TOLERANCE,
        flatness_fraction: float = FLATNESS_FRACTION,
        slope_smoothing_s: float = SLOPE_SMOOTHING_S,
        min_plateau_s: float = MIN_PLATEAU_S,
        min_peak_velocity: float = MIN_PEAK_VELOCITY,
    ):
        self.start_fraction = start_fraction
        self.start_dwell_s = start_dwell_s
        self.plateau_tolerance = plateau_tolerance
        self.flatness_fraction = flatness_fraction
        self.slope_smoothing_s = slope_smoothing_s
        self.min_plateau_s = min_plateau_s
        self.min_peak_velocity = min_peak_velocity

    def detect(self, sig: RideSignal) -> ElevatorBoundaries:
        n = len(sig)
        if n < 3:
            return self._invalid(sig, "recording too short")

        fs = sig.sample_rate
        speed = np.abs(sig.vz)
        peak = float(np.max(speed))
        if peak < self.min_peak_velocity:
            return self._invalid(sig, f"peak velocity {peak:.3f} m/s below {self.min_peak_velocity} m/s")

        # 1. Plateau: inside the velocity band and flat
        slope = _moving_average(np.gradient(sig.vz, sig.dt), int(self.slope_smoothing_s * fs))
        abs_slope = np.abs(slope)
        in_band = speed >= (1.0 - self.plateau_tolerance) * peak
        flat = abs_slope <= self.flatness_fraction * float(np.max(abs_slope))

        min_plateau = max(1, int(round(self.min_plateau_s * fs)))
        plateaus = [(s, e) for s, e in _runs(in_band & flat) if e - s >= min_plateau]
        if not plateaus:
            return self._invalid(sig, "no constant-velocity plateau found")

        # 2. Motion start / stop against the start threshold
        threshold = self.start_fraction * peak
        dwell = max(1, int(round(self.start_dwell_s * fs)))
        moving = speed > threshold

        # t1..t2 stay inside the trip that owns the first plateau
        idx_t1 = plateaus[0][0]
        idx_stop = self._first_sustained(~moving, idx_t1, n, dwell)
        trip_end = n if idx_stop is None else idx_stop
        same_trip = [(s, e) for s, e in plateaus if s < trip_end]
        if len(same_trip) < len(plateaus):
            logger.info(f"Ignoring {len(plateaus) - len(same_trip)} plateau(s) after the car first stops")
        idx_t2 = min(same_trip[-1][1], trip_end) - 1

        idx_t0 = self._first_sustained(moving, 0, idx_t1 + 1, dwell)
        if idx_t0 is None:
            idx_t0 = 0

        idx_t3 = idx_stop
        if idx_t3 is None:
            logger.warning("Recording ends before the car stops; t3 set to end of record")
            idx_t3 = n - 1

        t = sig.time
        return ElevatorBoundaries(
            t0=float(t[idx_t0]),
            t1=float(t[idx_t1]),
            t2=float(t[idx_t2]),
            t3=float(t[idx_t3]),
            is_valid=True,
        )

    @staticmethod
    def _first_sustained(mask: np.ndarray, lo: int, hi: int, dwell: int) -> Optional[int]:
        """
        First run start in [lo, hi) that stays True for `dwell` samples.
        A run cut short by the end of the record still counts.
        """
        n = len(mask)
        for start, stop in _runs(mask[lo:]):
            start += lo
            stop += lo
            if start >= hi:
                break
            if stop - start >= dwell or stop == n:
                return start
        return None

    @staticmethod
    def _invalid(sig: RideSignal, reason: str) -> ElevatorBoundaries:
        logger.info(f"Boundaries invalid: {reason}")
        return ElevatorBoundaries(t0=0.0, t1=0.0, t2=0.0, t3=sig.max_time, is_valid=False)


def detect_boundaries(sig: RideSignal) -> ElevatorBoundaries:
    return BoundaryDetector().detect(sig)
