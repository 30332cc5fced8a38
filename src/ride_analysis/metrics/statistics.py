"""
ISO 18738 / GB/T 24474 segment statistics (RMS, peak, pk-pk, 0-pk, A95).
"""

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from src.ride_analysis.core import (
    ACCEL_AXES,
    AxisIsoStats,
    AxisStats,
    ElevatorBoundaries,
    IsoStats,
    RideSignal,
)

A95_WINDOW_S = 1.0
A95_PERCENTILE = 0.95


def a95(values: np.ndarray, sample_rate: float, window_s: float = A95_WINDOW_S) -> Optional[float]:
    """
    95th percentile (nearest rank) of the pk-pk values of consecutive
    `window_s` sub-windows. Incomplete trailing windows are ignored.
    """
    width = int(round(window_s * sample_rate))
    if width <= 0:
        return None
    n_windows = len(values) // width
    if n_windows == 0:
        return None

    blocks = np.asarray(values[: n_windows * width], dtype=float).reshape(n_windows, width)
    pk_pk = np.sort(blocks.max(axis=1) - blocks.min(axis=1))
    rank = math.ceil(A95_PERCENTILE * n_windows) - 1
    return float(pk_pk[rank])


def compute_axis_stats(
    sig: RideSignal,
    axis: str,
    start: Optional[float] = None,
    end: Optional[float] = None,
    window_s: float = A95_WINDOW_S,
) -> AxisStats:
    """Statistics of one channel over the closed time interval [start, end]."""
    time = sig.time
    mask = np.ones(len(sig), dtype=bool)
    if start is not None:
        mask &= time >= start
    if end is not None:
        mask &= time <= end

    idx = np.flatnonzero(mask)
    if len(idx) == 0:
        return AxisStats.empty()

    x = sig.channel(axis)[idx]
    t = time[idx]

    i_max = int(np.argmax(x))
    i_min = int(np.argmin(x))
    i_abs = int(np.argmax(np.abs(x)))
    peak = float(abs(x[i_abs]))

    return AxisStats(
        rms=float(np.sqrt(np.mean(x**2))),
        peak_val=peak,
        pk_pk=float(x[i_max] - x[i_min]),
        zero_pk=peak,
        a95=a95(x, sig.sample_rate, window_s),
        n_samples=len(x),
        max_pk_pk_pair=((float(t[i_max]), float(x[i_max])), (float(t[i_min]), float(x[i_min]))),
        max_0_pk_point=(float(t[i_abs]), float(x[i_abs])),
    )


def compute_iso_stats(
    sig: RideSignal, bounds: ElevatorBoundaries, window_s: float = A95_WINDOW_S
) -> IsoStats:
    """
    const_vel over [t1, t2] for every axis, global over [t0, t3] for z.
    Without valid boundaries the const_vel figures are omitted and the z
    global figures fall back to the full recording.
    """

    def axis_task(axis: str) -> AxisIsoStats:
        if not bounds.is_valid:
            glob = compute_axis_stats(sig, axis, window_s=window_s) if axis == "az" else None
            return AxisIsoStats(const_vel=None, global_=glob)

        const_vel = compute_axis_stats(sig, axis, bounds.t1, bounds.t2, window_s)
        glob = compute_axis_stats(sig, axis, bounds.t0, bounds.t3, window_s) if axis == "az" else None
        return AxisIsoStats(const_vel=const_vel, global_=glob)

    with ThreadPoolExecutor(max_workers=len(ACCEL_AXES)) as pool:
        futures = {axis: pool.submit(axis_task, axis) for axis in ACCEL_AXES}
        per_axis = {axis: f.result() for axis, f in futures.items()}

    return IsoStats(
        x=per_axis["ax"],
        y=per_axis["ay"],
        z=per_axis["az"],
        global_window="t0-t3" if bounds.is_valid else "full_recording",
    )
