"""
Peak-preserving downsampling of processed series for display.
"""

import numpy as np

from src.ride_analysis.core import SIGNAL_CHANNELS, RideSignal

DEFAULT_MAX_POINTS = 8000


def extrema_indices(sig: RideSignal, max_points: int = DEFAULT_MAX_POINTS) -> np.ndarray:
    """
    Sorted sample indices that keep every channel's min and max per bucket.
    Never more than max(max_points, 2 * channel count) indices.
    """
    n = len(sig)
    if n <= max_points:
        return np.arange(n)

    n_buckets = max(1, max_points // (2 * len(SIGNAL_CHANNELS)))
    edges = np.linspace(0, n, n_buckets + 1).astype(int)

    keep = set()
    for lo, hi in zip(edges[:-1], edges[1:]):
        if hi <= lo:
            continue
        for name in SIGNAL_CHANNELS:
            chunk = sig.channel(name)[lo:hi]
            keep.add(lo + int(np.argmin(chunk)))
            keep.add(lo + int(np.argmax(chunk)))
    return np.array(sorted(keep), dtype=int)


def downsample(sig: RideSignal, max_points: int = DEFAULT_MAX_POINTS) -> RideSignal:
    if len(sig) <= max_points:
        return sig
    return sig.take(extrema_indices(sig, max_points))
