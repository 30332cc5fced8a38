"""
Spectral view of a ride window: single-sided amplitude spectrum and dominant frequency.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

import numpy as np

from src.ride_analysis.core import AxisStats, ElevatorBoundaries, FFTResult, RideSignal
from src.ride_analysis.metrics.statistics import compute_axis_stats

WindowMode = Literal["window", "const_vel"]


@dataclass(frozen=True)
class WindowAnalysis:
    axis: str
    mode: WindowMode  # mode actually used (const_vel falls back to window)
    start: float
    end: float
    fft: FFTResult
    dominant: Optional[Tuple[float, float]]
    stats: AxisStats


def next_pow2(n: int) -> int:
    return 1 if n <= 1 else 1 << (int(n) - 1).bit_length()


def compute_fft(values: np.ndarray, sample_rate: float) -> FFTResult:
    """
    Amplitude spectrum |X(k)| * 2 / N (DC bin |X(0)| / N) for k = 0..N/2.
    The segment is zero-padded to the next power of two and N is the padded length.
    """
    x = np.asarray(values, dtype=float)
    if len(x) == 0:
        return FFTResult.empty(sample_rate)

    n_fft = next_pow2(len(x))
    spectrum = np.abs(np.fft.rfft(x, n=n_fft))
    magnitude = spectrum * 2.0 / n_fft
    magnitude[0] = spectrum[0] / n_fft
    frequency = np.arange(len(magnitude)) * sample_rate / n_fft

    return FFTResult(frequency=frequency, magnitude=magnitude, sample_rate=sample_rate, n_fft=n_fft)


def dominant_frequency(result: FFTResult) -> Optional[Tuple[float, float]]:
    """(frequency, magnitude) of the strongest non-DC bin."""
    if len(result) < 2:
        return None
    k = int(np.argmax(result.magnitude[1:])) + 1
    return float(result.frequency[k]), float(result.magnitude[k])


def select_window(
    sig: RideSignal,
    bounds: Optional[ElevatorBoundaries],
    mode: WindowMode = "window",
    window_start: float = 0.0,
    window_size: float = 4.0,
) -> Tuple[RideSignal, WindowMode]:
    """
    Contiguous slice to transform. `const_vel` needs valid boundaries and
    otherwise falls back to the fixed window.
    """
    fs = sig.sample_rate
    if mode == "const_vel" and bounds is not None and bounds.is_valid:
        start_idx = max(0, int(np.floor(bounds.t1 * fs)))
        end_idx = min(len(sig), int(np.floor(bounds.t2 * fs)))
        return sig.slice(start_idx, end_idx), "const_vel"

    start_idx = max(0, int(np.floor(window_start * fs)))
    end_idx = int(np.floor((window_start + window_size) * fs))
    return sig.slice(start_idx, min(end_idx, len(sig))), "window"


def center_window(clicked_time: float, window_size: float, max_time: float) -> float:
    """Window start that centres the window on a clicked time, kept inside the record."""
    start = clicked_time - window_size / 2.0
    start = min(start, max_time - window_size)
    return max(start, 0.0)


def analyze_window(
    sig: RideSignal,
    bounds: Optional[ElevatorBoundaries],
    axis: str = "az",
    mode: WindowMode = "window",
    window_start: float = 0.0,
    window_size: float = 4.0,
) -> WindowAnalysis:
    segment, used_mode = select_window(sig, bounds, mode, window_start, window_size)
    fft = compute_fft(segment.channel(axis), sig.sample_rate)
    start = float(segment.time[0]) if len(segment) else window_start
    end = float(segment.time[-1]) if len(segment) else window_start
    return WindowAnalysis(
        axis=axis,
        mode=used_mode,
        start=start,
        end=end,
        fft=fft,
        dominant=dominant_frequency(fft),
        stats=compute_axis_stats(segment, axis),
    )
