"""
Theoretical excitation frequencies of the traction machine.
Independent of measured data; overlaid on the measured spectrum at presentation time.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

import numpy as np
from scipy.signal import find_peaks

from machine_data.catalog import MachineSpec
from src.ride_analysis.core import FFTResult

RopeType = Literal["normal", "sflex"]

# rope lay constant A
ROPE_LAY_FACTOR = {"normal": 6.5, "sflex": 7.3}


@dataclass(frozen=True)
class TheoreticalFreqs:
    f1: float  # rope strand meshing
    f2: float  # 2:1 return sheave meshing
    f3: float  # sheave rotation
    fs: float  # torque ripple (slots)
    f1elec: float  # motor electrical frequency
    f2elec: float
    f6elec: float
    roping: int

    def as_dict(self) -> Dict[str, float]:
        return {
            "f1": self.f1,
            "f2": self.f2,
            "f3": self.f3,
            "fs": self.fs,
            "f1elec": self.f1elec,
            "f2elec": self.f2elec,
            "f6elec": self.f6elec,
        }

    def match_lines(self) -> Dict[str, float]:
        """Lines a measured peak can be attributed to; f2 exists only with 2:1 roping."""
        lines = self.as_dict()
        if self.roping != 2:
            del lines["f2"]
        return lines


@dataclass(frozen=True)
class PeakMatch:
    frequency: float
    magnitude: float
    source: Optional[str]  # name of the nearest theoretical line, if any
    source_frequency: Optional[float]


def theoretical_freqs(spec: MachineSpec, rated_speed: float, rope_type: RopeType = "normal") -> TheoreticalFreqs:
    """
    :param rated_speed: rated car speed (m/s)
    """
    if rated_speed <= 0:
        raise ValueError(f"Rated speed must be positive, got {rated_speed}")
    if rope_type not in ROPE_LAY_FACTOR:
        raise ValueError(f"Unknown rope type '{rope_type}'")

    a = ROPE_LAY_FACTOR[rope_type]
    rope_speed = rated_speed * spec.roping

    f3 = rope_speed / (math.pi * spec.sheave_diameter_m)
    f1 = rope_speed / (spec.rope_diameter_m * a)
    f1elec = f3 * spec.poles / 2.0

    return TheoreticalFreqs(
        f1=f1,
        f2=f1 / 2.0,  # only meaningful for 2:1 roping
        f3=f3,
        fs=f3 * spec.slots,
        f1elec=f1elec,
        f2elec=2.0 * f1elec,
        f6elec=6.0 * f1elec,
        roping=spec.roping,
    )


def match_theoretical_peaks(
    fft: FFTResult,
    freqs: TheoreticalFreqs,
    tolerance_hz: Optional[float] = None,
    max_peaks: int = 5,
) -> List[PeakMatch]:
    """
    Strongest spectral peaks (DC excluded), each labelled with the nearest
    theoretical line when it lies within `tolerance_hz` (default: 2 bins).
    """
    if len(fft) < 3:
        return []
    if tolerance_hz is None:
        tolerance_hz = 2.0 * fft.resolution

    mags = fft.magnitude[1:]
    idx, _ = find_peaks(mags)
    idx = idx[np.argsort(mags[idx])[::-1]][:max_peaks] + 1

    lines = freqs.match_lines()
    matches = []
    for k in idx:
        f = float(fft.frequency[k])
        name, line = min(lines.items(), key=lambda item: abs(item[1] - f))
        if abs(line - f) > tolerance_hz:
            name, line = None, None
        matches.append(PeakMatch(frequency=f, magnitude=float(fft.magnitude[k]), source=name, source_frequency=line))
    return matches
