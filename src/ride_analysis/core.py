"""
Core data structures for elevator ride analysis.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

ACCEL_AXES = ("ax", "ay", "az")
SIGNAL_CHANNELS = ("ax", "ay", "az", "vz", "sz")

# (time_s, value)
TimedValue = Tuple[float, float]


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class RideRecording:
    """
    Raw triaxial recording in Gals (cm/s^2).
    Time is never stored: it is always index / sample_rate.
    """

    ax: np.ndarray
    ay: np.ndarray
    az: np.ndarray
    sample_rate: float

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        lengths = {len(self.ax), len(self.ay), len(self.az)}
        if len(lengths) != 1:
            raise ValueError("ax, ay and az must have the same length")
        for name in ACCEL_AXES:
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    def __len__(self) -> int:
        return len(self.az)

    @property
    def time(self) -> np.ndarray:
        return np.arange(len(self)) / self.sample_rate

    @property
    def max_time(self) -> float:
        return (len(self) - 1) / self.sample_rate if len(self) else 0.0

    def with_sample_rate(self, sample_rate: float) -> "RideRecording":
        """Same samples, new time base."""
        return RideRecording(self.ax, self.ay, self.az, sample_rate)


@dataclass(frozen=True, eq=False)
class RideSignal:
    """
    Processed ride signal (one entry per sample).
    Everything downstream of the integrator reads from this object only.
    """

    time: np.ndarray  # s
    ax: np.ndarray  # Gal
    ay: np.ndarray  # Gal
    az: np.ndarray  # Gal
    vz: np.ndarray  # m/s
    sz: np.ndarray  # m
    sample_rate: float  # Hz

    def __post_init__(self):
        for name in ("time",) + SIGNAL_CHANNELS:
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    def __len__(self) -> int:
        return len(self.time)

    @property
    def dt(self) -> float:
        """Time step (seconds)"""
        return 1.0 / self.sample_rate

    @property
    def max_time(self) -> float:
        return float(self.time[-1]) if len(self) else 0.0

    def channel(self, name: str) -> np.ndarray:
        if name not in SIGNAL_CHANNELS:
            raise KeyError(f"Unknown channel '{name}'")
        return getattr(self, name)

    def slice(self, start_idx: int, end_idx: int) -> "RideSignal":
        """Contiguous sub-signal [start_idx, end_idx)."""
        sl = slice(max(0, start_idx), max(0, min(end_idx, len(self))))
        return RideSignal(
            time=self.time[sl],
            ax=self.ax[sl],
            ay=self.ay[sl],
            az=self.az[sl],
            vz=self.vz[sl],
            sz=self.sz[sl],
            sample_rate=self.sample_rate,
        )

    def take(self, indices: np.ndarray) -> "RideSignal":
        return RideSignal(
            time=self.time[indices],
            ax=self.ax[indices],
            ay=self.ay[indices],
            az=self.az[indices],
            vz=self.vz[indices],
            sz=self.sz[indices],
            sample_rate=self.sample_rate,
        )


class FilterConfig(BaseModel):
    """
    Band shaping / smoothing settings. Immutable once built.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    high_pass_freq: float = Field(0.0, description="High-pass cutoff (Hz), 0 disables")
    low_pass_freq: Optional[float] = Field(30.0, description="Low-pass cutoff (Hz), None disables")
    target_axes: Literal["all", "z"] = "all"
    is_standard_weighting: bool = False
    enable_kalman: bool = False
    kalman_q: float = Field(0.01, ge=0, description="Process noise (responsiveness)")
    kalman_r: float = Field(1.0, ge=0, description="Measurement noise (smoothness)")

    @classmethod
    def passthrough(cls) -> "FilterConfig":
        return cls()

    @classmethod
    def iso_weighting(cls, low_pass_freq: float = 10.0) -> "FilterConfig":
        """GB/T 24474 preset: 10 Hz low-pass on all axes."""
        return cls(enabled=True, low_pass_freq=low_pass_freq, is_standard_weighting=True)


@dataclass(frozen=True)
class FilterReport:
    """Which filter stages actually ran, and why the others did not."""

    enabled: bool
    high_pass_applied: bool = False
    low_pass_applied: bool = False
    kalman_applied: bool = False
    filtered_axes: Tuple[str, ...] = ()
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        """True when a configured stage had to be skipped."""
        return bool(self.skipped)


@dataclass(frozen=True)
class ElevatorBoundaries:
    t0: float
    t1: float
    t2: float
    t3: float
    is_valid: bool

    @property
    def plateau_duration(self) -> float:
        return self.t2 - self.t1 if self.is_valid else 0.0


@dataclass(frozen=True)
class AxisStats:
    rms: float
    peak_val: float
    pk_pk: float
    zero_pk: float
    a95: Optional[float]
    n_samples: int
    max_pk_pk_pair: Optional[Tuple[TimedValue, TimedValue]] = None
    max_0_pk_point: Optional[TimedValue] = None

    @classmethod
    def empty(cls) -> "AxisStats":
        return cls(rms=0.0, peak_val=0.0, pk_pk=0.0, zero_pk=0.0, a95=None, n_samples=0)


@dataclass(frozen=True)
class AxisIsoStats:
    const_vel: Optional[AxisStats]
    global_: Optional[AxisStats] = None


@dataclass(frozen=True)
class IsoStats:
    x: AxisIsoStats
    y: AxisIsoStats
    z: AxisIsoStats
    global_window: Literal["t0-t3", "full_recording"] = "t0-t3"

    def axis(self, name: str) -> AxisIsoStats:
        return {"ax": self.x, "ay": self.y, "az": self.z}[name]


@dataclass(frozen=True, eq=False)
class FFTResult:
    frequency: np.ndarray  # Hz, ascending
    magnitude: np.ndarray  # single-sided amplitude (same unit as input)
    sample_rate: float
    n_fft: int  # padded transform length

    def __len__(self) -> int:
        return len(self.frequency)

    @property
    def resolution(self) -> float:
        return self.sample_rate / self.n_fft if self.n_fft else 0.0

    @classmethod
    def empty(cls, sample_rate: float) -> "FFTResult":
        return cls(np.zeros(0), np.zeros(0), sample_rate, 0)

    def points(self) -> List[Tuple[float, float]]:
        return list(zip(self.frequency.tolist(), self.magnitude.tolist()))
