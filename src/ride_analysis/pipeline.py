"""
Analysis Pipeline Manager.
One recompute = filter -> integrate -> boundaries -> ISO statistics -> metrics,
always rebuilt as a whole from the raw recording.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from src.ride_analysis.boundaries import BoundaryDetector
from src.ride_analysis.core import (
    ElevatorBoundaries,
    FilterConfig,
    FilterReport,
    IsoStats,
    RideRecording,
    RideSignal,
)
from src.ride_analysis.metrics.base import MetricStrategy
from src.ride_analysis.metrics.statistics import A95_WINDOW_S, compute_iso_stats
from src.ride_analysis.processing import SignalProcessor


@dataclass(frozen=True)
class DerivedState:
    signal: RideSignal
    filter_report: FilterReport
    boundaries: ElevatorBoundaries
    iso_stats: IsoStats
    metrics: Dict[str, Any] = field(default_factory=dict)


class RideAnalysisPipeline:
    def __init__(self, detector: Optional[BoundaryDetector] = None, a95_window_s: float = A95_WINDOW_S):
        self.metrics: List[MetricStrategy] = []
        self.detector = detector or BoundaryDetector()
        self.a95_window_s = a95_window_s

    def add_metric(self, metric: MetricStrategy):
        self.metrics.append(metric)

    def run(
        self,
        recording: RideRecording,
        filter_config: Optional[FilterConfig] = None,
        sample_rate: Optional[float] = None,
    ) -> DerivedState:
        """
        :param sample_rate: overrides the recording's sample rate (time base is rebuilt)
        """
        config = filter_config or FilterConfig.passthrough()
        if sample_rate is not None and sample_rate != recording.sample_rate:
            recording = recording.with_sample_rate(sample_rate)

        # 1. Signal processing (filtering + integration)
        signal, report = SignalProcessor.process(recording, config)

        # 2. Ride phases
        bounds = self.detector.detect(signal)

        # 3. ISO statistics
        iso = compute_iso_stats(signal, bounds, self.a95_window_s)

        # 4. Registered metrics; a failing metric never discards the run
        results: Dict[str, Any] = {}
        for metric in self.metrics:
            try:
                results.update(metric.calculate(signal, bounds))
            except Exception as e:
                logger.error(f"Metric {metric.__class__.__name__} failed: {e}")
                results[f"Error_{metric.__class__.__name__}"] = str(e)

        return DerivedState(
            signal=signal,
            filter_report=report,
            boundaries=bounds,
            iso_stats=iso,
            metrics=results,
        )


def recompute(
    recording: RideRecording,
    filter_config: Optional[FilterConfig] = None,
    sample_rate: Optional[float] = None,
) -> DerivedState:
    """Pure pipeline entry point: raw data + settings -> complete derived state."""
    return RideAnalysisPipeline().run(recording, filter_config, sample_rate)


class Recomputer:
    """
    Last-request-wins recompute runner.

    Every request() supersedes the previous ones. A finished job publishes its
    state only if no newer request arrived meanwhile; stale futures resolve to
    None and their results are dropped.
    """

    def __init__(self, pipeline: Optional[Callable[..., DerivedState]] = None):
        self._pipeline = pipeline or recompute
        self._executor = ThreadPoolExecutor(max_workers=1)
        self._lock = threading.Lock()
        self._generation = 0
        self._current: Optional[DerivedState] = None

    @property
    def current(self) -> Optional[DerivedState]:
        with self._lock:
            return self._current

    def request(
        self,
        recording: RideRecording,
        filter_config: Optional[FilterConfig] = None,
        sample_rate: Optional[float] = None,
    ) -> "Future[Optional[DerivedState]]":
        with self._lock:
            self._generation += 1
            generation = self._generation
        return self._executor.submit(self._run, generation, recording, filter_config, sample_rate)

    def _run(self, generation, recording, filter_config, sample_rate) -> Optional[DerivedState]:
        with self._lock:
            if generation != self._generation:
                return None  # superseded before it started

        state = self._pipeline(recording, filter_config, sample_rate)

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding stale recompute #{generation}")
                return None
            self._current = state
        return state

    def shutdown(self):
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.shutdown()
