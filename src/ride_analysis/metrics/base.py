"""
Base interface for ride summary metrics.
Strategy Pattern implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from src.ride_analysis.core import ElevatorBoundaries, RideSignal


class MetricStrategy(ABC):
    """Parent of every pipeline metric."""

    # some metrics need extra parameters (rated speed, ...)
    def __init__(self, **kwargs):
        self.params = kwargs

    @abstractmethod
    def calculate(self, signal: RideSignal, bounds: ElevatorBoundaries) -> Dict[str, Any]:
        """Return the metric values as a flat dictionary."""
        pass
