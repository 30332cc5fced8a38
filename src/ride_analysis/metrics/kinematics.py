"""
Basic ride kinematics (max speed, travel distance, peak acceleration/deceleration).
"""

import numpy as np
from typing import Dict, Any
from .base import MetricStrategy
from src.ride_analysis.core import ElevatorBoundaries, RideSignal


class RideKinematics(MetricStrategy):
    def calculate(self, sig: RideSignal, bounds: ElevatorBoundaries) -> Dict[str, Any]:
        if len(sig) == 0:
            return {"Error": "Empty signal"}

        # ride window: t0..t3 when known, else the whole recording
        if bounds.is_valid:
            mask = (sig.time >= bounds.t0) & (sig.time <= bounds.t3)
        else:
            mask = np.ones(len(sig), dtype=bool)

        vz = sig.vz[mask]
        az = sig.az[mask]
        sz = sig.sz[mask]

        # 1. Max speed (m/s), signed by travel direction
        i_peak = int(np.argmax(np.abs(vz)))
        direction = "up" if vz[i_peak] >= 0 else "down"

        # 2. Acceleration / deceleration measured along the travel direction
        along = az if direction == "up" else -az

        results = {
            "Max_Speed_mps": round(float(abs(vz[i_peak])), 3),
            "Direction": direction,
            "Travel_Distance_m": round(float(abs(sz[-1] - sz[0])), 3),
            "Max_Acceleration_Gal": round(float(np.max(along)), 2),
            "Max_Deceleration_Gal": round(float(-np.min(along)), 2),
        }

        rated = self.params.get("rated_speed")
        if rated:
            results["Speed_Ratio_pct"] = round(100.0 * results["Max_Speed_mps"] / rated, 1)

        if bounds.is_valid:
            results["Ride_Duration_s"] = round(bounds.t3 - bounds.t0, 3)
            results["Const_Velocity_Duration_s"] = round(bounds.plateau_duration, 3)

        return results
