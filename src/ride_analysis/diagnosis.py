"""
Local (rule based) vibration verdict.
Consumes window statistics and the dominant frequency only.
"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from src.ride_analysis.core import AxisStats

Status = Literal["safe", "warning", "danger"]

# peak limits in Gal: (warning, danger)
PEAK_LIMITS = {
    "az": (20.0, 30.0),
    "ax": (10.0, 15.0),
    "ay": (10.0, 15.0),
}


@dataclass(frozen=True)
class Verdict:
    status: Status
    summary: str
    recommendations: List[str] = field(default_factory=list)


def classify_peak(axis: str, peak_val: float) -> Status:
    warning, danger = PEAK_LIMITS[axis]
    if peak_val > danger:
        return "danger"
    if peak_val > warning:
        return "warning"
    return "safe"


def assess_vibration(
    stats: AxisStats, axis: str, dominant: Optional[Tuple[float, float]] = None
) -> Verdict:
    status = classify_peak(axis, stats.peak_val)

    summary = f"Axis {axis.upper()} peak {stats.peak_val:.2f} Gal"
    if dominant is not None:
        summary += f", dominant frequency {dominant[0]:.2f} Hz"
    summary += "."

    if status == "safe":
        advice = "Values within normal range; keep the regular inspection interval."
    else:
        advice = "Vibration above limit; check guide rail alignment and roller guide condition."

    return Verdict(status=status, summary=summary, recommendations=[advice])
