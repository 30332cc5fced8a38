"""
Recording loader for portable vibration meter exports.

Only the ax / ay / az columns are used (names are matched case-insensitively).
Any time column in the file is ignored: time is rebuilt as index / sample_rate.
"""

import os
from typing import List

import pandas as pd
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.ride_analysis.core import ACCEL_AXES, RideRecording


class ParseError(ValueError):
    """Recording cannot be turned into triaxial samples."""

    def __init__(self, message: str, missing_columns: List[str] = None):
        super().__init__(message)
        self.missing_columns = missing_columns or []


def parse_frame(df: pd.DataFrame, sample_rate: float) -> RideRecording:
    columns = {str(c).strip().lower(): c for c in df.columns}
    missing = [axis for axis in ACCEL_AXES if axis not in columns]
    if missing:
        raise ParseError(
            f"Missing acceleration column(s): {', '.join(missing)}", missing_columns=missing
        )
    if df.empty:
        raise ParseError("Recording contains no samples")

    data = {}
    for axis in ACCEL_AXES:
        values = pd.to_numeric(df[columns[axis]], errors="coerce")
        bad = int(values.isna().sum())
        if bad:
            raise ParseError(f"Column '{columns[axis]}' has {bad} non-numeric value(s)")
        data[axis] = values.to_numpy(dtype=float)

    return RideRecording(data["ax"], data["ay"], data["az"], sample_rate)


@retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_fixed(0.5),
    reraise=True,
)
def _read_csv(path: str) -> pd.DataFrame:
    return pd.read_csv(path, skipinitialspace=True)


def read_recording(path: str, sample_rate: float) -> RideRecording:
    """
    CSV export -> RideRecording.
    Raises ParseError for malformed content; nothing is processed on failure.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Recording not found: '{path}'")

    try:
        df = _read_csv(path)
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"Empty recording file: {path}") from e

    recording = parse_frame(df, sample_rate)
    logger.info(
        f"Loaded {os.path.basename(path)}: {len(recording)} samples @ {sample_rate} Hz "
        f"({recording.max_time:.2f} s)"
    )
    return recording
