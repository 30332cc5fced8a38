"""
Batch Ride Analysis Script.
Processes every CSV recording in a directory and writes one summary row per ride.

Usage:
    python scripts/run_batch_analysis.py <recordings_dir> [--iso] [--output summary.csv]
"""

import argparse
import os
import sys

import pandas as pd
from loguru import logger
from tqdm import tqdm

from config import configure_logging, settings
from src.ride_analysis.core import FilterConfig
from src.ride_analysis.metrics.kinematics import RideKinematics
from src.ride_analysis.pipeline import RideAnalysisPipeline
from src.ride_analysis.recording import ParseError, read_recording
from src.ride_analysis.spectrum import analyze_window


def find_recordings(root):
    paths = []
    for dirpath, _, files in os.walk(root):
        for f in files:
            if f.lower().endswith(".csv"):
                paths.append(os.path.join(dirpath, f))
    return sorted(paths)


def summarize(path, state, window):
    """Flat summary row for one ride."""
    b = state.boundaries
    iso = state.iso_stats
    row = {
        "file": os.path.basename(path),
        "boundaries_valid": b.is_valid,
        "t0_s": b.t0 if b.is_valid else None,
        "t1_s": b.t1 if b.is_valid else None,
        "t2_s": b.t2 if b.is_valid else None,
        "t3_s": b.t3 if b.is_valid else None,
        "global_window": iso.global_window,
        "filter_degraded": state.filter_report.degraded,
    }
    for axis in ("ax", "ay", "az"):
        cv = iso.axis(axis).const_vel
        row[f"{axis}_a95"] = cv.a95 if cv else None
        row[f"{axis}_pk_pk"] = cv.pk_pk if cv else None
        row[f"{axis}_0_pk"] = cv.zero_pk if cv else None
        row[f"{axis}_rms"] = cv.rms if cv else None
    if iso.z.global_ is not None:
        row["az_global_pk_pk"] = iso.z.global_.pk_pk
        row["az_global_0_pk"] = iso.z.global_.zero_pk
    row["dominant_hz"] = window.dominant[0] if window.dominant else None
    row.update(state.metrics)
    return row


def main():
    parser = argparse.ArgumentParser(description="Run ride analysis on every CSV in a directory.")
    parser.add_argument("recordings_dir", type=str, help="Directory searched recursively for .csv files.")
    parser.add_argument("--sample-rate", type=float, default=settings.DEFAULT_SAMPLE_RATE)
    parser.add_argument("--iso", action="store_true", help="GB/T 24474 weighting preset (10 Hz low-pass).")
    parser.add_argument("--speed", type=float, default=None, help="Rated speed (m/s) for speed ratio.")
    parser.add_argument(
        "--output",
        type=str,
        default=os.path.join(settings.DATA_ROOT, "ride_summary.csv"),
    )

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()
    configure_logging("run_batch_analysis")

    paths = find_recordings(args.recordings_dir)
    if not paths:
        print(f"[!] No CSV recordings found under '{args.recordings_dir}'.")
        return

    print(f"[*] Found {len(paths)} recordings. Starting Batch Analysis...")

    config = FilterConfig.iso_weighting(settings.ISO_LOW_PASS_HZ) if args.iso else FilterConfig.passthrough()
    pipeline = RideAnalysisPipeline(a95_window_s=settings.A95_WINDOW_S)
    pipeline.add_metric(RideKinematics(rated_speed=args.speed))

    rows = []
    for path in tqdm(paths):
        try:
            recording = read_recording(path, args.sample_rate)
        except ParseError as e:
            logger.warning(f"Skipping {path}: {e}")
            continue

        state = pipeline.run(recording, config)
        window = analyze_window(state.signal, state.boundaries, "az", "const_vel", 0.0, settings.FFT_WINDOW_S)
        rows.append(summarize(path, state, window))

    if not rows:
        print("[!] No recording could be analyzed.")
        return

    os.makedirs(os.path.dirname(os.path.abspath(args.output)), exist_ok=True)
    pd.DataFrame(rows).to_csv(args.output, index=False)
    print(f"\n[Done] {len(rows)} rides analyzed -> {args.output}")


if __name__ == "__main__":
    main()
