"""
Single Ride Analysis Script.

Runs the full pipeline on one vibration meter CSV export and prints the
ISO 18738 / GB/T 24474 statistics, ride boundaries, spectrum summary and the
machine's theoretical frequencies.

Usage:
    python scripts/run_ride_analysis.py <recording.csv> [--iso] [--machine PMF018S --speed 1.75] [--plot]
    python scripts/run_ride_analysis.py --demo --plot
"""

import argparse
import sys

import matplotlib.pyplot as plt
from loguru import logger

from config import configure_logging, settings
from machine_data.catalog import find_machine
from src.ride_analysis.core import ACCEL_AXES, FilterConfig
from src.ride_analysis.decimation import downsample
from src.ride_analysis.diagnosis import assess_vibration
from src.ride_analysis.metrics.kinematics import RideKinematics
from src.ride_analysis.pipeline import RideAnalysisPipeline
from src.ride_analysis.recording import ParseError, read_recording
from src.ride_analysis.spectrum import analyze_window
from src.ride_analysis.synthetic import demo_ride
from src.ride_analysis.theory import match_theoretical_peaks, theoretical_freqs


def build_filter_config(args) -> FilterConfig:
    if args.iso:
        return FilterConfig.iso_weighting(settings.ISO_LOW_PASS_HZ)
    enabled = args.high_pass > 0 or args.low_pass is not None or args.kalman
    return FilterConfig(
        enabled=enabled,
        high_pass_freq=args.high_pass,
        low_pass_freq=args.low_pass,
        target_axes="z" if args.z_only else "all",
        enable_kalman=args.kalman,
        kalman_q=args.kalman_q,
        kalman_r=args.kalman_r,
    )


def print_axis_stats(label, stats):
    if stats is None:
        print(f"  - {label}: n/a")
        return
    a95 = f"{stats.a95:.3f}" if stats.a95 is not None else "n/a"
    print(
        f"  - {label}: A95={a95}  Pk-Pk={stats.pk_pk:.3f}  0-Pk={stats.zero_pk:.3f}  "
        f"RMS={stats.rms:.3f} Gal"
    )


def plot_state(state, title):
    sig = downsample(state.signal, settings.DISPLAY_MAX_POINTS)
    bounds = state.boundaries

    fig, axs = plt.subplots(5, 1, figsize=(12, 14), sharex=True)
    channels = [
        ("ax", "Acceleration X [Gal]"),
        ("ay", "Acceleration Y [Gal]"),
        ("az", "Acceleration Z [Gal]"),
        ("vz", "Velocity Z [m/s]"),
        ("sz", "Displacement Z [m]"),
    ]
    for ax, (name, label) in zip(axs, channels):
        ax.plot(sig.time, sig.channel(name), linewidth=0.8)
        ax.set_ylabel(label)
        ax.grid(True)
        if bounds.is_valid:
            ax.axvspan(bounds.t1, bounds.t2, color="purple", alpha=0.08)
            for t, color in ((bounds.t0, "green"), (bounds.t1, "blue"), (bounds.t2, "blue"), (bounds.t3, "red")):
                ax.axvline(t, color=color, linestyle="--", linewidth=0.8)

    axs[0].set_title(title)
    axs[-1].set_xlabel("Time [s]")
    plt.tight_layout()
    plt.show()


def main():
    parser = argparse.ArgumentParser(description="Analyze one elevator ride recording.")
    parser.add_argument("csv_path", nargs="?", help="CSV file with ax, ay, az columns (Gal).")
    parser.add_argument("--demo", action="store_true", help="Analyze a synthetic demo ride instead of a file.")
    parser.add_argument("--sample-rate", type=float, default=settings.DEFAULT_SAMPLE_RATE)
    parser.add_argument("--iso", action="store_true", help="GB/T 24474 weighting preset (10 Hz low-pass).")
    parser.add_argument("--high-pass", type=float, default=0.0)
    parser.add_argument("--low-pass", type=float, default=None)
    parser.add_argument("--z-only", action="store_true", help="Filter the vertical axis only.")
    parser.add_argument("--kalman", action="store_true")
    parser.add_argument("--kalman-q", type=float, default=0.01)
    parser.add_argument("--kalman-r", type=float, default=1.0)
    parser.add_argument("--axis", choices=ACCEL_AXES, default="az")
    parser.add_argument("--fft-mode", choices=("window", "const_vel"), default="const_vel")
    parser.add_argument("--window-start", type=float, default=0.0)
    parser.add_argument("--window-size", type=float, default=settings.FFT_WINDOW_S)
    parser.add_argument("--machine", type=str, default=None, help="Traction machine model, e.g. PMF018S.")
    parser.add_argument("--speed", type=float, default=1.0, help="Rated speed (m/s).")
    parser.add_argument("--rope-type", choices=("normal", "sflex"), default="normal")
    parser.add_argument("--plot", action="store_true")

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()
    configure_logging("run_ride_analysis")

    # 1. Load
    if args.demo:
        recording, name = demo_ride(args.sample_rate), "Demo_Elevator_Ride"
    else:
        try:
            recording, name = read_recording(args.csv_path, args.sample_rate), args.csv_path
        except (FileNotFoundError, ParseError) as e:
            print(f"[Error] {e}")
            sys.exit(2)

    # 2. Pipeline
    pipeline = RideAnalysisPipeline(a95_window_s=settings.A95_WINDOW_S)
    pipeline.add_metric(RideKinematics(rated_speed=args.speed))
    state = pipeline.run(recording, build_filter_config(args))

    report = state.filter_report
    if report.degraded:
        for stage, reason in report.skipped.items():
            print(f"[!] Filter stage '{stage}' skipped: {reason}")

    # 3. Boundaries & ISO statistics
    b = state.boundaries
    print(f"\n=== {name} ===")
    if b.is_valid:
        print(f"[*] Boundaries: t0={b.t0:.2f}s t1={b.t1:.2f}s t2={b.t2:.2f}s t3={b.t3:.2f}s")
    else:
        print("[!] No constant-velocity plateau found; const-velocity statistics omitted.")

    iso = state.iso_stats
    print("\n=== ISO 18738 / GB/T 24474 Statistics ===")
    for axis in ACCEL_AXES:
        print_axis_stats(f"{axis} const vel (t1-t2)", iso.axis(axis).const_vel)
    print_axis_stats(f"az global ({iso.global_window})", iso.z.global_)

    print("\n=== Ride Kinematics ===")
    for k, v in state.metrics.items():
        print(f"  - {k}: {v}")

    # 4. Spectrum
    window = analyze_window(
        state.signal, b, args.axis, args.fft_mode, args.window_start, args.window_size
    )
    print(f"\n=== Spectrum ({args.axis}, {window.mode}, {window.start:.2f}-{window.end:.2f}s) ===")
    if window.dominant:
        print(f"  - Dominant: {window.dominant[0]:.2f} Hz ({window.dominant[1]:.4f} Gal)")
    verdict = assess_vibration(window.stats, args.axis, window.dominant)
    print(f"  - Verdict: {verdict.status.upper()} - {verdict.summary}")
    for rec in verdict.recommendations:
        print(f"    * {rec}")

    # 5. Theoretical frequencies
    if args.machine:
        try:
            spec = find_machine(args.machine)
        except KeyError as e:
            logger.error(str(e))
        else:
            freqs = theoretical_freqs(spec, args.speed, args.rope_type)
            print(f"\n=== Theoretical Frequencies ({spec.machine_type} / {spec.model}, {args.speed} m/s) ===")
            for k, v in freqs.as_dict().items():
                print(f"  - {k}: {v:.2f} Hz")
            for m in match_theoretical_peaks(window.fft, freqs):
                label = f"~ {m.source} ({m.source_frequency:.2f} Hz)" if m.source else "unmatched"
                print(f"  - peak {m.frequency:.2f} Hz {label}")

    if args.plot:
        plot_state(state, name)


if __name__ == "__main__":
    main()
