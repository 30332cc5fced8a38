"""
Theoretical machine frequencies.

Usage:
    python scripts/machine_frequencies.py --list
    python scripts/machine_frequencies.py PMF018S --speed 1.75 --rope-type sflex
"""

import argparse
import sys

import pandas as pd

from machine_data.catalog import MACHINES, find_machine
from src.ride_analysis.theory import theoretical_freqs


def main():
    parser = argparse.ArgumentParser(description="Expected excitation frequencies of a traction machine.")
    parser.add_argument("model", nargs="?", help="Traction machine model, e.g. PMF018S.")
    parser.add_argument("--machine-type", type=str, default=None)
    parser.add_argument("--speed", type=float, default=1.0, help="Rated speed (m/s).")
    parser.add_argument("--rope-type", choices=("normal", "sflex"), default="normal")
    parser.add_argument("--list", action="store_true", help="List the machine table.")
    args = parser.parse_args()

    if args.list:
        df = pd.DataFrame([m.model_dump() for m in MACHINES])
        print(df.to_string(index=False))
        return

    if not args.model:
        parser.print_help(sys.stderr)
        sys.exit(1)

    try:
        spec = find_machine(args.model, args.machine_type)
    except KeyError as e:
        print(f"[Error] {e}")
        sys.exit(2)

    freqs = theoretical_freqs(spec, args.speed, args.rope_type)
    print(f"[*] {spec.machine_type} / {spec.model}  roping {spec.roping}:1  "
          f"sheave {spec.sheave_diameter_m * 1000:.0f} mm  rope {spec.rope_diameter_m * 1000:.0f} mm")
    print(f"[*] Rated speed {args.speed} m/s, rope type {args.rope_type}")
    for k, v in freqs.as_dict().items():
        print(f"  - {k}: {v:.3f} Hz")
    if spec.roping != 2:
        print("  (f2 applies to 2:1 roping only)")


if __name__ == "__main__":
    main()
