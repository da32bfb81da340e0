"""
Generate a synthetic scanner report with a known ground truth.

- Scanner 0 defines the global frame.
- Every other scanner shares a subset of scanner 0's beacons plus beacons of
  its own, rotated by a random catalog rotation and shifted by a random
  integer translation.
- Writes the report text and a JSON file with the ground-truth transforms.
"""
from __future__ import annotations

import sys
import argparse
import json
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent / "src"))

from scanner_alignment.preprocessing import format_scanner_report, generate_survey


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic scanner report")
    parser.add_argument("--out-dir", type=str, default="data/synthetic")
    parser.add_argument("--scanners", type=int, default=5)
    parser.add_argument("--root-beacons", type=int, default=25)
    parser.add_argument("--shared-beacons", type=int, default=12)
    parser.add_argument("--noise-beacons", type=int, default=8)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    survey = generate_survey(
        args.scanners,
        root_beacons=args.root_beacons,
        shared_beacons=args.shared_beacons,
        noise_beacons=args.noise_beacons,
        seed=args.seed,
    )

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    report_path = out_dir / "scanners.txt"
    report_path.write_text(format_scanner_report(survey.scanners), encoding="utf-8")

    truth_path = out_dir / "ground_truth.json"
    truth = {
        "n_beacons": len(survey.beacons),
        "transforms": {
            scanner.name: transform.to_dict()
            for scanner, transform in zip(survey.scanners, survey.transforms)
        },
    }
    truth_path.write_text(json.dumps(truth, indent=2), encoding="utf-8")

    print(f"Wrote {report_path} ({len(survey.scanners)} scanners, {len(survey.beacons)} distinct beacons)")
    print(f"Wrote {truth_path}")


if __name__ == "__main__":
    main()
