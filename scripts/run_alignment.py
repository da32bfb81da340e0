"""
Align a scanner report and print the survey summary.

Loads a report, resolves every scanner into the frame of the root scanner, and
reports the number of distinct beacons and the largest Manhattan distance
between two scanners. The full alignment is written to JSON under the
configured output directory unless --output names another file.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add the src to the path to import modules
sys.path.append(str(Path(__file__).parent.parent / "src"))

from scanner_alignment.acceleration import ParallelExecutor
from scanner_alignment.alignment import AlignmentStalled, align
from scanner_alignment.analysis import summarize_alignment
from scanner_alignment.preprocessing import ReportFormatError, load_scanners
from scanner_alignment.utils.config import load_config, AppConfig
from scanner_alignment.utils.export import default_export_path, export_alignment_json
from scanner_alignment.utils.logging import setup_logger, set_package_log_level


def main() -> int:
    """
    Main function to run the scanner alignment workflow.
    """
    parser = argparse.ArgumentParser(description="Scanner Alignment Workflow")
    parser.add_argument("report", type=str, help="Path to the scanner report text file")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument(
        "--min-overlap",
        type=int,
        default=None,
        help="Override alignment.min_overlap (beacons that must coincide).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Evaluate scanner pairs with this many worker processes (overrides parallel config).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the alignment to this JSON file (defaults to <paths.output_dir>/<report>_alignment.json).",
    )
    args = parser.parse_args()

    # Load configuration
    cfg: AppConfig = load_config(args.config)
    if args.min_overlap is not None:
        cfg.alignment.min_overlap = args.min_overlap
    if args.workers is not None:
        cfg.parallel.enabled = args.workers > 1
        cfg.parallel.n_workers = args.workers

    # Setup logging from config
    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logger = setup_logger(__name__, level=log_level, log_file=cfg.logging.file)
    set_package_log_level(log_level, log_file=cfg.logging.file)

    logger.info("Scanner Alignment Workflow")
    logger.info("==========================")

    try:
        scanners = load_scanners(args.report)
    except (FileNotFoundError, ReportFormatError) as e:
        logger.error(f"Could not load report: {e}")
        return 2

    executor = ParallelExecutor(cfg.parallel.n_workers) if cfg.parallel.enabled else None

    try:
        aligned = align(
            scanners,
            min_overlap=cfg.alignment.min_overlap,
            root_index=cfg.alignment.root_index,
            executor=executor,
        )
    except AlignmentStalled as e:
        logger.error(str(e))
        return 1

    summary = summarize_alignment(aligned)
    logger.info(f"Distinct beacons: {summary.n_beacons}")
    logger.info(f"Largest scanner separation (Manhattan): {summary.largest_separation}")
    for name, position in summary.positions.items():
        logger.info(f"  {name}: {position}")

    output_path = args.output or default_export_path(args.report, cfg.paths.output_dir)
    export_alignment_json(aligned, output_path)

    print(summary.n_beacons)
    print(summary.largest_separation)
    return 0


if __name__ == "__main__":
    sys.exit(main())
