"""
Register a scanner report into one common frame.

This script runs the full workflow: load the report, resolve one global
mapping per scanner, then report the number of unique beacons and the largest
Manhattan distance between two scanners.
"""

import sys
import argparse
import json
import logging
from pathlib import Path

# Add the src to the path to import modules
sys.path.append(str(Path(__file__).parent.parent / "src"))

from scanner_registration.preprocessing.loader import ScannerReportLoader
from scanner_registration.registration import FrameGraphResolver, RegistrationError
from scanner_registration.analysis import summarize
from scanner_registration.utils.logging import setup_logger, set_log_level
from scanner_registration.utils.config import load_config, AppConfig


def main() -> int:
    """
    Main function to run the scanner registration workflow.
    """
    parser = argparse.ArgumentParser(description="Scanner Registration Workflow")
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Scanner report to register (overrides paths.input_file)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write a JSON summary (statistics and per-scanner mappings) to this path",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Enable parallel processing with this many worker processes",
    )
    args = parser.parse_args()

    cfg: AppConfig = load_config(args.config)
    if args.input:
        cfg.paths.input_file = args.input
    if args.output:
        cfg.paths.output_file = args.output
    if args.workers is not None:
        cfg.parallel.enabled = args.workers > 1
        cfg.parallel.n_workers = args.workers

    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logger = setup_logger(__name__, level=log_level, log_file=cfg.logging.file)
    set_log_level(log_level)

    logger.info("Scanner Registration Workflow")
    logger.info("=============================")

    if not cfg.paths.input_file:
        logger.error("No input file given (use --input or paths.input_file in the config).")
        return 2

    input_path = Path(cfg.paths.input_file)
    if not input_path.exists():
        logger.error(f"Input file {input_path} does not exist.")
        return 2

    logger.info("=== STEP 1: Loading scanner report ===")
    scanners = ScannerReportLoader().load(input_path)

    logger.info("=== STEP 2: Resolving frame graph ===")
    resolver = FrameGraphResolver.from_config(cfg)
    try:
        mappings = resolver.resolve(scanners)
    except RegistrationError as e:
        logger.error(f"Registration failed: {e}")
        return 1

    logger.info("=== STEP 3: Aggregating ===")
    summary = summarize(scanners, mappings)
    logger.info(f"Scanners: {summary.n_scanners}")
    logger.info(f"Beacon observations: {summary.n_observations}")
    logger.info(f"Unique beacons: {summary.n_unique_beacons}")
    logger.info(f"Largest Manhattan distance between scanners: {summary.max_manhattan_distance}")

    if cfg.paths.output_file:
        out_path = Path(cfg.paths.output_file)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("w", encoding="utf-8") as f:
            json.dump(summary.to_dict(), f, indent=2)
        logger.info(f"Summary written to {out_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
