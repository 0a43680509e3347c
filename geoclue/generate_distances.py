#!/usr/bin/env python3
"""
GeoClue - Offline Distance Matrix Builder

Loads the region FeatureCollection, computes every pairwise minimum distance
on simplified geometry and writes the static matrix artifact consumed by
the engine at INIT.

Usage:
    python -m geoclue.generate_distances
    python -m geoclue.generate_distances --world public/world.geojson \\
        --out public/distances.json --tolerance 0.1 --workers 4
    geoclue-generate --world https://example.org/world.geojson
"""

import argparse
import dataclasses
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from geoclue.config_types import AppConfig
from geoclue.engine.loader import load_regions
from geoclue.errors import DataLoadError
from geoclue.generator import generate_and_save

WORKSPACE_ROOT = Path.cwd()


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 LOGGING
# ═══════════════════════════════════════════════════════════════════════════


def setup_logging(app_config: AppConfig) -> Tuple[logging.Logger, Path]:
    """Configure logging with file and console handlers.

    Returns:
        Tuple of (logger, run_log_folder). The folder is named
        generate_{MMDD}_{HHMM} and holds main.log.
    """
    log_dir = app_config.file_paths.log_dir_path(WORKSPACE_ROOT)
    timestamp = datetime.now().strftime("%m%d_%H%M")
    run_log_folder = log_dir / f"generate_{timestamp}"
    run_log_folder.mkdir(parents=True, exist_ok=True)

    log_path = run_log_folder / "main.log"

    # Package root logger, so GeoClue.* module loggers propagate here
    logger = logging.getLogger("GeoClue")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()

    # File handler
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(fh)
    logger.addHandler(ch)

    return logger, run_log_folder


# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ ARGUMENTS
# ═══════════════════════════════════════════════════════════════════════════


def build_parser(app_config: AppConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geoclue-generate",
        description="Precompute the region-to-region distance matrix.",
    )
    parser.add_argument(
        "--world",
        default=app_config.file_paths.world_geojson,
        help="Region FeatureCollection (path or http(s) URL)",
    )
    parser.add_argument(
        "--out",
        default=app_config.file_paths.distances_json,
        help="Output matrix JSON path",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Simplification tolerance in degrees "
        f"(default: {app_config.matrix_generation.simplify_tolerance_deg})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes; 1 disables parallel dispatch (default: auto)",
    )
    return parser


def apply_overrides(app_config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of app_config with CLI overrides applied."""
    if args.tolerance is not None:
        app_config = dataclasses.replace(
            app_config,
            matrix_generation=dataclasses.replace(
                app_config.matrix_generation, simplify_tolerance_deg=args.tolerance
            ),
        )
    if args.workers is not None:
        parallel = dataclasses.replace(
            app_config.parallel,
            max_workers=args.workers,
            enabled=args.workers != 1 and app_config.parallel.enabled,
        )
        app_config = dataclasses.replace(app_config, parallel=parallel)
    return app_config


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN
# ═══════════════════════════════════════════════════════════════════════════


def main(argv: Optional[List[str]] = None) -> int:
    app_config = AppConfig.default()
    args = build_parser(app_config).parse_args(argv)
    try:
        app_config = apply_overrides(app_config, args)
    except ValueError as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return 2

    logger, run_log_folder = setup_logging(app_config)
    logger.info("=" * 70)
    logger.info("🌍 GeoClue distance matrix generation")
    logger.info("=" * 70)
    logger.info(f"   World: {args.world}")
    logger.info(f"   Output: {args.out}")
    logger.info(f"   Logs: {run_log_folder}")

    t_start = time.perf_counter()
    try:
        regions = load_regions(args.world, app_config.regions)
    except DataLoadError as e:
        logger.error(f"❌ {e}")
        return 1

    generate_and_save(regions, args.out, app_config)
    logger.info(f"🏁 Done in {time.perf_counter() - t_start:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
