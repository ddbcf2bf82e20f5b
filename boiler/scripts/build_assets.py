#!/usr/bin/env python3
"""
Build fingerprinted static assets ahead of server startup.

This script runs the same asset build the server runs in its startup hook:
stylesheets and scripts are minified into content-hashed files, bundles are
combined, images are converted and the favicon set is generated. Running it
during deployment means the worker processes find every derived file already
in place and start without writing anything.

Optionally the resulting mappings are written to a JSON file for inspection.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from boiler import config as config_lib
from boiler.core import build_assets
from boiler.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Build minified, fingerprinted and optimized static assets"
    )
    parser.add_argument(
        "--static-dir",
        type=str,
        default=None,
        help="Path to the static directory (default: from config, 'static')",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON pipeline configuration file (default: built-in layout)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the fingerprint and optimization mappings to this JSON file",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error status if any asset failed to build",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script."""
    args = parse_args(argv)
    setup_logging()

    try:
        cfg = (
            config_lib.load_config(args.config)
            if args.config
            else config_lib.DEFAULT_CONFIG
        )
    except (OSError, ValidationError) as e:
        logger.error(f"Invalid configuration {args.config}: {e}")
        return 1

    if args.static_dir:
        cfg = cfg.model_copy(update={"static_dir": Path(args.static_dir)})

    if not cfg.static_dir.is_dir():
        logger.error(f"Static directory not found: {cfg.static_dir}")
        return 1

    result = build_assets(cfg)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(result.model_dump(mode="json"), f, indent=2, sort_keys=True)
        logger.info(f"Wrote asset mappings to {output_path}")

    if result.failures:
        for failure in result.failures:
            logger.warning(
                f"{failure.error_type}: {failure.source}: {failure.message}"
            )
        if args.strict:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
