from __future__ import annotations

import argparse
import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

from packaging_support.config import PackagingProperties, load_properties
from packaging_support.errors import ArchiveError, PackagingError
from packaging_support.log_setup import configure_logging

LOG = logging.getLogger(__name__)


def build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("properties", type=Path, help="Path to the packaging .properties file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Optional file that receives a DEBUG-level log of the run",
    )
    return parser


def run_wrapper(
    argv: list[str] | None,
    *,
    prog: str,
    description: str,
    action: Callable[[PackagingProperties], object],
) -> int:
    """Parse arguments, load the property file and run ``action``.

    Returns 0 on success and 1 when the wrapper fails in a known way.
    """

    parser = build_parser(prog, description)
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        properties = load_properties(args.properties)
        action(properties)
    except subprocess.CalledProcessError as exc:
        LOG.error("%s: external tool failed with exit status %d", prog, exc.returncode)
        return 1
    except (PackagingError, ArchiveError, OSError) as exc:
        LOG.error("%s: %s", prog, exc)
        return 1
    return 0
