"""Command-line interface for prebuild-fetch."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from .config import Settings
from .errors import ExtractError, PrebuildError
from .install import run_install

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    p = argparse.ArgumentParser(
        prog="prebuild-fetch",
        description="Download, verify, cache and extract a prebuilt binary archive.",
    )
    p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    p.add_argument(
        "--root", type=Path, default=None,
        help="Install root holding the cached archive (default: PREBUILD_INSTALL_ROOT or .)",
    )
    p.add_argument(
        "--url-template", default=None,
        help="Archive URL; ${npm_package_version} is replaced by --version",
    )
    p.add_argument(
        "--checksum", default=None,
        help="Expected SHA-256 hex digest; empty means trust the local build",
    )
    p.add_argument("--version", default=None, help="Package version to fetch")
    p.add_argument(
        "--package-json", type=Path, default=None,
        help="Read version and config.prebuildUrl/prebuildChecksum from this file",
    )
    p.add_argument("--proxy", default=None, help="HTTP(S) proxy URL")
    p.add_argument(
        "--timeout", type=float, default=None,
        help="Per-operation network timeout in seconds",
    )
    p.add_argument(
        "--retries", type=int, default=None,
        help="Total attempts on network failure (default: 1, no retry)",
    )
    p.add_argument(
        "--no-extract",
        action="store_true",
        help="Verify and cache the archive without extracting it",
    )
    return p


def _settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Map CLI flags onto Settings fields, leaving unset flags to the environment."""
    mapping = {
        "install_root": args.root,
        "url_template": args.url_template,
        "checksum": args.checksum,
        "version": args.version,
        "package_json": args.package_json,
        "proxy": args.proxy,
        "timeout_seconds": args.timeout,
        "max_attempts": args.retries,
    }
    overrides = {k: v for k, v in mapping.items() if v is not None}
    if args.no_extract:
        overrides["extract"] = False
    return overrides


def _configure_logging(verbose: bool) -> None:
    """Set up root logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        settings = Settings(**_settings_overrides(args))
        settings.ensure_dirs()
        report = run_install(settings)
    except (ValidationError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG
    except ExtractError as exc:
        for warning in exc.warnings:
            logger.warning("Extraction warning: %s", warning)
        logger.error("%s", exc)
        return EXIT_FAILURE
    except (PrebuildError, OSError) as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE

    print(json.dumps(report.model_dump(mode="json"), indent=2))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
