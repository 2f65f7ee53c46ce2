"""
Command-line entry point for the release upgrader.

Commands:
- check: show the latest release and how it classifies against the
  installed version
- candidates: list releases newer than the installed version
- upgrade: run a safe upgrade (default), an upgrade to the latest release,
  or an upgrade to a specific version

Command results are printed to stdout as JSON; logs go to stderr.
Exit codes: 0 on success, 1 when there was nothing to do, 2 on error.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

import yaml
from pydantic import ValidationError

from release_upgrader import __version__
from release_upgrader.config import AppConfig, load_config
from release_upgrader.errors import UpgraderError
from release_upgrader.logging import get_logger, setup_logging
from release_upgrader.upgrader import Upgrader

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_NOTHING_TO_DO = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="release-upgrader",
        description="Upgrade a project in place from its published releases",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--installed-version",
        type=str,
        help="Override the installed version from the configuration",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        help="Override log level",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Show the latest release")
    subparsers.add_parser("candidates", help="List available upgrades")

    upgrade = subparsers.add_parser("upgrade", help="Upgrade the project")
    target = upgrade.add_mutually_exclusive_group()
    target.add_argument(
        "--to",
        dest="target_version",
        metavar="VERSION",
        help="Upgrade to a specific version",
    )
    target.add_argument(
        "--latest",
        action="store_true",
        help="Upgrade to the latest release, even across major versions",
    )
    upgrade.add_argument(
        "--force",
        action="store_true",
        help="Allow a cross-major upgrade with --to",
    )

    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Translate command-line options into configuration overrides."""
    overrides: dict[str, Any] = {}

    if args.installed_version:
        overrides["upgrade"] = {"installed_version": args.installed_version}

    if args.debug:
        overrides["logging"] = {"level": "debug"}
    elif args.log_level:
        overrides["logging"] = {"level": args.log_level}

    return overrides


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _report_error(error: UpgraderError) -> int:
    logger.error(
        error.message,
        extra={"error_code": error.error_code, "details": error.details},
    )
    _emit({"error": error.to_dict()})
    return EXIT_ERROR


def _run_check(upgrader: Upgrader) -> int:
    release = upgrader.source.get_latest_release()
    checker = upgrader.checker
    update_needed = checker.is_update_needed(release)

    _emit(
        {
            "installed": upgrader.current_version.full_semver,
            "latest": release.version,
            "date": release.date.isoformat(),
            "is_prerelease": release.is_prerelease,
            "update_needed": update_needed,
            "is_secure": checker.is_secure_to_upgrade(release),
            "is_major_update": checker.is_major_update(release),
            "is_minor_update": checker.is_minor_update(release),
            "is_patch_update": checker.is_patch_update(release),
        }
    )
    return EXIT_OK if update_needed else EXIT_NOTHING_TO_DO


def _run_candidates(upgrader: Upgrader) -> int:
    candidates = upgrader.get_upgrade_candidates()
    _emit(
        {
            "installed": upgrader.current_version.full_semver,
            "candidates": [c.model_dump() for c in candidates.values()],
        }
    )
    return EXIT_OK if candidates else EXIT_NOTHING_TO_DO


def _run_upgrade(upgrader: Upgrader, args: argparse.Namespace) -> int:
    if args.target_version:
        mode = "version"
        upgraded = upgrader.upgrade_to(args.target_version, force=args.force)
    elif args.latest:
        mode = "latest"
        upgraded = upgrader.upgrade_to_latest()
    else:
        mode = "safe"
        upgraded = upgrader.upgrade_safely()

    _emit(
        {
            "installed": upgrader.current_version.full_semver,
            "mode": mode,
            "upgraded": upgraded,
        }
    )
    return EXIT_OK if upgraded else EXIT_NOTHING_TO_DO


def main(argv: list[str] | None = None) -> int:
    """
    Run the release-upgrader command.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "upgrade" and args.force and not args.target_version:
        parser.error("--force requires --to")

    try:
        config: AppConfig = load_config(
            args.config,
            overrides=_overrides_from_args(args),
        )
    except (FileNotFoundError, yaml.YAMLError, ValidationError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_ERROR
    except UpgraderError as e:
        print(f"Invalid configuration: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(config.logging, stream=sys.stderr)

    try:
        upgrader = Upgrader.from_config(config)
    except UpgraderError as e:
        return _report_error(e)

    try:
        if args.command == "check":
            return _run_check(upgrader)
        if args.command == "candidates":
            return _run_candidates(upgrader)
        return _run_upgrade(upgrader, args)
    except UpgraderError as e:
        return _report_error(e)
    finally:
        upgrader.source.close()


if __name__ == "__main__":
    sys.exit(main())
