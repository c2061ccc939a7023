from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

from .config import CONFIG_DIR, LocatorConfig, load_locator_config
from .models import ValidationOptions
from .snapshot import SnapshotFormatError, find_element_by_uid, load_snapshot
from .validation_workflow import (
    batch_validate_locators,
    find_interactive_elements,
    generate_and_validate_locators,
    render_batch_report,
    write_validation_results,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def build_logger(verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    logger = logging.getLogger("snaplocator")
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    if logger.handlers:
        return logger

    logger.propagate = False
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)
            return logger
        except OSError:
            # Fall through to stderr when the log file cannot be opened.
            pass
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snaplocator",
        description="Generate and statically validate locators against a DOM snapshot.",
    )
    parser.add_argument("snapshot", type=Path, help="Snapshot JSON file")
    parser.add_argument("element_uid", nargs="?", help="Validate only the element with this uid")
    parser.add_argument("--config", type=Path, default=None, help="Locator config JSON")
    parser.add_argument("--min-valid", type=int, default=None, help="Minimum valid selectors per element")
    parser.add_argument("--no-require-css", action="store_true", help="Do not require a CSS selector")
    parser.add_argument("--no-require-xpath", action="store_true", help="Do not require an XPath selector")
    parser.add_argument("--output", type=Path, default=None, help="Where to write batch results")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--log-file",
        nargs="?",
        type=Path,
        const=CONFIG_DIR / "snaplocator.log",
        default=None,
        help="Log to a file (default ~/.snaplocator/snaplocator.log)",
    )
    return parser


def default_results_path(snapshot_path: Path) -> Path:
    return snapshot_path.with_name(f"{snapshot_path.stem}-validation-results.json")


def _validation_options(args: argparse.Namespace, config: LocatorConfig, single: bool) -> ValidationOptions:
    overrides: dict[str, object] = {"verbose": single}
    if args.min_valid is not None:
        overrides["min_valid_selectors"] = args.min_valid
    if args.no_require_css:
        overrides["require_css"] = False
    if args.no_require_xpath:
        overrides["require_xpath"] = False
    return ValidationOptions.from_config(config, **overrides)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return 0 if exc.code == 0 else 1

    logger = build_logger(verbose=args.verbose, log_file=args.log_file)
    if args.min_valid is not None and args.min_valid < 0:
        print("Error: --min-valid must not be negative", file=sys.stderr)
        return 1

    snapshot_path: Path = args.snapshot
    if not snapshot_path.is_file():
        print(f"Error: Snapshot file not found: {snapshot_path}", file=sys.stderr)
        return 1
    try:
        snapshot = load_snapshot(snapshot_path)
    except SnapshotFormatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    config = load_locator_config(args.config)
    print(f"Loaded snapshot from: {snapshot_path}")
    if snapshot.url:
        print(f"URL: {snapshot.url}")
    if snapshot.timestamp:
        print(f"Timestamp: {snapshot.timestamp}")
    print()

    if args.element_uid:
        target = find_element_by_uid(snapshot, args.element_uid)
        if target is None:
            print(f'Error: Element with UID "{args.element_uid}" not found in snapshot', file=sys.stderr)
            return 1
        print(f"Validating element: {target.tag or 'unknown'} (UID: {args.element_uid})")
        print()
        result = generate_and_validate_locators(
            target,
            snapshot,
            _validation_options(args, config, single=True),
            config=config,
        )
        if result.success:
            print("Validation PASSED - Locators are ready to use!")
            return 0
        print("Validation FAILED - Fix issues before using locators")
        return 1

    elements = find_interactive_elements(snapshot)
    if not elements:
        print("No interactive elements found in snapshot")
        return 0
    print(f"Found {len(elements)} interactive elements")
    print()

    results = batch_validate_locators(elements, snapshot, _validation_options(args, config, single=False), config=config)
    print(render_batch_report(results))

    output_path = args.output or default_results_path(snapshot_path)
    try:
        write_validation_results(results, output_path)
    except OSError as exc:
        logger.error("Failed to write validation results to %s: %s", output_path, exc)
        return 1
    print(f"Detailed results exported to: {output_path}")

    failed = sum(1 for result in results if not result.success)
    if failed:
        print(f"{failed} element(s) failed validation")
        return 1
    print("All elements passed validation!")
    return 0
