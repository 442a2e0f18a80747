#!/usr/bin/env python3
"""
media-renamer: rename downloaded media and create the Plex directory structure.

Example:
    media-renamer --input ~/Downloads --output /srv/plex --action move
"""

import argparse
import signal
import sys
import threading
from pathlib import Path

import mediarenamer as package
from mediarenamer.models import ActionKind
from mediarenamer.rename import RunSummary, rename_files
from mediarenamer.utils import LogLevel, logger
from mediarenamer.utils.config import Config, ConfigError, load_config
from mediarenamer.utils.constants import (
    CONFIG_DIR,
    EXIT_FATAL,
    EXIT_INTERRUPTED,
    EXIT_OK,
    LOG_FILENAME,
    STATUS_DRY_RUN,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_SKIP,
    STATUS_UNCLASSIFIED,
)
from mediarenamer.utils.file_util import DirectoryWalker, InputError
from mediarenamer.utils.resolver import MetadataResolver
from mediarenamer.utils.tvdb import TvdbClient

# Run-scoped cancellation, set by SIGINT/SIGTERM
_cancel_event = threading.Event()


def _signal_handler(signum, frame):
    """Stop dispatching new files; files in progress are allowed to finish."""
    if _cancel_event.is_set():
        # Second signal: give up immediately.
        raise KeyboardInterrupt
    _cancel_event.set()
    logger.safe_print("\nShutdown signal received. Finishing files in progress...")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-renamer",
        description="Rename downloaded media and create the Plex directory structure. "
                    "Uses TheTVDB for canonical show and movie names.",
        epilog="Example: media-renamer --input ~/Downloads --output /srv/plex --action copy",
    )
    parser.add_argument("-i", "--input", required=True, help="The input file or folder")
    parser.add_argument(
        "-m", "--max-depth", type=int, default=None,
        help="The max depth to traverse directories (default: recurse indefinitely)",
    )
    parser.add_argument(
        "-a", "--action", type=ActionKind, choices=list(ActionKind), default=ActionKind.TEST,
        help="What action should be done on the files (default: test)",
    )
    parser.add_argument("-o", "--output", required=True, help="The output directory for the files")
    parser.add_argument("--config", help=f"The path of the configuration file (default: {CONFIG_DIR / 'config.toml'})")
    parser.add_argument("--workers", type=int, help="Number of files processed in parallel (default: from config)")
    parser.add_argument("--offline", action="store_true", help="Do not query TheTVDB; use names parsed from filenames")
    parser.add_argument("--log-file", help=f"Also append log output to this file (default: {CONFIG_DIR / LOG_FILENAME})")
    parser.add_argument("--no-progress", action="store_true", help="Do not display a progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print verbose output (useful for debugging config)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {package.__version__}")
    return parser


def build_resolver(config: Config, offline: bool) -> MetadataResolver | None:
    """Return the metadata resolver for this run, or None to use parsed names only."""
    if offline:
        logger.log("resolve.offline", LogLevel.INFO, reason="--offline")
        return None
    if not config.has_api_key:
        logger.log("resolve.offline", LogLevel.WARN, reason="no TVDB API key configured", config=str(config.source))
        return None
    client = TvdbClient(config.tvdb_api_key, timeout=config.lookup_timeout)
    return MetadataResolver(client, strict=config.strict_matching)


def print_summary(summary: RunSummary) -> None:
    logger.safe_print("\nSummary:")
    logger.safe_print(f"  Processed:      {summary.total}")
    logger.safe_print(f"  Renamed:        {summary.counts[STATUS_OK]}")
    logger.safe_print(f"  Planned:        {summary.counts[STATUS_DRY_RUN]}")
    logger.safe_print(f"  Skipped:        {summary.counts[STATUS_SKIP]}")
    logger.safe_print(f"  Unclassified:   {summary.counts[STATUS_UNCLASSIFIED]}")
    logger.safe_print(f"  Failed:         {summary.counts[STATUS_FAIL]}")
    logger.safe_print(f"  Fallback names: {summary.degraded}")
    if summary.traversal_errors:
        logger.safe_print(f"  Unreadable:     {summary.traversal_errors}")
    if summary.cancelled:
        logger.safe_print("  Run cancelled before all files were processed.")


def run(args: argparse.Namespace) -> int:
    """Execute a run for parsed arguments and return the exit code."""
    try:
        config = load_config(Path(args.config).expanduser() if args.config else None)
    except ConfigError as e:
        logger.log("startup.error", LogLevel.ERROR, msg="Invalid configuration", error=str(e))
        return EXIT_FATAL

    if args.max_depth is not None and args.max_depth < 0:
        logger.log("startup.error", LogLevel.ERROR, msg="--max-depth must not be negative")
        return EXIT_FATAL

    workers = args.workers if args.workers is not None else config.workers
    if workers < 1:
        logger.log("startup.error", LogLevel.ERROR, msg="--workers must be at least 1")
        return EXIT_FATAL

    input_path = Path(args.input).expanduser()
    output_root = Path(args.output).expanduser().absolute()

    try:
        walker = DirectoryWalker(
            input_path,
            config.extensions,
            max_depth=args.max_depth,
            ignored_dirs=config.ignored_dirs,
            abort_on_unreadable=config.abort_on_unreadable,
        )
    except InputError as e:
        logger.log("startup.error", LogLevel.ERROR, msg="Invalid input", error=str(e))
        return EXIT_FATAL

    _cancel_event.clear()
    previous_handlers = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            previous_handlers[signum] = signal.signal(signum, _signal_handler)
        except (AttributeError, OSError, ValueError):
            pass

    try:
        summary = rename_files(
            walker,
            config,
            output_root,
            action=args.action,
            resolver=build_resolver(config, args.offline),
            workers=workers,
            cancel_event=_cancel_event,
            show_progress=not args.no_progress,
        )
    except InputError as e:
        logger.log("renamer.error", LogLevel.ERROR, msg="Traversal aborted", error=str(e))
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.log("renamer.error", LogLevel.ERROR, msg="Interrupted")
        return EXIT_INTERRUPTED
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    print_summary(summary)
    return EXIT_INTERRUPTED if summary.cancelled else EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger.set_log_level(LogLevel.DEBUG if args.verbose else LogLevel.INFO)

    log_path = Path(args.log_file).expanduser() if args.log_file else CONFIG_DIR / LOG_FILENAME
    try:
        logger.set_log_file(log_path)
    except OSError as e:
        logger.log("startup.warning", LogLevel.WARN, msg="Could not open log file", path=str(log_path), error=str(e))

    try:
        return run(args)
    finally:
        logger.set_log_file(None)


if __name__ == "__main__":
    sys.exit(main())
