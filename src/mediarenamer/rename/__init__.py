"""
File renaming pipeline for Plex media organization.

Package organization:
- parser: literal-replacement normalization and regex classification of
  file names into TV episodes or movies.
- formatter: Plex folder and file name layout, with sanitized titles.
- actions: dry-run, move, copy and symlink with conflict and failure safety.
- core: the per-file pipeline gluing the stages together, including the
  fallback to parsed names when the metadata lookup fails.
- batch: bounded parallel processing of many files with progress reporting
  and a run summary.

Example:
    from pathlib import Path
    from mediarenamer.rename import classify, normalize_filename
    from mediarenamer.utils.config import compile_pattern

    tv = [compile_pattern(r"(?<name>.*) S(?<season>[0-9]+)E(?<episode>[0-9]+)", ("name", "season", "episode"))]
    classify(normalize_filename("Show.Name.S01E02", [(".", " ")]), tv, [])
    # -> TVMatch(show_name="Show Name", season=1, episode=2)
"""
from .parser import (
    classify,
    normalize_filename,
)

from .formatter import (
    build_destination,
    build_movie_path,
    build_tv_path,
)

from .actions import ActionExecutor

from .core import process_file

from .batch import RunSummary, rename_files, status_of

__all__ = [
    # Parsing
    "classify",
    "normalize_filename",
    # Formatting
    "build_destination",
    "build_movie_path",
    "build_tv_path",
    # Actions
    "ActionExecutor",
    # Pipeline
    "process_file",
    # Batch processing
    "RunSummary",
    "rename_files",
    "status_of",
]
