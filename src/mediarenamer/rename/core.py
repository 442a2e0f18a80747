"""
Per-file rename logic.

`process_file` runs one candidate through the whole pipeline: normalize the
stem, classify it, resolve canonical metadata, build the destination and
perform the action. Metadata lookups never stop a file; when the provider
fails or has no answer the names parsed from the filename are used instead
and the result is marked as a fallback.
"""
from pathlib import Path
from typing import Union

from mediarenamer.models import (
    CandidateFile,
    FileReport,
    MovieMatch,
    ResolvedMetadata,
    TVMatch,
    Unclassified,
)
from mediarenamer.rename import formatter, parser
from mediarenamer.rename.actions import ActionExecutor
from mediarenamer.utils import constants, logger
from mediarenamer.utils.config import Config
from mediarenamer.utils.logger import LogLevel
from mediarenamer.utils.resolver import MetadataResolver, fallback_metadata
from mediarenamer.utils.tvdb import AmbiguousMatchError, TvdbError


def resolve_metadata(match: Union[TVMatch, MovieMatch], resolver: MetadataResolver | None) -> ResolvedMetadata:
    """Canonical metadata for `match`, or the parsed fields when no lookup is possible."""
    if resolver is None:
        return fallback_metadata(match)

    try:
        return resolver.resolve(match)
    except AmbiguousMatchError as e:
        logger.log("rename.lookup.ambiguous", LogLevel.WARN, name=match.name, error=str(e))
        return fallback_metadata(match, constants.CONFIDENCE_AMBIGUOUS)
    except TvdbError as e:
        logger.log("rename.lookup.failed", LogLevel.WARN, name=match.name, error_type=type(e).__name__, error=str(e))
        return fallback_metadata(match)


def process_file(
        candidate: CandidateFile,
        config: Config,
        output_root: Path,
        executor: ActionExecutor,
        resolver: MetadataResolver | None = None,
) -> FileReport:
    """
    Run a single candidate file through the pipeline.

    Parameters:
    - candidate (CandidateFile): File produced by the directory walker.
    - config (Config): Loaded configuration (replacements and patterns).
    - output_root (Path): Root of the Plex library being written.
    - executor (ActionExecutor): Performs the run's action mode.
    - resolver (MetadataResolver | None): Metadata lookup; None means offline.

    Returns:
    - FileReport: the classification, the metadata used and the terminal
      outcome. `outcome` is None for unclassified files.
    """
    normalized = parser.normalize_filename(candidate.stem, config.replacements)
    logger.log("rename.normalized", LogLevel.DEBUG, file=candidate.path.name, normalized=normalized)

    classification = parser.classify(normalized, config.tv_patterns, config.movie_patterns)
    if isinstance(classification, Unclassified):
        return FileReport(candidate.path, None, classification)

    metadata = resolve_metadata(classification, resolver)
    destination = formatter.build_destination(output_root, metadata, candidate.extension, executor.mode)
    outcome = executor.execute(candidate.path, destination)
    return FileReport(candidate.path, outcome, classification, metadata)
