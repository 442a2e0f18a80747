"""
Filename normalization and classification.

A file stem is first rewritten with the configured literal replacements,
then matched against the TV patterns and, only if none of them matches,
against the movie patterns. The first pattern that matches with usable
named groups decides the classification.
"""

import re
from typing import Iterable, Sequence

from mediarenamer.models import ClassificationResult, MovieMatch, TVMatch, Unclassified
from mediarenamer.utils import logger
from mediarenamer.utils.logger import LogLevel

_DIGITS = re.compile(r"[0-9]+")


def normalize_filename(stem: str, replacements: Iterable[tuple[str, str]]) -> str:
    """
    Apply each (from, to) pair once, in order, as a plain substring replacement.

    Example:
      normalize_filename("Show.Name.S01E02", [(".", " ")]) -> "Show Name S01E02"
    """
    for old, new in replacements:
        stem = stem.replace(old, new)
    return stem


def _parse_number(text: str | None, min_digits: int = 1) -> int | None:
    if text is None or not _DIGITS.fullmatch(text) or len(text) < min_digits:
        return None
    return int(text, 10)


def _clean_name(text: str | None) -> str | None:
    if text is None:
        return None
    # Trailing separators left by "Show - S01E02" style names
    text = text.strip().rstrip("-").rstrip()
    return text or None


def match_tv(name: str, patterns: Sequence[re.Pattern]) -> TVMatch | None:
    """Return the match of the first TV pattern yielding name, season and episode."""
    for pattern in patterns:
        m = pattern.search(name)
        if not m:
            continue
        show = _clean_name(m.group("name"))
        season = _parse_number(m.group("season"))
        episode = _parse_number(m.group("episode"))
        if show is None or season is None or episode is None:
            logger.log("classify.partial", LogLevel.TRACE, pattern=pattern.pattern, name=name)
            continue
        return TVMatch(show, season, episode, pattern=pattern.pattern)
    return None


def match_movie(name: str, patterns: Sequence[re.Pattern]) -> MovieMatch | None:
    """Return the match of the first movie pattern yielding a name and a year of 4+ digits."""
    for pattern in patterns:
        m = pattern.search(name)
        if not m:
            continue
        title = _clean_name(m.group("name"))
        year = _parse_number(m.group("year"), min_digits=4)
        if title is None or year is None:
            logger.log("classify.partial", LogLevel.TRACE, pattern=pattern.pattern, name=name)
            continue
        return MovieMatch(title, year, pattern=pattern.pattern)
    return None


def classify(
        name: str, tv_patterns: Sequence[re.Pattern], movie_patterns: Sequence[re.Pattern]
) -> ClassificationResult:
    """
    Classify a normalized name. TV patterns always win over movie patterns.

    Examples:
      "Show Name S01E02" -> TVMatch("Show Name", 1, 2)
      "Movie Name 2021 1080p" -> MovieMatch("Movie Name", 2021)
    """
    tv = match_tv(name, tv_patterns)
    if tv is not None:
        logger.log("classify.tv", LogLevel.DEBUG, name=tv.show_name, season=tv.season, episode=tv.episode)
        return tv

    movie = match_movie(name, movie_patterns)
    if movie is not None:
        logger.log("classify.movie", LogLevel.DEBUG, name=movie.title, year=movie.year)
        return movie

    return Unclassified(name)
