"""
Utilities to build Plex-formatted destination paths for TV shows and movies.

Layouts produced under the output directory:

- TV:    "Show/Season 01/Show - S01E02.mkv"
- Movie: "Movie (2021)/Movie (2021).mkv"

Season and episode numbers are zero-padded to at least two digits; larger
numbers are written in full. Titles are sanitized before they become path
components, and sanitizing an already sanitized title changes nothing.
"""
from pathlib import Path

from mediarenamer.models import ActionKind, Destination, MovieMatch, ResolvedMetadata, TVMatch
from mediarenamer.utils.file_util import sanitize_filename


def build_tv_path(title: str, season: int, episode: int, extension: str) -> Path:
    """
    Build the relative path of a TV episode.

    Example:
      build_tv_path("Show Name", 1, 2, "mkv") -> Path("Show Name/Season 01/Show Name - S01E02.mkv")
    """
    show = sanitize_filename(title)
    return Path(show) / f"Season {season:02d}" / f"{show} - S{season:02d}E{episode:02d}.{extension}"


def build_movie_path(title: str, year: int, extension: str) -> Path:
    """
    Build the relative path of a movie.

    Example:
      build_movie_path("Movie Name", 2021, "mkv") -> Path("Movie Name (2021)/Movie Name (2021).mkv")
    """
    folder = sanitize_filename(f"{title} ({year})")
    return Path(folder) / f"{folder}.{extension}"


def build_destination(output_root: Path, metadata: ResolvedMetadata, extension: str, action: ActionKind) -> Destination:
    """
    Absolute destination for a resolved file.

    The canonical title replaces the parsed one; season, episode and the movie
    year always come from the filename.
    """
    match = metadata.match
    if isinstance(match, TVMatch):
        relative = build_tv_path(metadata.title, match.season, match.episode, extension)
    elif isinstance(match, MovieMatch):
        relative = build_movie_path(metadata.title, match.year, extension)
    else:
        raise TypeError(f"Cannot build a path for {type(match).__name__}")

    path = Path(output_root).absolute() / relative
    return Destination(path=path, needs_directory=action is not ActionKind.TEST, action=action)
