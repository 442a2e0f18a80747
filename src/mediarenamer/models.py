"""Data models passed between the stages of the rename pipeline."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


class ActionKind(Enum):
    """What to do with a file once its destination is known."""
    TEST = "test"
    MOVE = "move"
    COPY = "copy"
    SYMLINK = "symlink"

    def __str__(self) -> str:
        return self.value


class MediaKind(Enum):
    """Kind of media, also used as the provider search type."""
    SERIES = "series"
    MOVIE = "movie"


@dataclass(frozen=True)
class CandidateFile:
    """A file found by the directory walker."""
    path: Path
    depth: int
    extension: str

    @property
    def stem(self) -> str:
        return self.path.name[: -(len(self.extension) + 1)]


@dataclass(frozen=True)
class TVMatch:
    """A filename recognised as a TV episode."""
    show_name: str
    season: int
    episode: int
    pattern: str = ""

    @property
    def kind(self) -> MediaKind:
        return MediaKind.SERIES

    @property
    def name(self) -> str:
        return self.show_name

    @property
    def year(self) -> None:
        return None


@dataclass(frozen=True)
class MovieMatch:
    """A filename recognised as a movie."""
    title: str
    year: int
    pattern: str = ""

    @property
    def kind(self) -> MediaKind:
        return MediaKind.MOVIE

    @property
    def name(self) -> str:
        return self.title


@dataclass(frozen=True)
class Unclassified:
    """No configured rule matched the normalized name."""
    normalized_name: str


ClassificationResult = Union[TVMatch, MovieMatch, Unclassified]


@dataclass(frozen=True)
class ResolvedMetadata:
    """
    Canonical naming data for a classified file.

    `match` keeps the fields extracted from the filename so the pipeline can
    fall back to them when the provider gave nothing usable.
    """
    title: str
    match: Union[TVMatch, MovieMatch]
    external_id: str | None = None
    confidence: str | None = None

    @property
    def degraded(self) -> bool:
        return self.external_id is None


@dataclass(frozen=True)
class Destination:
    """Where a file should end up and how it gets there."""
    path: Path
    needs_directory: bool
    action: ActionKind


@dataclass(frozen=True)
class Skipped:
    reason: str


@dataclass(frozen=True)
class Planned:
    destination: Path


@dataclass(frozen=True)
class Succeeded:
    destination: Path


@dataclass(frozen=True)
class Failed:
    error_kind: str
    message: str = ""


ActionOutcome = Union[Skipped, Planned, Succeeded, Failed]


@dataclass(frozen=True)
class FileReport:
    """Everything reported for a single processed file."""
    source: Path
    outcome: ActionOutcome | None
    classification: ClassificationResult
    metadata: ResolvedMetadata | None = None

    @property
    def destination(self) -> Path | None:
        return getattr(self.outcome, "destination", None)
