"""
Metadata resolution with a run-scoped, thread-safe cache.

`MetadataResolver.resolve` turns a classified filename into canonical naming
data using a provider such as `TvdbClient`. Identical queries issued during
one run hit the provider once: the first worker to ask performs the lookup
and any worker asking for the same key meanwhile waits on the same future.
Failures are cached the same way, so a show whose lookup failed is not
retried for each of its episodes.
"""
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Union

from mediarenamer.models import MediaKind, MovieMatch, ResolvedMetadata, TVMatch
from mediarenamer.utils import constants, logger
from mediarenamer.utils.logger import LogLevel
from mediarenamer.utils.tvdb import AmbiguousMatchError, TvdbNotFoundError


class MetadataProvider(Protocol):
    def search(self, name: str, media_type: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True)
class _Lookup:
    title: str
    external_id: str | None
    confidence: str


def _rank(candidate: Dict[str, Any], year: Optional[int]) -> tuple[int, float]:
    year_match = 1 if year is not None and str(candidate.get("year") or "") == str(year) else 0
    try:
        score = float(candidate.get("score") or 0)
    except (TypeError, ValueError):
        score = 0.0
    return year_match, score


def choose_candidate(candidates: List[Dict[str, Any]], year: Optional[int], strict: bool) -> _Lookup:
    """
    Pick one candidate deterministically.

    Order of preference: exact year match, then highest `score`, then the
    provider's own order. With `strict`, differently named candidates sharing
    the best rank raise `AmbiguousMatchError`.
    """
    named = [c for c in candidates if isinstance(c, dict) and c.get("name")]
    if not named:
        raise TvdbNotFoundError("No candidates returned")

    ranks = [_rank(c, year) for c in named]
    best_rank = max(ranks)
    best = named[ranks.index(best_rank)]
    tied_names = {c["name"] for c, r in zip(named, ranks) if r == best_rank}

    if len(tied_names) > 1:
        if strict:
            raise AmbiguousMatchError(f"{len(tied_names)} equally ranked candidates: {sorted(tied_names)}")
        confidence = constants.CONFIDENCE_BEST_GUESS
    else:
        confidence = constants.CONFIDENCE_EXACT

    external_id = best.get("tvdb_id") or best.get("id")
    return _Lookup(best["name"], str(external_id) if external_id is not None else None, confidence)


def fallback_metadata(match: Union[TVMatch, MovieMatch], confidence: str = constants.CONFIDENCE_FALLBACK) -> ResolvedMetadata:
    """Naming data built only from the fields parsed out of the filename."""
    return ResolvedMetadata(title=match.name, match=match, external_id=None, confidence=confidence)


class MetadataResolver:
    """Memoizing front of a metadata provider."""

    def __init__(self, provider: MetadataProvider, strict: bool = False):
        self.provider = provider
        self.strict = strict
        self._lock = threading.Lock()
        self._entries: dict[tuple, Future] = {}
        self.lookups = 0

    @staticmethod
    def cache_key(kind: MediaKind, name: str, year: Optional[int]) -> tuple:
        return name, kind.value, year if kind is MediaKind.MOVIE else None

    def resolve(self, match: Union[TVMatch, MovieMatch]) -> ResolvedMetadata:
        """Resolve a classified file; provider failures propagate as `TvdbError`."""
        lookup = self._lookup(match.kind, match.name, match.year)
        return ResolvedMetadata(
            title=lookup.title,
            match=match,
            external_id=lookup.external_id,
            confidence=lookup.confidence,
        )

    def _lookup(self, kind: MediaKind, name: str, year: Optional[int]) -> _Lookup:
        key = self.cache_key(kind, name, year)
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future

        if not owner:
            logger.log("resolve.cached", LogLevel.TRACE, name=name, type=kind.value, year=year)
            return future.result()

        try:
            with self._lock:
                self.lookups += 1
            candidates = self.provider.search(name, kind.value, year if kind is MediaKind.MOVIE else None)
            result = choose_candidate(candidates, year, self.strict)
        except BaseException as e:
            future.set_exception(e)
            raise

        logger.log(
            "resolve.match",
            LogLevel.DEBUG,
            name=name,
            title=result.title,
            external_id=result.external_id,
            confidence=result.confidence,
        )
        future.set_result(result)
        return result
