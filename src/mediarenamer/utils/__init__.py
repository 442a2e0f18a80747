"""
Constants, logging, configuration and external-service helpers.

This package collects the pieces the rename pipeline depends on but that are
not part of the per-file decision itself: the structured logger, the TOML
configuration layer, the directory walker, the TVDB client and the caching
metadata resolver.
"""

from .constants import (
    CONFIDENCE_AMBIGUOUS,
    CONFIDENCE_BEST_GUESS,
    CONFIDENCE_EXACT,
    CONFIDENCE_FALLBACK,
    CONFIG_DIR,
    STATUS_DRY_RUN,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_SKIP,
    STATUS_UNCLASSIFIED,
    TVDB_BASE_URL,
    WORKERS,
)
from .logger import LogLevel

__all__ = [
    "CONFIDENCE_AMBIGUOUS",
    "CONFIDENCE_BEST_GUESS",
    "CONFIDENCE_EXACT",
    "CONFIDENCE_FALLBACK",
    "CONFIG_DIR",
    "STATUS_DRY_RUN",
    "STATUS_FAIL",
    "STATUS_OK",
    "STATUS_SKIP",
    "STATUS_UNCLASSIFIED",
    "TVDB_BASE_URL",
    "WORKERS",
    "LogLevel",
]
