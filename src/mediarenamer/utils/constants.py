"""
Constants and default settings for the media renamer.

This module holds the defaults written to a freshly created configuration
file, the per-file status codes used in reporting, the TVDB endpoint and the
worker pool size. Environment variables (optionally loaded from a `.env`
file) can override the API key and the configuration directory.
"""

import os
from pathlib import Path

try:
    from dotenv import load_dotenv
except Exception:
    load_dotenv = None

if load_dotenv:
    load_dotenv()

# Configuration location
CONFIG_DIR = Path(os.getenv("MEDIA_RENAMER_CONFIG_DIR", Path.home() / ".media-renamer"))
CONFIG_FILENAME = "config.toml"
LOG_FILENAME = "log.txt"

# TVDB API configuration
TVDB_API_KEY = os.getenv("MEDIA_RENAMER_TVDB_API_KEY")
TVDB_BASE_URL = "https://api4.thetvdb.com/v4"
LOOKUP_TIMEOUT = 10

# Run settings
WORKERS = 4

# Defaults for a newly created config file
DEFAULT_API_KEY_PLACEHOLDER = "<ENTER HERE THE TVDB API KEY>"
DEFAULT_EXTENSIONS = ["mkv", "srr"]
DEFAULT_TV_REGEX = [
    "(?<name>.*) [Ss](?<season>[0-9]+)[Ee](?<episode>[0-9]+)",  # Series Name S01E01
]
DEFAULT_MOVIE_REGEX = [
    "(?<name>.*) (?<year>[0-9]+) ",  # Movie Name 2025
]
DEFAULT_REPLACEMENTS = [[".", " "]]
DEFAULT_IGNORED_DIRS = ["Sample", "sample", "Samples", "samples"]

# Named groups each rule set must provide
TV_GROUPS = ("name", "season", "episode")
MOVIE_GROUPS = ("name", "year")

# Placeholder for characters that cannot appear in a path component
SAFE_PLACEHOLDER = "_"
INVALID_PATH_CHARS = '<>:"/\\|?*'

# Match confidence indicators
CONFIDENCE_EXACT = "exact"
CONFIDENCE_BEST_GUESS = "best_guess"
CONFIDENCE_FALLBACK = "fallback"
CONFIDENCE_AMBIGUOUS = "ambiguous"

# Processing status codes
STATUS_UNCLASSIFIED = "UNCLASSIFIED"
STATUS_SKIP = "SKIP"
STATUS_DRY_RUN = "DRY-RUN"
STATUS_OK = "OK"
STATUS_FAIL = "FAIL"

# Exit codes
EXIT_OK = 0
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130
