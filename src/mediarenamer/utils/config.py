"""
Loading and validation of the TOML configuration file.

The configuration is read once per run into an immutable `Config`. All
regular expressions are compiled here, so a bad pattern stops the run before
any file is touched. When the file does not exist yet it is created with the
documented defaults.
"""
import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mediarenamer.utils import constants, logger
from mediarenamer.utils.logger import LogLevel

# Rust/PCRE style "(?<group>" is accepted and rewritten to Python's "(?P<group>".
_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?<(?=[A-Za-z_])")

_REQUIRED_FIELDS = ("tvdb_api_key", "extensions", "tv_regex", "movie_regex", "replacements", "ignored_dirs")


class ConfigError(Exception):
    """The configuration cannot be used; fatal for the whole run."""

    pass


@dataclass(frozen=True)
class Config:
    """Immutable run configuration with precompiled patterns."""

    tvdb_api_key: str
    extensions: frozenset[str]
    tv_patterns: tuple[re.Pattern, ...]
    movie_patterns: tuple[re.Pattern, ...]
    replacements: tuple[tuple[str, str], ...]
    ignored_dirs: frozenset[str]
    workers: int = constants.WORKERS
    lookup_timeout: float = constants.LOOKUP_TIMEOUT
    strict_matching: bool = False
    abort_on_unreadable: bool = False
    source: Path | None = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Path | None = None) -> "Config":
        """Validate a raw mapping (as parsed from TOML) and build a Config."""
        missing = [name for name in _REQUIRED_FIELDS if name not in data]
        if missing:
            raise ConfigError(f"Missing configuration field(s): {', '.join(missing)}")

        api_key = _expect(data, "tvdb_api_key", str)
        extensions = _expect_str_list(data, "extensions")
        tv_regex = _expect_str_list(data, "tv_regex")
        movie_regex = _expect_str_list(data, "movie_regex")
        ignored_dirs = _expect_str_list(data, "ignored_dirs")

        replacements = []
        for pair in _expect(data, "replacements", list):
            if not (isinstance(pair, list) and len(pair) == 2 and all(isinstance(p, str) for p in pair)):
                raise ConfigError(f"Replacement {pair!r} must be a pair of strings")
            if not pair[0]:
                raise ConfigError("Replacement source text must not be empty")
            replacements.append((pair[0], pair[1]))

        workers = _expect(data, "workers", int, constants.WORKERS)
        if workers < 1:
            raise ConfigError("workers must be at least 1")
        timeout = _expect(data, "lookup_timeout", (int, float), constants.LOOKUP_TIMEOUT)
        if timeout <= 0:
            raise ConfigError("lookup_timeout must be positive")

        return cls(
            tvdb_api_key=constants.TVDB_API_KEY or api_key,
            extensions=frozenset(e.lower().lstrip(".") for e in extensions),
            tv_patterns=tuple(compile_pattern(p, constants.TV_GROUPS) for p in tv_regex),
            movie_patterns=tuple(compile_pattern(p, constants.MOVIE_GROUPS) for p in movie_regex),
            replacements=tuple(replacements),
            ignored_dirs=frozenset(ignored_dirs),
            workers=workers,
            lookup_timeout=float(timeout),
            strict_matching=_expect(data, "strict_matching", bool, False),
            abort_on_unreadable=_expect(data, "abort_on_unreadable", bool, False),
            source=source,
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.tvdb_api_key) and self.tvdb_api_key != constants.DEFAULT_API_KEY_PLACEHOLDER


def _expect(data: dict, name: str, kind, default=None):
    value = data.get(name, default)
    # bool is a subclass of int; don't let `workers = true` through.
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is not bool):
        raise ConfigError(f"Configuration field '{name}' has the wrong type")
    return value


def _expect_str_list(data: dict, name: str) -> list[str]:
    value = _expect(data, name, list)
    if not all(isinstance(v, str) for v in value):
        raise ConfigError(f"Configuration field '{name}' must be a list of strings")
    return value


def compile_pattern(pattern: str, required_groups: tuple[str, ...]) -> re.Pattern:
    """Compile a user pattern and check it defines every required named group."""
    try:
        compiled = re.compile(_NAMED_GROUP_RE.sub("(?P<", pattern))
    except re.error as e:
        raise ConfigError(f"Invalid regex {pattern!r}: {e}") from e

    missing = [g for g in required_groups if g not in compiled.groupindex]
    if missing:
        raise ConfigError(f"Regex {pattern!r} lacks named group(s): {', '.join(missing)}")
    return compiled


def default_config_path() -> Path:
    return constants.CONFIG_DIR / constants.CONFIG_FILENAME


def default_config_text() -> str:
    """Documented default configuration written on first run."""
    return "\n".join([
        "# media-renamer configuration",
        "",
        "# API key for TheTVDB, https://thetvdb.com/api-information",
        "# (the MEDIA_RENAMER_TVDB_API_KEY environment variable takes precedence)",
        f"tvdb_api_key = {json.dumps(constants.DEFAULT_API_KEY_PLACEHOLDER)}",
        "",
        "# Extensions of the files that should be processed, case-insensitive",
        f"extensions = {json.dumps(constants.DEFAULT_EXTENSIONS)}",
        "",
        "# TV episode patterns, tried in order before any movie pattern.",
        "# Each needs the named groups name, season and episode.",
        f"tv_regex = {json.dumps(constants.DEFAULT_TV_REGEX)}",
        "",
        "# Movie patterns, tried in order. Each needs the named groups name and year.",
        f"movie_regex = {json.dumps(constants.DEFAULT_MOVIE_REGEX)}",
        "",
        "# Literal [from, to] replacements applied to the file name before matching",
        f"replacements = {json.dumps(constants.DEFAULT_REPLACEMENTS)}",
        "",
        "# Directories with exactly these names are never entered",
        f"ignored_dirs = {json.dumps(constants.DEFAULT_IGNORED_DIRS)}",
        "",
        "# Optional settings",
        f"workers = {constants.WORKERS}",
        f"lookup_timeout = {constants.LOOKUP_TIMEOUT}",
        "# Refuse to pick between equally ranked provider matches",
        "strict_matching = false",
        "# Stop the run when a sub-directory cannot be read",
        "abort_on_unreadable = false",
        "",
    ])


def write_default_config(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(default_config_text(), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not write default configuration to {path}: {e}") from e
    logger.log("config.created", LogLevel.INFO, path=str(path))


def load_config(path: Path | None = None) -> Config:
    """Read the TOML file at `path` (default location when None), creating it if missing."""
    config_path = Path(path) if path else default_config_path()
    if not config_path.exists():
        write_default_config(config_path)

    logger.log("config.read", LogLevel.INFO, path=str(config_path))
    try:
        with open(config_path, "rb") as fh:
            data = tomllib.load(fh)
    except OSError as e:
        raise ConfigError(f"Could not read config {config_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Could not parse config {config_path}: {e}") from e

    return Config.from_dict(data, source=config_path)
