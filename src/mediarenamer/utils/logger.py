"""
Provides structured logging with thread-safety and log levels.

Every line carries a UTC timestamp, the level, a dotted event name and
key-value pairs, e.g.:

    2025-03-01 10:00:00 | [INFO] | rename.outcome | status="OK" | worker=w2

Lines go through `tqdm.write` so they never break an active progress bar and
can additionally be appended to a log file.
"""
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Dict, TextIO

from tqdm import tqdm

_print_lock = threading.Lock()
_worker_id_map = {}
_worker_counter = 0
_worker_lock = threading.Lock()
_separator = " | "
_log_file: TextIO | None = None


class LogLevel(Enum):
    """Log level enumeration."""
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4


_current_level = LogLevel.INFO


def set_log_level(level: LogLevel) -> None:
    """Set the current log level."""
    global _current_level
    _current_level = level


def get_log_level() -> LogLevel:
    """Get the current log level."""
    return _current_level


def set_log_file(path: Path | None) -> None:
    """Also append every log line to `path`; pass None to stop."""
    global _log_file
    with _print_lock:
        if _log_file is not None:
            _log_file.close()
            _log_file = None
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            _log_file = open(path, "a", encoding="utf-8", buffering=1)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (str, PurePath)):
        # Keep entries single-line and quoted.
        text = str(value).replace("\r", "\\r").replace("\n", "\\n").replace('"', '\\"')
        return f'"{text}"'
    return str(value)


def _format_kv(data: Dict[str, Any]) -> str:
    return _separator.join(f"{key}={_format_value(value)}" for key, value in data.items())


def _write_line(text: str) -> None:
    tqdm.write(text)
    if _log_file is not None:
        _log_file.write(text + "\n")


def _should_log(level: LogLevel) -> bool:
    """Check if a message at the given level should be logged."""
    return level.value >= _current_level.value


def log(event: str, level: LogLevel = LogLevel.INFO, **kwargs) -> None:
    """
    Structured logging function.

    Args:
        event: Event name (e.g., 'walk.skip', 'rename.outcome')
        level: Log level (TRACE, DEBUG, INFO, WARN, ERROR)
        **kwargs: Key-value pairs to log
    """
    if not _should_log(level):
        return

    if "worker" not in kwargs:
        kwargs["worker"] = get_worker_id()

    with _print_lock:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        kv_str = _format_kv(kwargs) if kwargs else ""
        header = f"{timestamp}{_separator}[{level.name}]{_separator}{event}"

        if kv_str:
            _write_line(f"{header}{_separator}{kv_str}")
        else:
            _write_line(header)


def safe_print(*args) -> None:
    """Thread-safe print for plain, human-facing output (summaries, banners)."""
    with _print_lock:
        _write_line(" ".join(str(a) for a in args))


def get_worker_id() -> str:
    """Get current worker/thread identifier (numeric ID for worker threads)."""
    global _worker_counter
    thread = threading.current_thread()

    if thread.name == "MainThread":
        return "main"

    with _worker_lock:
        if thread.ident in _worker_id_map:
            return _worker_id_map[thread.ident]
        _worker_counter += 1
        worker_id = f"w{_worker_counter}"
        _worker_id_map[thread.ident] = worker_id
        return worker_id
