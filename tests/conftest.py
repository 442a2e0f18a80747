import threading

import pytest

from mediarenamer.utils import logger
from mediarenamer.utils.config import Config
from mediarenamer.utils.logger import LogLevel

TV_REGEX = "(?<name>.*) S(?<season>[0-9]+)E(?<episode>[0-9]+)"
MOVIE_REGEX = "(?<name>.*) (?<year>[0-9]+) "


def config_data(**overrides):
    data = {
        "tvdb_api_key": "test-key",
        "extensions": ["mkv", "mp4"],
        "tv_regex": [TV_REGEX],
        "movie_regex": [MOVIE_REGEX],
        "replacements": [[".", " "]],
        "ignored_dirs": ["Samples"],
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def quiet_logger():
    logger.set_log_level(LogLevel.ERROR)
    yield
    logger.set_log_level(LogLevel.INFO)


@pytest.fixture
def make_config():
    def _make(**overrides) -> Config:
        return Config.from_dict(config_data(**overrides))
    return _make


@pytest.fixture
def config(make_config):
    return make_config()


class FakeProvider:
    """Deterministic stand-in for TvdbClient."""

    def __init__(self, results=None, error=None, delay=None):
        self.results = results or {}
        self.error = error
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def search(self, name, media_type, year=None):
        with self._lock:
            self.calls.append((name, media_type, year))
        if self.delay is not None:
            self.delay.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return list(self.results.get(name, []))


@pytest.fixture
def fake_provider():
    return FakeProvider
