"""Tests for the command line entry point."""

import pytest

from mediarenamer import cli
from mediarenamer.models import ActionKind
from mediarenamer.utils import logger

CONFIG_TOML = """
tvdb_api_key = "<ENTER HERE THE TVDB API KEY>"
extensions = ["mkv"]
tv_regex = ['(?<name>.*) [Ss](?<season>[0-9]+)[Ee](?<episode>[0-9]+)']
movie_regex = ['(?<name>.*) (?<year>[0-9]+) ']
replacements = [[".", " "]]
ignored_dirs = ["Samples"]
"""


@pytest.fixture
def workspace(tmp_path):
    downloads = tmp_path / "downloads"
    downloads.mkdir()
    (downloads / "Show.Name.S01E02.mkv").write_bytes(b"episode")
    (downloads / "Some.Movie.2021.1080p.mkv").write_bytes(b"movie")
    config_path = tmp_path / "config.toml"
    config_path.write_text(CONFIG_TOML, encoding="utf-8")
    return tmp_path, downloads, config_path


def invoke(workspace, *extra):
    tmp_path, downloads, config_path = workspace
    argv = [
        "--input", str(downloads),
        "--output", str(tmp_path / "plex"),
        "--config", str(config_path),
        "--log-file", str(tmp_path / "log.txt"),
        "--offline",
        "--no-progress",
        *extra,
    ]
    return cli.main(argv)


class TestArguments:

    def test_defaults(self):
        args = cli.build_parser().parse_args(["-i", "in", "-o", "out"])
        assert args.action is ActionKind.TEST
        assert args.max_depth is None
        assert args.workers is None

    def test_action_choices(self):
        args = cli.build_parser().parse_args(["-i", "in", "-o", "out", "-a", "symlink"])
        assert args.action is ActionKind.SYMLINK
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-i", "in", "-o", "out", "-a", "delete"])

    def test_input_and_output_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-i", "in"])


class TestMain:

    def test_dry_run_changes_nothing(self, workspace, capsys):
        tmp_path, downloads, _ = workspace
        assert invoke(workspace) == 0
        assert not (tmp_path / "plex").exists()
        assert "Planned:        2" in capsys.readouterr().out

    def test_copy_builds_library(self, workspace):
        tmp_path, downloads, _ = workspace
        assert invoke(workspace, "--action", "copy", "--workers", "1") == 0
        plex = tmp_path / "plex"
        assert (plex / "Show Name" / "Season 01" / "Show Name - S01E02.mkv").read_bytes() == b"episode"
        assert (plex / "Some Movie (2021)" / "Some Movie (2021).mkv").read_bytes() == b"movie"
        assert (downloads / "Show.Name.S01E02.mkv").exists()

    def test_outcomes_written_to_log_file(self, workspace):
        tmp_path, _, _ = workspace
        invoke(workspace)
        text = (tmp_path / "log.txt").read_text(encoding="utf-8")
        assert "rename.outcome" in text
        assert "renamer.end" in text

    def test_failed_files_do_not_change_exit_code(self, workspace):
        tmp_path, _, _ = workspace
        (tmp_path / "plex").write_text("not a directory")
        assert invoke(workspace, "--action", "copy") == 0

    def test_invalid_config_is_fatal(self, workspace):
        _, _, config_path = workspace
        config_path.write_text("tv_regex = [", encoding="utf-8")
        assert invoke(workspace) == 2

    def test_missing_input_is_fatal(self, workspace):
        tmp_path, _, config_path = workspace
        argv = [
            "-i", str(tmp_path / "missing"),
            "-o", str(tmp_path / "plex"),
            "--config", str(config_path),
            "--log-file", str(tmp_path / "log.txt"),
            "--offline",
            "--no-progress",
        ]
        assert cli.main(argv) == 2

    def test_negative_workers_is_fatal(self, workspace):
        assert invoke(workspace, "--workers", "0") == 2

    def test_missing_config_is_created(self, workspace):
        tmp_path, _, _ = workspace
        new_config = tmp_path / "fresh" / "config.toml"
        assert invoke(workspace, "--config", str(new_config)) == 0
        assert new_config.is_file()

    def test_log_level_follows_verbose_flag(self, workspace):
        invoke(workspace, "--verbose")
        assert logger.get_log_level() is logger.LogLevel.DEBUG


def test_build_resolver_without_key_is_offline(make_config):
    config = make_config(tvdb_api_key="<ENTER HERE THE TVDB API KEY>")
    if config.has_api_key:
        pytest.skip("API key provided by the environment")
    assert cli.build_resolver(config, offline=False) is None


def test_build_resolver_with_key(make_config):
    resolver = cli.build_resolver(make_config(tvdb_api_key="abc", strict_matching=True), offline=False)
    assert resolver.strict
    assert cli.build_resolver(make_config(tvdb_api_key="abc"), offline=True) is None
