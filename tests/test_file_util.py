"""Tests for the directory walker and name sanitization."""

import os
import sys

import pytest

from mediarenamer.utils.file_util import (
    DirectoryWalker,
    InputError,
    extension_matches,
    get_extension,
    sanitize_filename,
)


def touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    return path


@pytest.fixture
def tree(tmp_path):
    """
    root/
      a.mkv
      notes.txt
      Show/b.MKV
      Show/Season 1/c.mkv
      Samples/s.mkv
      Show/Samples/deep.mkv
    """
    root = tmp_path / "root"
    touch(root / "a.mkv")
    touch(root / "notes.txt")
    touch(root / "Show" / "b.MKV")
    touch(root / "Show" / "Season 1" / "c.mkv")
    touch(root / "Samples" / "s.mkv")
    touch(root / "Show" / "Samples" / "deep.mkv")
    return root


def names(walker):
    return sorted(c.path.name for c in walker)


class TestExtensions:

    def test_get_extension_uses_final_dot(self):
        from pathlib import Path
        assert get_extension(Path("a.b.MKV")) == "MKV"
        assert get_extension(Path("README")) is None

    def test_extension_matches_case_insensitive(self):
        from pathlib import Path
        assert extension_matches(Path("x.Mkv"), {"mkv"})
        assert not extension_matches(Path("x.mkv.part"), {"mkv"})


class TestDirectoryWalker:

    def test_unlimited_depth(self, tree):
        walker = DirectoryWalker(tree, {"mkv"}, ignored_dirs={"Samples"})
        assert names(walker) == ["a.mkv", "b.MKV", "c.mkv"]

    def test_ignored_dirs_pruned_at_any_depth(self, tree):
        for depth in (None, 1, 2, 3, 10):
            walker = DirectoryWalker(tree, {"mkv"}, max_depth=depth, ignored_dirs={"Samples"})
            assert all("Samples" not in c.path.parts for c in walker)

    def test_ignored_match_is_exact(self, tree):
        walker = DirectoryWalker(tree, {"mkv"}, ignored_dirs={"samples"})
        assert "s.mkv" in names(walker)

    def test_depth_limit(self, tree):
        assert names(DirectoryWalker(tree, {"mkv"}, max_depth=1, ignored_dirs={"Samples"})) == ["a.mkv"]
        assert names(DirectoryWalker(tree, {"mkv"}, max_depth=2, ignored_dirs={"Samples"})) == ["a.mkv", "b.MKV"]

    def test_depth_zero_lists_nothing(self, tree):
        assert names(DirectoryWalker(tree, {"mkv"}, max_depth=0)) == []

    def test_candidate_fields(self, tree):
        by_name = {c.path.name: c for c in DirectoryWalker(tree, {"mkv"}, ignored_dirs={"Samples"})}
        assert by_name["a.mkv"].depth == 1
        assert by_name["c.mkv"].depth == 3
        assert by_name["b.MKV"].extension == "MKV"
        assert by_name["b.MKV"].stem == "b"
        assert by_name["a.mkv"].path.is_absolute()

    def test_root_file(self, tree):
        walker = DirectoryWalker(tree / "a.mkv", {"mkv"})
        candidates = list(walker)
        assert len(candidates) == 1
        assert candidates[0].depth == 0

    def test_root_file_filtered_out(self, tree):
        assert list(DirectoryWalker(tree / "notes.txt", {"mkv"})) == []

    def test_missing_root_is_input_error(self, tmp_path):
        with pytest.raises(InputError):
            DirectoryWalker(tmp_path / "missing", {"mkv"})

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlinked_file_keeps_its_own_name(self, tmp_path):
        store = touch(tmp_path / "store" / "blob123.mkv")
        root = tmp_path / "in"
        root.mkdir()
        link = root / "Show.Name.S01E02.mkv"
        link.symlink_to(store)

        (candidate,) = list(DirectoryWalker(root, {"mkv"}))
        assert candidate.path == link.absolute()
        assert candidate.stem == "Show.Name.S01E02"

        (single,) = list(DirectoryWalker(link, {"mkv"}))
        assert single.path == link.absolute()

    def test_not_restartable(self, tree):
        walker = DirectoryWalker(tree, {"mkv"})
        assert list(walker)
        assert list(walker) == []

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    def test_unreadable_subdirectory_is_reported(self, tree):
        locked = tree / "Show"
        locked.chmod(0)
        try:
            walker = DirectoryWalker(tree, {"mkv"}, ignored_dirs={"Samples"})
            assert names(walker) == ["a.mkv"]
            assert [p for p, _ in walker.errors] == [locked]

            strict = DirectoryWalker(tree, {"mkv"}, ignored_dirs={"Samples"}, abort_on_unreadable=True)
            with pytest.raises(InputError):
                list(strict)
        finally:
            locked.chmod(0o755)


class TestSanitizeFilename:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Plain Name", "Plain Name"),
            ("AC/DC: Live", "AC_DC_ Live"),
            ('What? "Quotes" <x>|y*', "What_ _Quotes_ _x__y_"),
            ("Trailing dot.", "Trailing dot"),
            ("..", "_"),
            ("", "_"),
        ],
    )
    def test_substitutes_placeholder(self, raw, expected):
        assert sanitize_filename(raw) == expected

    @pytest.mark.parametrize("raw", ["AC/DC: Live", "a\\b", "  spaced  ", "x\ty", "..", "ok"])
    def test_idempotent(self, raw):
        once = sanitize_filename(raw)
        assert sanitize_filename(once) == once
