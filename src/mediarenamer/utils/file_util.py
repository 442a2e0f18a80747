"""
Filesystem helpers: candidate discovery and name sanitization.

`DirectoryWalker` enumerates the media files below an input path, pruning
ignored directory names and honouring an optional depth limit. Unreadable
sub-directories are reported and skipped; only an inaccessible root is fatal.
"""
import os
from pathlib import Path
from typing import Iterable, Iterator

from mediarenamer.models import CandidateFile
from mediarenamer.utils import logger
from mediarenamer.utils.constants import INVALID_PATH_CHARS, SAFE_PLACEHOLDER
from mediarenamer.utils.logger import LogLevel


class InputError(Exception):
    """The input path cannot be used (missing, unreadable, not listable)."""

    pass


def get_extension(path: Path) -> str | None:
    """Return the text after the final '.' of the file name, or None."""
    name = path.name
    if "." not in name:
        return None
    return name.rpartition(".")[2]


def extension_matches(path: Path, extensions: Iterable[str]) -> bool:
    """Case-insensitive membership test of the file's extension."""
    ext = get_extension(path)
    if ext is None:
        return False
    return ext.lower() in {e.lower() for e in extensions}


def sanitize_filename(name: str) -> str:
    """
    Replace characters that are invalid in a path component with a placeholder.

    Applying it to an already sanitized name returns the name unchanged.
    """
    translation_table = {ord(c): SAFE_PLACEHOLDER for c in INVALID_PATH_CHARS}
    translation_table.update({i: SAFE_PLACEHOLDER for i in range(32)})
    cleaned = name.translate(translation_table).strip().rstrip(". ")
    if not cleaned or cleaned in (".", ".."):
        return SAFE_PLACEHOLDER
    return cleaned


class DirectoryWalker:
    """
    Lazy, single-use iterator over the candidate files below `root`.

    The root has depth 0 and a directory is listed only while its depth is
    below `max_depth` (no limit when None). Directories whose name is in
    `ignored_dirs` are never entered, whatever the remaining depth. A root
    that is a regular file is checked against the extension filter and
    yielded alone.

    Per-entry failures are collected in `errors` as (path, exception) pairs;
    with `abort_on_unreadable` the first one raises `InputError` instead.
    """

    def __init__(
        self,
        root: Path,
        extensions: Iterable[str],
        max_depth: int | None = None,
        ignored_dirs: Iterable[str] = (),
        abort_on_unreadable: bool = False,
    ):
        self.root = Path(root)
        self.extensions = frozenset(e.lower() for e in extensions)
        self.max_depth = max_depth
        self.ignored_dirs = frozenset(ignored_dirs)
        self.abort_on_unreadable = abort_on_unreadable
        self.errors: list[tuple[Path, OSError]] = []

        if not self.root.exists():
            raise InputError(f"Input path {self.root} does not exist")

        if self.root.is_dir():
            try:
                root_entries = self._list(self.root)
            except OSError as e:
                raise InputError(f"Could not list input directory {self.root}: {e}") from e
            self._iterator = self._walk(root_entries)
        else:
            self._iterator = self._single_file()

    def __iter__(self) -> Iterator[CandidateFile]:
        return self

    def __next__(self) -> CandidateFile:
        return next(self._iterator)

    def _single_file(self) -> Iterator[CandidateFile]:
        if extension_matches(self.root, self.extensions):
            yield CandidateFile(self.root.absolute(), 0, get_extension(self.root))
        else:
            logger.log("walk.filtered", LogLevel.WARN, path=str(self.root), reason="extension not configured")

    def _list(self, directory: Path) -> list[os.DirEntry]:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)

    def _descend_allowed(self, depth: int) -> bool:
        return self.max_depth is None or depth < self.max_depth

    def _record_error(self, path: Path, error: OSError) -> None:
        if self.abort_on_unreadable:
            raise InputError(f"Could not read {path}: {error}") from error
        self.errors.append((path, error))
        logger.log("walk.unreadable", LogLevel.WARN, path=str(path), error=str(error))

    def _walk(self, root_entries: list[os.DirEntry]) -> Iterator[CandidateFile]:
        if not self._descend_allowed(0):
            return

        # Depth-first, directories processed in name order.
        stack: list[tuple[list[os.DirEntry], int]] = [(root_entries, 1)]
        while stack:
            entries, depth = stack.pop()
            subdirs = []
            for entry in entries:
                path = Path(entry.path)
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_file = not is_dir and entry.is_file()
                except OSError as e:
                    self._record_error(path, e)
                    continue

                if is_dir:
                    if entry.name in self.ignored_dirs:
                        logger.log("walk.ignored", LogLevel.DEBUG, path=str(path))
                        continue
                    if self._descend_allowed(depth):
                        subdirs.append((path, depth))
                    continue

                if is_file and extension_matches(path, self.extensions):
                    yield CandidateFile(path.absolute(), depth, get_extension(path))

            for subdir, subdir_depth in reversed(subdirs):
                try:
                    sub_entries = self._list(subdir)
                except OSError as e:
                    self._record_error(subdir, e)
                    continue
                logger.log("walk.descend", LogLevel.TRACE, path=str(subdir), depth=subdir_depth)
                stack.append((sub_entries, subdir_depth + 1))
