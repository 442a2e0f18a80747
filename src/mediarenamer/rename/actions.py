"""
File actions: dry run, move, copy and symlink.

Every action ends in one terminal outcome per file. Existing destinations are
never overwritten: the file is skipped instead. Copies are written with
exclusive creation and removed again if anything fails, so a failed copy or
cross-volume move leaves the source untouched and no partial destination
behind.
"""

import errno
import os
import shutil
import threading
from pathlib import Path

from mediarenamer.models import ActionKind, ActionOutcome, Destination, Failed, Planned, Skipped, Succeeded
from mediarenamer.utils import logger
from mediarenamer.utils.logger import LogLevel

REASON_CONFLICT = "destination exists"

# link() failures meaning "no hard links here", not "destination taken"
_NO_LINK_ERRNOS = {errno.EXDEV, errno.EPERM, errno.EMLINK, errno.ENOTSUP, errno.EOPNOTSUPP}


def same_filesystem(path_a: Path, path_b: Path) -> bool:
    """Check if two existing paths are on the same filesystem."""
    try:
        return os.stat(path_a).st_dev == os.stat(path_b).st_dev
    except OSError:
        return False


def ensure_directory(directory: Path) -> None:
    """Create `directory` if missing; fails if it exists as something else."""
    directory.mkdir(parents=True, exist_ok=True)


def copy_file(source: Path, target: Path) -> None:
    """Copy content and timestamps to a new file; removes the partial target on failure."""
    try:
        with open(source, "rb") as src, open(target, "xb") as dst:
            shutil.copyfileobj(src, dst)
    except FileExistsError:
        raise
    except BaseException:
        target.unlink(missing_ok=True)
        raise

    try:
        shutil.copystat(source, target)
    except BaseException:
        target.unlink(missing_ok=True)
        raise


def move_file(source: Path, target: Path) -> None:
    """
    Move without ever replacing `target`.

    On the same volume the file is hard-linked to its new name, which fails
    if the name is taken, and the old name is then removed. Volumes without
    hard links and cross-volume moves copy then delete the source.
    """
    if same_filesystem(source, target.parent):
        try:
            os.link(source, target, follow_symlinks=False)
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno not in _NO_LINK_ERRNOS:
                raise
        else:
            _unlink_source(source, target)
            return

    copy_file(source, target)
    _unlink_source(source, target)


def _unlink_source(source: Path, target: Path) -> None:
    try:
        source.unlink()
    except BaseException:
        target.unlink(missing_ok=True)
        raise


def symlink_file(source: Path, target: Path) -> None:
    """Create `target` as a link to the absolute path of the existing `source`."""
    os.symlink(source.resolve(strict=True), target)


_ACTIONS = {
    ActionKind.MOVE: move_file,
    ActionKind.COPY: copy_file,
    ActionKind.SYMLINK: symlink_file,
}


class ActionExecutor:
    """
    Performs one action mode for a whole run.

    Destinations are claimed under a lock before anything is written, so two
    sources mapping to the same destination in one run cannot both proceed:
    the second one is skipped as a conflict.
    """

    def __init__(self, mode: ActionKind):
        self.mode = mode
        self._lock = threading.Lock()
        self._claimed: set[Path] = set()

    def _claim(self, target: Path) -> bool:
        with self._lock:
            if target in self._claimed or os.path.lexists(target):
                return False
            self._claimed.add(target)
            return True

    def _release(self, target: Path) -> None:
        with self._lock:
            self._claimed.discard(target)

    def execute(self, source: Path, destination: Destination) -> ActionOutcome:
        target = destination.path
        if not self._claim(target):
            logger.log("action.conflict", LogLevel.WARN, source=str(source), destination=str(target))
            return Skipped(REASON_CONFLICT)

        if self.mode is ActionKind.TEST:
            return Planned(target)

        try:
            if destination.needs_directory:
                ensure_directory(target.parent)
        except OSError as e:
            logger.log("action.mkdir_error", LogLevel.ERROR, directory=str(target.parent), error=str(e))
            self._release(target)
            return Failed(type(e).__name__, str(e))

        try:
            _ACTIONS[self.mode](source, target)
        except FileExistsError:
            logger.log("action.conflict", LogLevel.WARN, source=str(source), destination=str(target))
            return Skipped(REASON_CONFLICT)
        except (OSError, shutil.Error) as e:
            logger.log(
                "action.error",
                LogLevel.ERROR,
                action=self.mode.value,
                source=str(source),
                destination=str(target),
                error=str(e),
            )
            self._release(target)
            return Failed(type(e).__name__, str(e))

        return Succeeded(target)
