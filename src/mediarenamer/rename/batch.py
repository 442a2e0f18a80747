"""Batch renaming of every candidate found below the input path.

Candidates come from the directory walker and are processed by a bounded
thread pool, at most `workers` files in flight, each file independently of
the others. A cancellation event stops the dispatch of new files while files
already being processed run to their terminal outcome. Each outcome is
logged as it completes and counted into a `RunSummary`.
"""
import time
from collections import Counter
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event
from typing import Iterable

from tqdm import tqdm

from mediarenamer.models import ActionKind, CandidateFile, Failed, FileReport, Planned, Skipped, Succeeded, Unclassified
from mediarenamer.rename import core
from mediarenamer.rename.actions import ActionExecutor
from mediarenamer.utils import (
    STATUS_DRY_RUN,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_SKIP,
    STATUS_UNCLASSIFIED,
    WORKERS,
    logger,
)
from mediarenamer.utils.config import Config
from mediarenamer.utils.logger import LogLevel
from mediarenamer.utils.resolver import MetadataResolver

_STATUS_LEVELS = {
    STATUS_UNCLASSIFIED: LogLevel.WARN,
    STATUS_SKIP: LogLevel.WARN,
    STATUS_DRY_RUN: LogLevel.INFO,
    STATUS_OK: LogLevel.INFO,
    STATUS_FAIL: LogLevel.ERROR,
}


def status_of(report: FileReport) -> str:
    """Map a file report to its status code."""
    outcome = report.outcome
    if outcome is None:
        return STATUS_UNCLASSIFIED
    if isinstance(outcome, Skipped):
        return STATUS_SKIP
    if isinstance(outcome, Planned):
        return STATUS_DRY_RUN
    if isinstance(outcome, Succeeded):
        return STATUS_OK
    return STATUS_FAIL


@dataclass
class RunSummary:
    """Counts by outcome kind for one run."""
    counts: Counter = field(default_factory=Counter)
    degraded: int = 0
    traversal_errors: int = 0
    cancelled: bool = False
    reports: list[FileReport] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def add(self, report: FileReport) -> None:
        self.reports.append(report)
        self.counts[status_of(report)] += 1
        if report.metadata is not None and report.metadata.degraded:
            self.degraded += 1


def report_outcome(report: FileReport) -> None:
    """Log the one-line outcome of a processed file."""
    status = status_of(report)
    fields = {"status": status, "source": str(report.source)}
    outcome = report.outcome
    if isinstance(outcome, (Planned, Succeeded)):
        fields["destination"] = str(outcome.destination)
    elif isinstance(outcome, Skipped):
        fields["reason"] = outcome.reason
    elif isinstance(outcome, Failed):
        fields["error_kind"] = outcome.error_kind
        fields["error"] = outcome.message
    elif isinstance(report.classification, Unclassified):
        fields["normalized"] = report.classification.normalized_name
    if report.metadata is not None:
        fields["title"] = report.metadata.title
        fields["external_id"] = report.metadata.external_id
        fields["confidence"] = report.metadata.confidence
    logger.log("rename.outcome", _STATUS_LEVELS[status], **fields)


def rename_files(
        candidates: Iterable[CandidateFile],
        config: Config,
        output_root: Path,
        action: ActionKind = ActionKind.TEST,
        resolver: MetadataResolver | None = None,
        workers: int = WORKERS,
        cancel_event: Event | None = None,
        show_progress: bool = True,
) -> RunSummary:
    """Process every candidate and return the run summary.

    Args:
        candidates (Iterable[CandidateFile]): Usually a `DirectoryWalker`.
        config (Config): Loaded configuration.
        output_root (Path): Root of the Plex library being written.
        action (ActionKind): Mode for the whole run.
        resolver (MetadataResolver | None): Metadata lookups; None means offline.
        workers (int): Maximum number of files processed at the same time.
        cancel_event (Event | None): When set, no further files are started.
        show_progress (bool): Display a tqdm progress bar.

    Returns:
        RunSummary: counts by outcome kind and the individual reports.
    """
    summary = RunSummary()
    executor = ActionExecutor(action)
    cancel_event = cancel_event or Event()
    start_time = time.time()

    logger.log(
        "renamer.start",
        LogLevel.INFO,
        action=action.value,
        output=str(output_root),
        workers=workers,
        offline=resolver is None,
    )

    in_flight: dict[Future, CandidateFile] = {}

    def _collect(done: Iterable[Future]) -> None:
        for fut in done:
            candidate = in_flight.pop(fut)
            if fut.cancelled():
                continue
            try:
                report = fut.result()
            except Exception as e:
                logger.log("rename.error", LogLevel.ERROR, source=str(candidate.path), error=str(e))
                report = FileReport(candidate.path, Failed(type(e).__name__, str(e)), Unclassified(candidate.stem))
            report_outcome(report)
            summary.add(report)
            progress.update(1)

    with ThreadPoolExecutor(max_workers=workers) as pool, tqdm(
        desc="Renaming files", unit="file", disable=not show_progress
    ) as progress:
        try:
            for candidate in candidates:
                if cancel_event.is_set():
                    break
                fut = pool.submit(core.process_file, candidate, config, output_root, executor, resolver)
                in_flight[fut] = candidate
                if len(in_flight) >= workers:
                    done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                    _collect(done)
        finally:
            if cancel_event.is_set():
                for fut in in_flight:
                    fut.cancel()
            # In-flight files always finish to a terminal outcome.
            done, _ = wait(list(in_flight))
            _collect(done)

    summary.cancelled = cancel_event.is_set()
    summary.traversal_errors = len(getattr(candidates, "errors", ()))
    logger.log(
        "renamer.end",
        LogLevel.INFO,
        runtime=f"{time.time() - start_time:.1f}s",
        total=summary.total,
        ok=summary.counts[STATUS_OK],
        dry_run=summary.counts[STATUS_DRY_RUN],
        skip=summary.counts[STATUS_SKIP],
        unclassified=summary.counts[STATUS_UNCLASSIFIED],
        fail=summary.counts[STATUS_FAIL],
        degraded=summary.degraded,
        traversal_errors=summary.traversal_errors,
        cancelled=summary.cancelled,
    )
    return summary
