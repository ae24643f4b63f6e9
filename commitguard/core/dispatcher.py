"""
CommitGuard Concurrent Dispatcher

Runs a per-file scan function over a stream of paths on a fixed-size
thread pool. A semaphore gates submission, so at most `concurrency`
files are in flight and the path iterator is consumed lazily. Results
are pushed to a shared queue and drained only after every worker has
joined.
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

import structlog

from commitguard.core.finding import Finding

log = structlog.get_logger("commitguard.dispatcher")


@dataclass
class FileOutcome:
    """What scanning one file produced."""

    path: Path
    findings: list[Finding] = field(default_factory=list)
    dependencies: list = field(default_factory=list)


@dataclass
class DispatchResult:
    files_dispatched: int = 0
    outcomes: list[FileOutcome] = field(default_factory=list)


class ConcurrentDispatcher:
    """Fixed-size worker pool with bounded in-flight work."""

    def __init__(self, concurrency: int = 4) -> None:
        self.concurrency = max(1, int(concurrency))

    def run(
        self,
        paths: Iterable[Path],
        scan_file: Callable[[Path], FileOutcome],
    ) -> DispatchResult:
        """
        Scan every path and block until all results are collected.

        A failure in one file is logged and replaced by an empty outcome;
        it never aborts sibling scans.
        """
        results: "queue.Queue[FileOutcome]" = queue.Queue()
        gate = threading.BoundedSemaphore(self.concurrency)
        dispatched = 0

        def worker(path: Path) -> None:
            try:
                outcome = scan_file(path)
            except Exception as exc:  # isolate failures per file
                log.debug("file_scan_failed", path=str(path), error=str(exc))
                outcome = FileOutcome(path=path)
            finally:
                gate.release()
            results.put(outcome)

        with ThreadPoolExecutor(
            max_workers=self.concurrency, thread_name_prefix="commitguard"
        ) as executor:
            for path in paths:
                gate.acquire()
                executor.submit(worker, path)
                dispatched += 1
        # executor has joined; no producer remains

        outcomes = []
        while True:
            try:
                outcomes.append(results.get_nowait())
            except queue.Empty:
                break

        log.debug("dispatch_complete", files=dispatched, workers=self.concurrency)
        return DispatchResult(files_dispatched=dispatched, outcomes=outcomes)
