from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set

from .engine import run_job
from .formats import SUPPORTED_EXTS
from .locations import resolve_output_dir
from .notify import Notifier, completion_message, notify_completion
from .results import (
    CompressionJob,
    CompressionQueue,
    JobOutcome,
    format_byte_count,
)
from .settings import MAX_CONCURRENT, CompressSettings


log = logging.getLogger(__name__)

CompressFn = Callable[[CompressionJob], JobOutcome]


@dataclass(frozen=True)
class BatchSummary:
    total_jobs: int
    completed: int
    failed: int
    saved_bytes: int  # may be negative

    @property
    def formatted_saved(self) -> str:
        return format_byte_count(self.saved_bytes)

    @property
    def message(self) -> str:
        return completion_message(self.completed, self.saved_bytes)


def expand_inputs(paths: Sequence[Path], recursive: bool = False) -> Iterable[Path]:
    """
    Yield files from a mixture of files and directories.

    Extensions are not checked here, filter_supported() does that.
    """
    for p in paths:
        p = Path(p)

        if p.is_dir():
            pattern = "**/*" if recursive else "*"
            for f in sorted(p.glob(pattern)):
                if f.is_file():
                    yield f
            continue

        # Files (and missing paths) pass through, the job will fail on probe
        yield p


def filter_supported(paths: Iterable[Path]) -> List[Path]:
    kept: List[Path] = []
    for p in paths:
        p = Path(p)
        if p.suffix.lower() in SUPPORTED_EXTS:
            kept.append(p)
        else:
            log.debug("Ignoring unsupported file %s", p)
    return kept


def iter_outcomes(
    jobs: Iterable[CompressionJob],
    compress_fn: CompressFn,
    max_concurrent: int = MAX_CONCURRENT,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[JobOutcome]:
    """
    Run compress_fn over jobs with at most max_concurrent in flight.

    Outcomes come back in completion order. Each time a job finishes the next
    pending one is admitted, so the pool stays full until the list runs out.
    Once cancel_event is set nothing new is admitted and in-flight jobs drain.
    """
    if max_concurrent < 1:
        raise ValueError("max_concurrent must be at least 1")

    pending = iter(jobs)
    in_flight: Set[Future] = set()

    with ThreadPoolExecutor(max_workers=max_concurrent, thread_name_prefix="compress") as pool:

        def admit() -> bool:
            if cancel_event and cancel_event.is_set():
                return False
            job = next(pending, None)
            if job is None:
                return False
            in_flight.add(pool.submit(compress_fn, job))
            return True

        while len(in_flight) < max_concurrent and admit():
            pass

        while in_flight:
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for fut in done:
                in_flight.discard(fut)
                admit()
                yield fut.result()


class BatchAggregator:
    """
    Running totals for one batch.

    Only ever called from the thread draining iter_outcomes(), which is what
    keeps the counters and the result list free of races.
    """

    def __init__(self, sink: Optional[CompressionQueue] = None) -> None:
        self.sink = sink
        self.total_jobs = 0
        self.completed = 0
        self.failed = 0
        self.saved_bytes = 0

    def record(self, outcome: JobOutcome) -> None:
        self.total_jobs += 1

        if outcome.result is None:
            self.failed += 1
            return

        self.completed += 1
        self.saved_bytes += outcome.result.saved_bytes
        if self.sink is not None:
            self.sink.add_compressed_file(outcome.result)

    def summary(self) -> BatchSummary:
        return BatchSummary(
            total_jobs=self.total_jobs,
            completed=self.completed,
            failed=self.failed,
            saved_bytes=self.saved_bytes,
        )


def compress_images(
    paths: Sequence[Path],
    settings: CompressSettings,
    sink: Optional[CompressionQueue] = None,
    notifier: Optional[Notifier] = None,
    cancel_event: Optional[threading.Event] = None,
    compress_fn: Optional[CompressFn] = None,
) -> BatchSummary:
    """
    Compress a batch of images into <base>/Compressed Images/<format>.

    Raises DirectoryCreationFailed before anything is scheduled if the
    output folder can't be created. Files that fail are left out of the
    results and the summary, they are not reported one by one.
    """
    if not 0.0 <= settings.quality <= 1.0:
        raise ValueError(f"quality must be between 0.0 and 1.0, got {settings.quality}")

    output_dir = resolve_output_dir(settings.output_format, settings.base_dir)

    sources = filter_supported(paths)
    jobs = [
        CompressionJob(source=p, output_format=settings.output_format, quality=settings.quality)
        for p in sources
    ]

    log.info(
        "Compressing %d image(s) to %s at quality %.2f",
        len(jobs),
        settings.output_format.display_name,
        settings.quality,
    )

    if compress_fn is None:
        compress_fn = partial(run_job, output_dir=output_dir)

    aggregator = BatchAggregator(sink)
    for outcome in iter_outcomes(jobs, compress_fn, settings.max_concurrent, cancel_event):
        aggregator.record(outcome)

    summary = aggregator.summary()
    log.info(
        "Batch done: %d compressed, %d failed, saved %s",
        summary.completed,
        summary.failed,
        summary.formatted_saved,
    )

    notify_completion(notifier, summary.completed, summary.saved_bytes)
    return summary
