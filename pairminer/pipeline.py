"""Reader -> workers -> writer pipeline for grouped pair mining.

One reader thread decodes input files and puts repository groups on a
bounded queue. A pool of worker threads takes one group at a time, resolves
its call graph (fanning per-record parsing out over a shared pool) and
synthesizes pairs. A single lock-protected writer appends each group's pairs
to the output file. Groups are written in completion order.
"""

from __future__ import annotations

import json
import logging
import os
import queue
import threading
from collections.abc import Sequence
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

from pairminer.callgraph import CallGraph, CallSiteSource, DuplicatePolicy, extract_call_graph
from pairminer.data.schema import FunctionRecord, OutputMode, TrainingPair
from pairminer.grouping import iter_file_groups
from pairminer.synthesis import NegativeSampler, NegativeStrategy, synthesize_pairs
from pairminer.ui import PipelineReporter, PipelineStats
from pairminer.version import QUEUE_DEPTH

LOGGER = logging.getLogger(__name__)

_STOP = object()
_POLL_SECONDS = 0.1


def default_workers() -> int:
    return os.cpu_count() or 1


@dataclass
class PipelineSettings:
    workers: int = field(default_factory=default_workers)
    queue_depth: int = QUEUE_DEPTH
    fanout: int | None = None
    output_mode: OutputMode = "full"
    negatives: NegativeStrategy = "sorted"
    seed: int = 1337
    duplicates: DuplicatePolicy = "last-write-wins"

    @property
    def fanout_workers(self) -> int:
        return self.fanout or self.workers


class PairWriter:
    """Sole owner of the output handle; appends whole groups under a lock."""

    def __init__(
        self,
        handle: TextIO,
        mode: OutputMode = "full",
        reporter: PipelineReporter | None = None,
    ) -> None:
        self._handle = handle
        self._mode = mode
        self._reporter = reporter
        self._lock = threading.Lock()

    def write(self, pairs: Sequence[TrainingPair]) -> None:
        if not pairs:
            return
        payload = "".join(
            json.dumps(pair.to_row(self._mode), ensure_ascii=True) + "\n" for pair in pairs
        )
        with self._lock:
            self._handle.write(payload)
        if self._reporter:
            self._reporter.pairs_written(len(pairs))


def process_group(
    group: Sequence[FunctionRecord],
    source: CallSiteSource,
    sampler: NegativeSampler,
    executor: Executor | None = None,
    duplicates: DuplicatePolicy = "last-write-wins",
) -> tuple[CallGraph, list[TrainingPair]]:
    graph = extract_call_graph(group, source, executor=executor, policy=duplicates)
    pairs = synthesize_pairs(graph, sampler)
    LOGGER.debug(
        "Group %s: %d records, %d edges, %d pairs",
        graph.repo_id,
        len(group),
        len(graph.edges),
        len(pairs),
    )
    return graph, pairs


def _put(groups: queue.Queue, item: Any, stop: threading.Event) -> bool:
    while not stop.is_set():
        try:
            groups.put(item, timeout=_POLL_SECONDS)
            return True
        except queue.Full:
            continue
    return False


def _get(groups: queue.Queue, stop: threading.Event) -> Any:
    while not stop.is_set():
        try:
            return groups.get(timeout=_POLL_SECONDS)
        except queue.Empty:
            continue
    return _STOP


def run_pipeline(
    paths: Sequence[Path],
    out_path: Path,
    source: CallSiteSource,
    settings: PipelineSettings | None = None,
    reporter: PipelineReporter | None = None,
) -> PipelineStats:
    """Mine pairs from the JSON-line files in ``paths`` into ``out_path``.

    The first exception raised by the reader or by any worker stops the run
    and is re-raised here; pairs already written stay in the output file.
    """
    settings = settings or PipelineSettings()
    reporter = reporter or PipelineReporter()
    sampler = NegativeSampler(strategy=settings.negatives, seed=settings.seed)
    groups: queue.Queue = queue.Queue(maxsize=settings.queue_depth)
    stop = threading.Event()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    reporter.start(len(paths))

    def produce() -> None:
        try:
            for group in iter_file_groups(paths, reporter):
                if not _put(groups, group, stop):
                    LOGGER.error(
                        "Pipeline stopped, dropping group of %d records from %s",
                        len(group),
                        group[0].repo_id,
                    )
                    return
        finally:
            for _ in range(settings.workers):
                _put(groups, _STOP, stop)

    def work(writer: PairWriter, fanout: Executor) -> None:
        while True:
            group = _get(groups, stop)
            if group is _STOP:
                return
            graph, pairs = process_group(
                group,
                source,
                sampler,
                executor=fanout,
                duplicates=settings.duplicates,
            )
            writer.write(pairs)
            positives = sum(1 for pair in pairs if pair.label)
            reporter.duplicates_found(len(graph.duplicates))
            reporter.group_done(
                edges=len(graph.edges),
                positives=positives,
                negatives=len(pairs) - positives,
            )

    with out_path.open("w", encoding="utf-8") as handle:
        writer = PairWriter(handle, mode=settings.output_mode, reporter=reporter)
        with ThreadPoolExecutor(
            max_workers=settings.fanout_workers, thread_name_prefix="pairminer-fanout"
        ) as fanout, ThreadPoolExecutor(
            max_workers=settings.workers + 1, thread_name_prefix="pairminer-worker"
        ) as executor:
            futures = [executor.submit(produce)]
            futures.extend(executor.submit(work, writer, fanout) for _ in range(settings.workers))
            try:
                for future in as_completed(futures):
                    future.result()
            except BaseException:
                stop.set()
                raise

    return reporter.stats
