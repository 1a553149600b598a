"""Split a stream of function records into repository-scoped groups.

Boundaries are detected in stream order: a group ends when a record from a
different repository arrives. A repository that shows up again later starts a
new, separate group.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import ValidationError

from pairminer.data.schema import FunctionRecord
from pairminer.ui import PipelineReporter

LOGGER = logging.getLogger(__name__)

Group = list[FunctionRecord]

SKIP_DIRS = {
    ".git",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
}


def decode_record(line: str) -> FunctionRecord | None:
    line = line.strip()
    if not line:
        return None
    try:
        return FunctionRecord.model_validate_json(line)
    except ValidationError as exc:
        LOGGER.debug("Dropping undecodable line (%d errors)", exc.error_count())
        return None


def group_records(records: Iterable[FunctionRecord]) -> Iterator[Group]:
    current: Group = []
    current_repo: str | None = None
    for record in records:
        if current and record.repo_id != current_repo:
            yield current
            current = []
        if not current:
            current_repo = record.repo_id
        current.append(record)
    if current:
        yield current


def _decode_lines(
    lines: Iterable[str],
    reporter: PipelineReporter | None,
    path: Path | None,
) -> Iterator[FunctionRecord]:
    for line in lines:
        if reporter:
            reporter.line_read(path)
        record = decode_record(line)
        if record is None:
            if line.strip() and reporter:
                reporter.line_dropped()
            continue
        if reporter:
            reporter.record_decoded()
        yield record


def iter_groups(
    lines: Iterable[str],
    reporter: PipelineReporter | None = None,
    path: Path | None = None,
) -> Iterator[Group]:
    for group in group_records(_decode_lines(lines, reporter, path)):
        if reporter:
            reporter.group_emitted()
        LOGGER.debug("Emitting group of %d records from %s", len(group), group[0].repo_id)
        yield group


def iter_file_groups(
    paths: Iterable[Path],
    reporter: PipelineReporter | None = None,
) -> Iterator[Group]:
    """Group every file on its own; a group never spans two files."""
    for path in paths:
        if reporter:
            reporter.file_started(path)
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            yield from iter_groups(handle, reporter=reporter, path=path)
        if reporter:
            reporter.file_finished(path)


def list_input_files(data: Path, suffixes: set[str] | None = None) -> list[Path]:
    if data.is_file():
        return [data]
    files: list[Path] = []
    for root, dirs, filenames in os.walk(data):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS and not d.startswith("."))
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            if suffixes and Path(filename).suffix not in suffixes:
                continue
            files.append(Path(root) / filename)
    return files
