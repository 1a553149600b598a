import io
import json
import threading
from pathlib import Path

import pytest

from pairminer.data.schema import PairRow, TokenRow, TrainingPair
from pairminer.errors import ParseError
from pairminer.pipeline import PairWriter, PipelineSettings, run_pipeline
from pairminer.ui import PipelineReporter
from pairminer.version import FUNC_CALL_ID_MASK


def _record(name: str, repo: str, code: str, doc: str = "") -> str:
    return json.dumps(
        {
            "func_name": name,
            "repo": repo,
            "original_string": code,
            "code": code,
            "code_tokens": code.replace("(", " ( ").replace(")", " ) ").split(),
            "docstring": doc,
            "docstring_tokens": doc.split(),
        }
    )


def _write_corpus(path: Path) -> Path:
    lines = [
        _record("f1", "org/a", "f2()", "first"),
        _record("f2", "org/a", "noop()", "second"),
        "not json",
        _record("g1", "org/b", "g2()\ng3()"),
        _record("g2", "org/b", ""),
        _record("g3", "org/b", ""),
        _record("g4", "org/b", ""),
        _record("g5", "org/b", ""),
        _record("h1", "org/a", "f1()"),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _read_lines(path: Path) -> list[str]:
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line]


def test_pipeline_writes_full_rows(tmp_path: Path, call_source) -> None:
    corpus = _write_corpus(tmp_path / "train.jsonl")
    out = tmp_path / "out" / "pairs.jsonl"

    stats = run_pipeline([corpus], out, call_source, PipelineSettings(workers=2))

    rows = [PairRow.model_validate_json(line) for line in _read_lines(out)]
    assert len(rows) == 5
    assert stats.records == 8
    assert stats.dropped_lines == 1
    assert stats.groups == 3
    assert stats.edges == 3
    assert stats.positives == 3
    assert stats.negatives == 2
    assert stats.pairs_written == 5

    positives = [row for row in rows if row.label]
    assert all(FUNC_CALL_ID_MASK in row.caller_code for row in positives)
    assert {row.callee_comm for row in positives} == {"second", ""}


def test_pipeline_tokens_mode(tmp_path: Path, call_source) -> None:
    corpus = _write_corpus(tmp_path / "train.jsonl")
    out = tmp_path / "pairs.jsonl"

    run_pipeline([corpus], out, call_source, PipelineSettings(workers=1, output_mode="tokens"))

    rows = [TokenRow.from_row(json.loads(line)) for line in _read_lines(out)]
    assert len(rows) == 5
    first_positive = next(row for row in rows if row.caller_doc_tokens == ["first"])
    assert first_positive.caller_code_tokens[0] == FUNC_CALL_ID_MASK


def test_worker_count_does_not_change_output(tmp_path: Path, call_source) -> None:
    corpus = tmp_path / "big.jsonl"
    lines = []
    for repo in range(12):
        for fn in range(5):
            code = f"fn{(fn + 1) % 5}()" if fn % 2 == 0 else ""
            lines.append(_record(f"fn{fn}", f"org/r{repo}", code))
    corpus.write_text("\n".join(lines) + "\n", encoding="utf-8")

    single = tmp_path / "single.jsonl"
    many = tmp_path / "many.jsonl"
    run_pipeline([corpus], single, call_source, PipelineSettings(workers=1, fanout=1))
    run_pipeline([corpus], many, call_source, PipelineSettings(workers=4, queue_depth=2))

    assert sorted(_read_lines(single)) == sorted(_read_lines(many))
    assert len(_read_lines(single)) == 12 * 6


class _FailingSource:
    tag = "broken"

    def call_sites(self, code: str) -> list[str]:
        if "boom" in code:
            raise ParseError("broken", "grammar rejected input", code)
        return []


def test_worker_failure_stops_the_run(tmp_path: Path) -> None:
    corpus = tmp_path / "train.jsonl"
    lines = [_record(f"f{i}", f"org/r{i}", "x()") for i in range(30)]
    lines.insert(5, _record("bad", "org/bad", "boom()"))
    lines.insert(6, _record("other", "org/bad", ""))
    corpus.write_text("\n".join(lines) + "\n", encoding="utf-8")

    with pytest.raises(ParseError):
        run_pipeline(
            [corpus], tmp_path / "pairs.jsonl", _FailingSource(), PipelineSettings(workers=3)
        )


def test_missing_input_file_propagates(tmp_path: Path, call_source) -> None:
    with pytest.raises(FileNotFoundError):
        run_pipeline(
            [tmp_path / "missing.jsonl"],
            tmp_path / "pairs.jsonl",
            call_source,
            PipelineSettings(workers=2),
        )


def test_pair_writer_keeps_groups_whole() -> None:
    handle = io.StringIO()
    reporter = PipelineReporter()
    writer = PairWriter(handle, mode="full", reporter=reporter)

    def make_group(index: int) -> list[TrainingPair]:
        return [
            TrainingPair(
                caller_code=f"group{index}",
                caller_code_tokens=[],
                caller_doc="",
                caller_doc_tokens=[],
                callee_code=str(position),
                callee_code_tokens=[],
                callee_doc="",
                callee_doc_tokens=[],
                label=position == 0,
            )
            for position in range(4)
        ]

    threads = [threading.Thread(target=writer.write, args=(make_group(i),)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    rows = [json.loads(line) for line in handle.getvalue().splitlines()]
    assert len(rows) == 32
    assert reporter.stats.pairs_written == 32
    for start in range(0, 32, 4):
        block = rows[start : start + 4]
        assert len({row["caller_code"] for row in block}) == 1
        assert [row["callee_code"] for row in block] == ["0", "1", "2", "3"]
