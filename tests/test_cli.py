import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pairminer.cli import app
from pairminer.version import EXIT_CONFIG_ERROR, EXIT_ERROR, __version__

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("PAIRMINER_LANGUAGE", raising=False)


def _full_row(label: bool = True) -> dict:
    return {
        "caller_code": "f()",
        "caller_comm": "",
        "callee_code": "g()",
        "callee_comm": "",
        "label": label,
        "caller_code_tokens": ["f"],
        "caller_comm_tokens": [],
        "callee_code_tokens": ["g"],
        "callee_comm_tokens": [],
    }


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_languages_command() -> None:
    result = runner.invoke(app, ["languages"])
    assert result.exit_code == 0
    assert "python" in result.output
    assert "solidity" in result.output


def test_mine_rejects_unknown_language(tmp_path: Path) -> None:
    data = tmp_path / "train.jsonl"
    data.write_text("", encoding="utf-8")
    result = runner.invoke(app, ["mine", "--data", str(data), "--lang", "cobol", "--no-progress"])
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_mine_requires_language(tmp_path: Path) -> None:
    result = runner.invoke(app, ["mine", "--data", str(tmp_path), "--no-progress"])
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_mine_rejects_bad_mode(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["mine", "--data", str(tmp_path), "--lang", "python", "--mode", "xml"]
    )
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_mine_missing_input(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["mine", "--data", str(tmp_path / "missing"), "--lang", "python", "--no-progress"]
    )
    assert result.exit_code == EXIT_ERROR


def test_mine_python_records(tmp_path: Path) -> None:
    pytest.importorskip("tree_sitter_language_pack")
    records = [
        {"func_name": "mod.f1", "repo": "org/a", "original_string": "", "code": "def f1():\n    return f2()\n",
         "code_tokens": ["def", "f1", "(", ")", ":", "return", "f2", "(", ")"],
         "docstring": "", "docstring_tokens": []},
        {"func_name": "mod.f2", "repo": "org/a", "original_string": "", "code": "def f2():\n    pass\n",
         "code_tokens": ["def", "f2", "(", ")", ":", "pass"], "docstring": "", "docstring_tokens": []},
    ]
    data = tmp_path / "train.jsonl"
    data.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    out = tmp_path / "out" / "pairs.jsonl"

    result = runner.invoke(
        app,
        ["mine", "-d", str(data), "-o", str(out), "-l", "python", "-t", "2", "--no-progress"],
    )

    assert result.exit_code == 0, result.output
    (line,) = out.read_text(encoding="utf-8").splitlines()
    row = json.loads(line)
    assert row["label"] is True
    assert row["caller_code"] == "def f1():\n    return <masked_func_id>()\n"


def test_split_command(tmp_path: Path) -> None:
    source = tmp_path / "all.jsonl"
    source.write_text("\n".join(json.dumps([i]) for i in range(10)) + "\n", encoding="utf-8")
    result = runner.invoke(
        app, ["split", "-i", str(source), "-o", str(tmp_path / "parts"), "--split", "6,2,2"]
    )
    assert result.exit_code == 0
    assert len((tmp_path / "parts" / "train.jsonl").read_text().splitlines()) == 6
    assert len((tmp_path / "parts" / "test.jsonl").read_text().splitlines()) == 2


def test_split_command_bad_ratio(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["split", "-i", str(tmp_path / "x"), "-o", str(tmp_path), "--split", "1,2"]
    )
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_validate_command(tmp_path: Path) -> None:
    good = tmp_path / "good.jsonl"
    good.write_text(json.dumps(_full_row()) + "\n" + json.dumps(_full_row(False)) + "\n")
    assert runner.invoke(app, ["validate", str(good)]).exit_code == 0

    bad_row = dict(_full_row(), extra_field=1)
    bad = tmp_path / "bad.jsonl"
    bad.write_text(json.dumps(_full_row()) + "\n" + json.dumps(bad_row) + "\n")
    assert runner.invoke(app, ["validate", str(bad)]).exit_code == 1

    tokens = tmp_path / "tokens.jsonl"
    tokens.write_text(json.dumps([["a"], [], ["b"], [], False]) + "\n")
    assert runner.invoke(app, ["validate", str(tokens), "--mode", "tokens"]).exit_code == 0
    assert runner.invoke(app, ["validate", str(tmp_path / "none.jsonl")]).exit_code == EXIT_ERROR


def test_clean_command(tmp_path: Path) -> None:
    source = tmp_path / "pairs.jsonl"
    rows = [
        ["a()", "/** @notice Sends the payment to the owner */", "b()",
         "/** @dev Records the payment in storage */", True],
        ["a()", "// short", "b()", "// short", False],
    ]
    source.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    out = tmp_path / "clean.jsonl"

    result = runner.invoke(app, ["clean", "-i", str(source), "-o", str(out)])

    assert result.exit_code == 0
    (line,) = out.read_text(encoding="utf-8").splitlines()
    assert json.loads(line)["caller_comm"] == "Sends the payment to the owner"


def test_extract_rejects_non_string_split(tmp_path: Path) -> None:
    config = tmp_path / "cfg.yaml"
    config.write_text("split: 10\n", encoding="utf-8")
    result = runner.invoke(
        app,
        ["extract", "-d", str(tmp_path), "-l", "python", "-c", str(config)],
    )
    assert result.exit_code == EXIT_CONFIG_ERROR


def test_mine_grammar_failure_exits_with_error(tmp_path: Path, monkeypatch) -> None:
    from types import SimpleNamespace

    from pairminer.lang import parser as parser_module

    def _missing(name: str):
        raise LookupError(f"Could not find language {name}")

    monkeypatch.setattr(
        parser_module,
        "_load_language_pack",
        lambda: SimpleNamespace(get_parser=_missing, get_language=_missing),
    )
    record = {
        "func_name": "f1", "repo": "org/a", "original_string": "", "code": "f2()",
        "code_tokens": [], "docstring": "", "docstring_tokens": [],
    }
    data = tmp_path / "train.jsonl"
    data.write_text(json.dumps(record) + "\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["mine", "-d", str(data), "-o", str(tmp_path / "pairs.jsonl"), "-l", "python",
         "-t", "1", "--no-progress"],
    )

    assert result.exit_code == EXIT_ERROR
