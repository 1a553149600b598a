from types import SimpleNamespace

import pytest

from pairminer.errors import ParseError
from pairminer.lang import parser as parser_module
from pairminer.lang.parser import TreeSitterParser


def _missing_grammar(name: str):
    raise LookupError(f"Could not find language {name}")


@pytest.fixture
def broken_pack(monkeypatch) -> None:
    pack = SimpleNamespace(get_parser=_missing_grammar, get_language=_missing_grammar)
    monkeypatch.setattr(parser_module, "_load_language_pack", lambda: pack)


def test_parser_load_failure_is_parse_error(broken_pack) -> None:
    with pytest.raises(ParseError) as excinfo:
        TreeSitterParser("klingon").parse(b"x = 1")
    assert excinfo.value.details["language"] == "klingon"
    assert "grammar unavailable" in excinfo.value.message


def test_language_load_failure_is_parse_error(broken_pack) -> None:
    with pytest.raises(ParseError):
        TreeSitterParser("klingon").language
