import re
from collections.abc import Callable

import pytest

from pairminer.data.schema import FunctionRecord

_CALL = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*\(")


class RegexCallSource:
    """Call-site finder for tests that do not need a real grammar."""

    tag = "regex"

    def call_sites(self, code: str) -> list[str]:
        return _CALL.findall(code)


@pytest.fixture
def call_source() -> RegexCallSource:
    return RegexCallSource()


@pytest.fixture
def make_record() -> Callable[..., FunctionRecord]:
    def _make(name: str, repo: str = "org/repo", code: str = "", doc: str = "") -> FunctionRecord:
        return FunctionRecord(
            func_name=name,
            repo=repo,
            original_string=code,
            code=code,
            code_tokens=re.findall(r"\w+|[^\w\s]", code),
            docstring=doc,
            docstring_tokens=doc.split(),
        )

    return _make
