from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

from pairminer.errors import ParseError, QueryError

LOGGER = logging.getLogger(__name__)


class Parser(Protocol):
    """Turns source bytes into a syntax tree and compiles queries for that grammar."""

    grammar: str

    def parse(self, source: bytes) -> Any: ...

    def compile_query(self, query_source: str) -> Any: ...


def _load_language_pack():
    try:
        import tree_sitter_language_pack
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("tree_sitter_language_pack is required for source parsing") from exc
    return tree_sitter_language_pack


class TreeSitterParser:
    """Parser backed by a grammar from ``tree_sitter_language_pack``.

    tree-sitter parser objects are not safe to share between threads, so each
    thread lazily gets its own parser. The language object and compiled
    queries are shared.
    """

    def __init__(self, grammar: str) -> None:
        self.grammar = grammar
        self._local = threading.local()
        self._language: Any = None

    @property
    def language(self) -> Any:
        if self._language is None:
            try:
                self._language = _load_language_pack().get_language(self.grammar)
            except Exception as exc:
                raise ParseError(self.grammar, f"grammar unavailable: {exc}") from exc
        return self._language

    def _thread_parser(self) -> Any:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            try:
                parser = _load_language_pack().get_parser(self.grammar)
            except Exception as exc:
                raise ParseError(self.grammar, f"grammar unavailable: {exc}") from exc
            self._local.parser = parser
        return parser

    def parse(self, source: bytes) -> Any:
        try:
            tree = self._thread_parser().parse(source)
        except (TypeError, ValueError) as exc:
            raise ParseError(self.grammar, str(exc), source.decode("utf-8", errors="ignore")) from exc
        if tree is None:
            raise ParseError(self.grammar, "parser returned no tree", source.decode("utf-8", errors="ignore"))
        if tree.root_node.has_error:
            LOGGER.debug("Parse errors in %s snippet of %d bytes", self.grammar, len(source))
        return tree

    def compile_query(self, query_source: str) -> Any:
        from tree_sitter import Query

        language = self.language
        try:
            return Query(language, query_source)
        except Exception as exc:
            raise QueryError(
                f"Invalid {self.grammar} query: {exc}",
                details={"grammar": self.grammar},
            ) from exc
