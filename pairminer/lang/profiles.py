from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from pairminer.errors import UnknownLanguageError
from pairminer.lang.engine import Capture, execute, execute_matches, node_text
from pairminer.lang.parser import Parser, TreeSitterParser
from pairminer.lang.queries import (
    BODY_LABELS,
    CALL_LABELS,
    DOC_LABELS,
    LANGUAGE_QUERIES,
    QuerySet,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class LanguageProfile:
    """Everything the pipeline needs to know about one language.

    ``function_types`` are the node types that define a named function; they
    are used to find the function enclosing a call site in whole files.
    """

    tag: str
    queries: QuerySet
    parser: Parser
    function_types: frozenset[str] = field(default_factory=frozenset)
    name_field: str = "name"

    def parse(self, code: str) -> tuple[Any, bytes]:
        source = code.encode("utf-8")
        return self.parser.parse(source), source

    @cached_property
    def call_query(self) -> Any:
        return self.parser.compile_query(self.queries.call)

    @cached_property
    def doc_query(self) -> Any:
        return self.parser.compile_query(self.queries.doc)

    @cached_property
    def body_query(self) -> Any:
        return self.parser.compile_query(self.queries.body)

    def call_captures(self, tree, source: bytes) -> list[Capture]:
        return execute(self.call_query, tree, source, labels=CALL_LABELS)

    def call_sites(self, code: str) -> list[str]:
        """Names called anywhere in ``code``, in source order."""
        tree, source = self.parse(code)
        return [capture.text for capture in self.call_captures(tree, source)]

    def doc_matches(self, tree, source: bytes) -> list[list[Capture]]:
        return execute_matches(self.doc_query, tree, source, labels=DOC_LABELS)

    def body_matches(self, tree, source: bytes) -> list[list[Capture]]:
        return execute_matches(self.body_query, tree, source, labels=BODY_LABELS)

    def enclosing_functions(self, node, source: bytes) -> list[str]:
        """Names of all function definitions enclosing ``node``, innermost first."""
        names: list[str] = []
        parent = node.parent
        while parent is not None:
            if parent.type in self.function_types:
                name_node = parent.child_by_field_name(self.name_field)
                if name_node is not None:
                    names.append(node_text(source, name_node))
            parent = parent.parent
        return names


_FUNCTION_TYPES = {
    "python": {"function_definition"},
    "javascript": {"function_declaration", "method_definition"},
    "java": {"method_declaration", "constructor_declaration"},
    "go": {"function_declaration", "method_declaration"},
    "ruby": {"method", "singleton_method"},
    "php": {"function_definition", "method_declaration"},
    "solidity": {"function_definition"},
}

_PROFILES: dict[str, LanguageProfile] = {}


def register_profile(profile: LanguageProfile) -> None:
    if profile.tag in _PROFILES:
        LOGGER.debug("Replacing language profile %s", profile.tag)
    _PROFILES[profile.tag] = profile


def get_profile(tag: str) -> LanguageProfile:
    profile = _PROFILES.get(tag.lower())
    if profile is None:
        raise UnknownLanguageError(tag, available_languages())
    return profile


def available_languages() -> list[str]:
    return sorted(_PROFILES)


def _register_builtin_profiles() -> None:
    for tag, queries in LANGUAGE_QUERIES.items():
        register_profile(
            LanguageProfile(
                tag=tag,
                queries=queries,
                parser=TreeSitterParser(tag),
                function_types=frozenset(_FUNCTION_TYPES[tag]),
            )
        )


_register_builtin_profiles()
