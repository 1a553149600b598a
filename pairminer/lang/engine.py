from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capture:
    label: str
    text: str
    node: Any = field(default=None, compare=False, repr=False)


def node_text(source: bytes, node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _root(tree) -> Any:
    return getattr(tree, "root_node", tree)


def execute_matches(
    query,
    tree,
    source: bytes,
    labels: Iterable[str] | None = None,
) -> list[list[Capture]]:
    """Run ``query`` over ``tree`` and return the captures of each match.

    Captures inside a match are ordered by their position in the source.
    Labels outside ``labels`` are reported and skipped.
    """
    from tree_sitter import QueryCursor

    allowed = frozenset(labels) if labels is not None else None
    results: list[list[Capture]] = []
    for _, captured in QueryCursor(query).matches(_root(tree)):
        captures: list[Capture] = []
        for label, nodes in captured.items():
            if allowed is not None and label not in allowed:
                LOGGER.warning("Unknown capture label: %s", label)
                continue
            if not isinstance(nodes, list):
                nodes = [nodes]
            for node in nodes:
                captures.append(Capture(label=label, text=node_text(source, node), node=node))
        captures.sort(key=lambda capture: (capture.node.start_byte, capture.node.end_byte))
        results.append(captures)
    return results


def execute(
    query,
    tree,
    source: bytes,
    labels: Iterable[str] | None = None,
) -> list[Capture]:
    return [
        capture
        for match in execute_matches(query, tree, source, labels=labels)
        for capture in match
    ]
