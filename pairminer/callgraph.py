"""Resolve call edges between the functions of one repository group."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Literal, Protocol

from pairminer.data.schema import FunctionRecord

LOGGER = logging.getLogger(__name__)

DuplicatePolicy = Literal["last-write-wins", "exclude"]


class CallSiteSource(Protocol):
    tag: str

    def call_sites(self, code: str) -> list[str]: ...


@dataclass(frozen=True, order=True)
class CallEdge:
    caller: str
    callee: str


@dataclass
class CallGraph:
    repo_id: str
    members: dict[str, FunctionRecord]
    callees: dict[str, list[str]] = field(default_factory=dict)
    non_callees: dict[str, list[str]] = field(default_factory=dict)
    duplicates: list[str] = field(default_factory=list)

    @property
    def edges(self) -> list[CallEdge]:
        return [
            CallEdge(caller=caller, callee=callee)
            for caller, names in self.callees.items()
            for callee in names
        ]


def build_member_table(
    group: Sequence[FunctionRecord],
    policy: DuplicatePolicy = "last-write-wins",
) -> tuple[dict[str, FunctionRecord], list[str]]:
    """Map function names to records, resolving name collisions by ``policy``.

    ``last-write-wins`` keeps the last record seen for a name (at the position
    of its first occurrence); ``exclude`` drops every record of a colliding name.
    """
    counts = Counter(record.function_name for record in group)
    duplicates = sorted(name for name, count in counts.items() if count > 1)
    members: dict[str, FunctionRecord] = {}
    for record in group:
        if policy == "exclude" and counts[record.function_name] > 1:
            continue
        members[record.function_name] = record
    if duplicates:
        LOGGER.debug(
            "Group %s has duplicate names %s (%s)", group[0].repo_id, duplicates, policy
        )
    return members, duplicates


def find_callees(record: FunctionRecord, others: set[str], source: CallSiteSource) -> list[str]:
    """Distinct names called by ``record`` that belong to ``others``, sorted."""
    return sorted({name for name in source.call_sites(record.code) if name in others})


def extract_call_graph(
    group: Sequence[FunctionRecord],
    source: CallSiteSource,
    executor: Executor | None = None,
    policy: DuplicatePolicy = "last-write-wins",
) -> CallGraph:
    members, duplicates = build_member_table(group, policy)
    names = set(members)
    records = list(members.values())

    def resolve(record: FunctionRecord) -> list[str]:
        others = names - {record.function_name}
        return find_callees(record, others, source)

    if executor is not None and len(records) > 1:
        resolved = list(executor.map(resolve, records))
    else:
        resolved = [resolve(record) for record in records]

    graph = CallGraph(repo_id=group[0].repo_id if group else "", members=members, duplicates=duplicates)
    ordered_names = sorted(names)
    for record, callees in zip(records, resolved):
        caller = record.function_name
        called = set(callees)
        graph.callees[caller] = callees
        graph.non_callees[caller] = [
            name for name in ordered_names if name != caller and name not in called
        ]
    return graph
