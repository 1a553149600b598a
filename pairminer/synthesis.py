"""Turn a group's call graph into masked positive and sampled negative pairs."""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from hashlib import sha256
from typing import Literal

from pairminer.callgraph import CallGraph
from pairminer.data.schema import FunctionRecord, TrainingPair
from pairminer.version import FUNC_CALL_ID_MASK

NegativeStrategy = Literal["sorted", "shuffled"]

_IDENT_CHAR = r"[\w$]"


def callee_pattern(name: str) -> re.Pattern[str]:
    """Match ``name`` only where it is not part of a longer identifier."""
    return re.compile(rf"(?<!{_IDENT_CHAR}){re.escape(name)}(?!{_IDENT_CHAR})")


def mask_callee(code: str, tokens: list[str], callee: str) -> tuple[str, list[str]]:
    masked_code = callee_pattern(callee).sub(FUNC_CALL_ID_MASK, code)
    masked_tokens = [FUNC_CALL_ID_MASK if token == callee else token for token in tokens]
    return masked_code, masked_tokens


@dataclass(frozen=True)
class NegativeSampler:
    """Orders the non-callee candidates of a caller.

    ``sorted`` takes candidates by name. ``shuffled`` permutes them with a
    generator seeded from ``seed``, the repository and the caller, so the
    result does not depend on which worker handles the group.
    """

    strategy: NegativeStrategy = "sorted"
    seed: int = 1337

    def order(self, repo_id: str, caller: str, candidates: list[str]) -> list[str]:
        ordered = sorted(candidates)
        if self.strategy == "shuffled":
            digest = sha256(f"{self.seed}|{repo_id}|{caller}".encode()).digest()
            rng = random.Random(int.from_bytes(digest[:8], "big"))
            rng.shuffle(ordered)
        return ordered


def make_pair(caller: FunctionRecord, callee: FunctionRecord, label: bool) -> TrainingPair:
    if label:
        caller_code, caller_tokens = mask_callee(
            caller.code, caller.code_tokens, callee.function_name
        )
    else:
        caller_code, caller_tokens = caller.code, list(caller.code_tokens)
    return TrainingPair(
        caller_code=caller_code,
        caller_code_tokens=caller_tokens,
        caller_doc=caller.docstring,
        caller_doc_tokens=list(caller.doc_tokens),
        callee_code=callee.code,
        callee_code_tokens=list(callee.code_tokens),
        callee_doc=callee.docstring,
        callee_doc_tokens=list(callee.doc_tokens),
        label=label,
        caller_name=caller.function_name,
        callee_name=callee.function_name,
    )


def synthesize_pairs(graph: CallGraph, sampler: NegativeSampler | None = None) -> list[TrainingPair]:
    """Pairs for every caller of ``graph``: positives first, then negatives.

    Each caller gets at most as many negatives as it has call edges.
    """
    sampler = sampler or NegativeSampler()
    pairs: list[TrainingPair] = []
    for caller_name, caller in graph.members.items():
        callees = graph.callees.get(caller_name, [])
        if not callees:
            continue
        for callee_name in callees:
            pairs.append(make_pair(caller, graph.members[callee_name], label=True))

        needed = len(callees)
        candidates = sampler.order(
            graph.repo_id, caller_name, graph.non_callees.get(caller_name, [])
        )
        for name in candidates:
            if needed == 0:
                break
            pairs.append(make_pair(caller, graph.members[name], label=False))
            needed -= 1
    return pairs
