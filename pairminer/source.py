"""Pair extraction from whole source files.

Unlike the grouped pipeline, which works on pre-extracted function records,
these tasks parse complete files and find functions, their leading comments
and the calls between them with the language profile's queries.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pairminer.callgraph import DuplicatePolicy
from pairminer.data.schema import CallBodyPair, CallCommentPair, FunctionDocPair
from pairminer.lang.profiles import LanguageProfile
from pairminer.synthesis import NegativeSampler, callee_pattern
from pairminer.version import FUNC_CALL_ID_MASK

LOGGER = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_STRING_PREFIX = re.compile(r"^[rRuUbBfF]{0,2}('''|\"\"\"|'|\")")


@dataclass(frozen=True)
class FunctionDoc:
    name: str
    code: str
    comment: str


def clean_comment(text: str) -> str:
    """Strip comment delimiters and collapse whitespace, one line per comment."""
    text = text.strip()
    prefix = _STRING_PREFIX.match(text)
    if prefix:
        quote = prefix.group(1)
        text = text[prefix.end() :]
        if text.endswith(quote):
            text = text[: -len(quote)]
    for marker in ("//", "/*", "*/"):
        text = text.replace(marker, "")
    text = text.strip()
    if text.startswith("#"):
        text = text.lstrip("#")
    if text.startswith("*"):
        text = text[1:]
    text = _WHITESPACE.sub(" ", text).strip()
    return text + "\n" if text else ""


def find_function_comments(
    profile: LanguageProfile,
    tree,
    source: bytes,
    policy: DuplicatePolicy = "exclude",
) -> dict[str, FunctionDoc]:
    docs: dict[str, FunctionDoc] = {}
    duplicates: set[str] = set()
    for match in profile.doc_matches(tree, source):
        name = ""
        code = ""
        comment = ""
        for capture in match:
            if capture.label == "name":
                name = capture.text
            elif capture.label == "comment":
                comment += clean_comment(capture.text)
            elif capture.label == "func_src":
                code = capture.text
        if not name:
            continue
        if name in docs or name in duplicates:
            duplicates.add(name)
            if policy == "exclude":
                docs.pop(name, None)
                continue
        docs[name] = FunctionDoc(name=name, code=code, comment=comment)
    if duplicates:
        LOGGER.debug("Duplicate function names %s (%s)", sorted(duplicates), policy)
    return docs


def find_function_bodies(
    profile: LanguageProfile,
    tree,
    source: bytes,
    policy: DuplicatePolicy = "exclude",
) -> dict[str, str]:
    bodies: dict[str, str] = {}
    duplicates: set[str] = set()
    for match in profile.body_matches(tree, source):
        name = next((c.text for c in match if c.label == "name"), "")
        body = next((c.text for c in match if c.label == "func_body"), "")
        if not name:
            continue
        if name in bodies or name in duplicates:
            duplicates.add(name)
            if policy == "exclude":
                bodies.pop(name, None)
                continue
        bodies[name] = _WHITESPACE.sub(" ", body).strip() + " "
    return bodies


def find_function_calls(
    profile: LanguageProfile,
    tree,
    source: bytes,
    is_known: Callable[[str], bool],
) -> set[tuple[str, str]]:
    """``(caller, callee)`` pairs for every known callee and each enclosing function."""
    calls: set[tuple[str, str]] = set()
    for capture in profile.call_captures(tree, source):
        callee = capture.text
        if not is_known(callee):
            continue
        for caller in profile.enclosing_functions(capture.node, source):
            if caller != callee:
                calls.add((caller, callee))
    return calls


def process_func_comm(code: str, profile: LanguageProfile) -> list[FunctionDocPair]:
    tree, source = profile.parse(code)
    docs = find_function_comments(profile, tree, source)
    return [
        FunctionDocPair(code=doc.code, comment=doc.comment)
        for doc in docs.values()
        if doc.comment
    ]


def process_func_call(code: str, profile: LanguageProfile) -> list[CallBodyPair]:
    tree, source = profile.parse(code)
    bodies = find_function_bodies(profile, tree, source)
    calls = find_function_calls(profile, tree, source, lambda name: name in bodies)
    pairs: list[CallBodyPair] = []
    for caller, callee in sorted(calls):
        if caller in bodies:
            LOGGER.debug("%s -> %s", caller, callee)
            pairs.append(CallBodyPair(caller_body=bodies[caller], callee_body=bodies[callee]))
    return pairs


def process_func_call_comm(
    code: str,
    profile: LanguageProfile,
    sampler: NegativeSampler | None = None,
    scope: str = "",
) -> list[CallCommentPair]:
    """Caller/callee code+comment pairs, with up to one negative per positive."""
    sampler = sampler or NegativeSampler()
    tree, source = profile.parse(code)
    docs = find_function_comments(profile, tree, source)
    calls = find_function_calls(profile, tree, source, lambda name: name in docs)

    callees_by_caller: dict[str, list[str]] = {}
    for caller, callee in sorted(calls):
        if caller in docs:
            callees_by_caller.setdefault(caller, []).append(callee)

    pairs: list[CallCommentPair] = []
    for caller, callees in callees_by_caller.items():
        caller_doc = docs[caller]
        for callee in callees:
            callee_doc = docs[callee]
            pairs.append(
                CallCommentPair(
                    caller_code=callee_pattern(callee).sub(FUNC_CALL_ID_MASK, caller_doc.code),
                    caller_comm=caller_doc.comment,
                    callee_code=callee_doc.code,
                    callee_comm=callee_doc.comment,
                    label=True,
                )
            )
        called = set(callees)
        candidates = [name for name in docs if name != caller and name not in called]
        for name in sampler.order(scope, caller, candidates)[: len(callees)]:
            pairs.append(
                CallCommentPair(
                    caller_code=caller_doc.code,
                    caller_comm=caller_doc.comment,
                    callee_code=docs[name].code,
                    callee_comm=docs[name].comment,
                    label=False,
                )
            )
    return pairs


TASKS: dict[str, Callable[..., Sequence[Any]]] = {
    "func_comm": process_func_comm,
    "func_call": process_func_call,
    "func_call_comm": process_func_call_comm,
}


def extract_from_files(
    paths: Iterable[Path],
    profile: LanguageProfile,
    task: str,
    sampler: NegativeSampler | None = None,
    on_file: Callable[[Path], None] | None = None,
) -> list[list[Any]]:
    """Run ``task`` over every readable file and return serializable rows."""
    process = TASKS[task]
    rows: list[list[Any]] = []
    for path in paths:
        if on_file:
            on_file(path)
        try:
            code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Failed to read %s: %s", path, exc)
            continue
        if task == "func_call_comm":
            samples = process(code, profile, sampler=sampler, scope=path.as_posix())
        else:
            samples = process(code, profile)
        rows.extend(sample.to_row() for sample in samples)
    return rows
