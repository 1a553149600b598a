"""Normalize comments and code of caller/callee comment pairs.

Doc comments are reduced to a single summary sentence: the text of the first
``@notice``, ``@dev`` or ``@return`` tag, or the untagged description when no
such tag exists. Rows whose summaries are too short are dropped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import ValidationError

from pairminer.data.schema import CallCommentPair

LOGGER = logging.getLogger(__name__)

SUMMARY_TAGS = ("@notice", "@dev", "@return")

_TAG = re.compile(r"(?m)(?:^|\s)(@\w+)")
_LEADING_ASTERISK = re.compile(r"(?m)^\s*\*")
_TRAILING_ASTERISKS = re.compile(r"\*+\s*$")
_DELIMITERS = re.compile(r"^\s*/\*+|\*+/\s*$")
_LINE_PREFIX = re.compile(r"(?m)^\s*//+")
_WHITESPACE = re.compile(r"\s+")


def _strip_delimiters(comment: str) -> str:
    comment = comment.replace("\r\n", "\n")
    comment = _DELIMITERS.sub("", comment)
    return _LINE_PREFIX.sub("", comment)


def select_summary(comment: str) -> str | None:
    """Pick the summary text of a doc comment, or ``None`` if it has none."""
    text = _LEADING_ASTERISK.sub(" ", _strip_delimiters(comment))
    tags = list(_TAG.finditer(text))
    description = text[: tags[0].start()] if tags else text
    for index, tag in enumerate(tags):
        if tag.group(1) not in SUMMARY_TAGS:
            continue
        end = tags[index + 1].start() if index + 1 < len(tags) else len(text)
        body = text[tag.end() : end].strip()
        if body:
            return body
    return description if description.strip() else None


def format_comment(comment: str) -> str:
    comment = _LEADING_ASTERISK.sub(" ", comment)
    comment = _TRAILING_ASTERISKS.sub(" ", comment)
    return _WHITESPACE.sub(" ", comment).strip()


def format_code(code: str) -> str:
    return _WHITESPACE.sub(" ", code.replace("\r\n", "\n"))


def _too_short(text: str, min_words: int) -> bool:
    return len(text.split(" ")) < min_words


def _as_pair(row: Any) -> CallCommentPair:
    if isinstance(row, list):
        if len(row) != 5:
            raise ValueError("expected [caller_code, caller_comm, callee_code, callee_comm, label]")
        row = dict(zip(("caller_code", "caller_comm", "callee_code", "callee_comm", "label"), row))
    return CallCommentPair.model_validate(row)


def clean_pairs(rows: Iterable[Any], min_words: int = 4) -> Iterator[CallCommentPair]:
    for index, row in enumerate(rows):
        try:
            pair = _as_pair(row)
        except (ValueError, ValidationError) as exc:
            LOGGER.warning("Skipping malformed row %d: %s", index, exc)
            continue
        caller_summary = select_summary(pair.caller_comm)
        callee_summary = select_summary(pair.callee_comm)
        if caller_summary is None or callee_summary is None:
            continue
        caller_comm = format_comment(caller_summary)
        callee_comm = format_comment(callee_summary)
        if _too_short(caller_comm, min_words) or _too_short(callee_comm, min_words):
            continue
        yield CallCommentPair(
            caller_code=format_code(pair.caller_code),
            caller_comm=caller_comm,
            callee_code=format_code(pair.callee_code),
            callee_comm=callee_comm,
            label=pair.label,
        )
