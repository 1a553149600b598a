"""Exceptions raised by the mining pipeline."""

from __future__ import annotations

from typing import Any


class PairMinerError(Exception):
    """Base exception for pairminer errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnknownLanguageError(PairMinerError):
    """No language profile is registered under the requested tag."""

    def __init__(self, tag: str, available: list[str]):
        super().__init__(
            message=f"Unknown language: {tag}",
            details={"language": tag, "available": available},
        )


class QueryError(PairMinerError):
    """A structural query failed to compile against its grammar."""


class ParseError(PairMinerError):
    """The parser could not produce a tree for a source snippet."""

    def __init__(self, language: str, reason: str, snippet: str = ""):
        super().__init__(
            message=f"Failed to parse {language} source: {reason}",
            details={"language": language, "snippet": snippet[:200]},
        )


class ConfigError(PairMinerError):
    """Invalid configuration file or value."""
