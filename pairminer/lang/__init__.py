"""Language profiles and the structural query engine."""

from pairminer.lang.engine import Capture, execute, execute_matches
from pairminer.lang.profiles import (
    LanguageProfile,
    available_languages,
    get_profile,
    register_profile,
)
from pairminer.lang.queries import resolve

__all__ = [
    "Capture",
    "LanguageProfile",
    "available_languages",
    "execute",
    "execute_matches",
    "get_profile",
    "register_profile",
    "resolve",
]
