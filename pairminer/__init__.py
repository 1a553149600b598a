"""Training-pair mining for code-understanding models."""

from pairminer.version import __version__

__all__ = ["__version__"]
