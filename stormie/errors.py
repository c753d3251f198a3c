"""
Error types
===========

Both errors are fatal for a run: the CLI reports them and exits non-zero.
"""

from __future__ import annotations


class StormieError(Exception):
    """Base class for errors raised by the analysis pipeline."""


class LoadError(StormieError):
    """The dataset file is missing, unreadable or malformed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot load {self.path}: {reason}")


class InvalidExponentError(StormieError, ValueError):
    """A damage exponent code is not one of the recognized tokens."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Invalid damage exponent code: {code!r}")
