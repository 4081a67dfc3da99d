"""Errors raised by the recurrence engine."""

from typing import Optional


class UnsupportedFrequencyError(ValueError):
    """A frequency rule the engine cannot evaluate.

    Recovered per rule by the engine: the rule is treated as never appearing.
    """

    def __init__(self, message: str, *, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class ClockError(RuntimeError):
    """No trustworthy civil "now" (unknown timezone or naive datetime).

    Fatal for the calling operation; never recovered inside the engine.
    """


class NoOccurrenceError(LookupError):
    """The task has no occurrence appearing on the requested date."""
