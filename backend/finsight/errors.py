"""
Errors raised by the recurring transaction scheduler.
"""

from typing import Optional


class InvalidFrequency(ValueError):
    """A frequency outside daily/weekly/monthly/yearly reached date arithmetic."""

    def __init__(self, frequency):
        self.frequency = frequency
        super().__init__(f"Invalid frequency: {frequency!r}")


class PersistenceError(Exception):
    """A read or write for a single template failed (network, timeout, constraint)."""

    def __init__(self, message: str, template_id: Optional[str] = None):
        self.template_id = template_id
        super().__init__(message)


class PassLevelError(Exception):
    """The pass could not run at all. Nothing was mutated."""


class PassInProgressError(PassLevelError):
    """Another pass held the scheduler lock for longer than the wait timeout."""


class InvalidDateRange(ValueError):
    """An end date that falls before the template's start date."""
