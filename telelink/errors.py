"""Error taxonomy shared by every engine.

Malformed records are never raised: ordering algorithms drop them quietly.
Too little data is an expected outcome and comes back as an
:class:`InsufficientData` value. Only bad parameters raise.
"""

from __future__ import annotations

from dataclasses import dataclass


class TelelinkError(Exception):
    """Base class for errors raised by the engine."""


class ConfigurationError(TelelinkError, ValueError):
    """A parameter is out of range; raised before any processing starts."""


@dataclass(frozen=True)
class InsufficientData:
    """Tagged 'not computable' outcome.

    Falsy, so callers can write ``if not result:`` for the neutral
    no-results state.
    """
    reason: str
    required: int = 0
    available: int = 0

    def __bool__(self) -> bool:
        return False
