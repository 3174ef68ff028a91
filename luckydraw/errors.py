"""Error taxonomy for the draw orchestration engine."""

from __future__ import annotations

from typing import Any, Optional


class DrawError(Exception):
    """Base class for every error raised or reported by the draw engine.

    Attributes
    ----------
    code : str
        Machine friendly identifier, stable across releases.
    message : str
        Human readable explanation suitable for the operator's screen.
    details : Any
        Optional structured context.
    """

    code = "draw_error"
    default_message = "Draw error"

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class PoolExhausted(DrawError):
    """No eligible number is left in the configured range."""

    code = "pool_exhausted"
    default_message = "No lucky numbers left in this range"


class AllocationTransportFailure(DrawError):
    """The remote randomness source was unreachable or answered garbage.

    Never surfaced to the operator; the allocator recovers by generating
    the number locally.
    """

    code = "allocation_transport_failure"
    default_message = "Remote random source failed"


class InvalidOperation(DrawError):
    """An operation was invoked in a state that does not allow it."""

    code = "invalid_operation"
    default_message = "Operation not allowed right now"


class DrawInProgress(InvalidOperation):
    code = "draw_in_progress"
    default_message = "A draw is already in progress"


class PrizeComplete(InvalidOperation):
    code = "prize_complete"
    default_message = "All winners for this prize have been drawn, switch to another prize"


class ConfigurationError(DrawError, ValueError):
    """Prize or settings values that can never produce a valid draw."""

    code = "configuration_error"
    default_message = "Invalid draw configuration"


__all__ = [
    "AllocationTransportFailure",
    "ConfigurationError",
    "DrawError",
    "DrawInProgress",
    "InvalidOperation",
    "PoolExhausted",
    "PrizeComplete",
]
