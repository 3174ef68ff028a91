"""Per-digit reveal state machine."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Callable, Optional

from ..errors import InvalidOperation

logger = logging.getLogger(__name__)

# Cadence at which a presentation layer should re-read a spinning digit.
FLICKER_INTERVAL_MS = 60
PLACEHOLDER = "?"


class DigitState(str, Enum):
    WAITING = "WAITING"
    SPINNING = "SPINNING"
    STOPPED = "STOPPED"


class DigitEvent(str, Enum):
    START = "START"
    STOP = "STOP"
    RESET = "RESET"


class DigitEffect(str, Enum):
    SPIN_STARTED = "SPIN_STARTED"
    STOPPED = "STOPPED"
    SPIN_ABANDONED = "SPIN_ABANDONED"


def transition(state: DigitState, event: DigitEvent) -> tuple[DigitState, tuple[DigitEffect, ...]]:
    """Pure transition function of a single digit.

    ``STOPPED`` is terminal for everything but ``RESET``; events that do not
    apply to the current state leave it unchanged and produce no effects.
    """

    if event is DigitEvent.RESET:
        if state is DigitState.SPINNING:
            return DigitState.WAITING, (DigitEffect.SPIN_ABANDONED,)
        return DigitState.WAITING, ()
    if event is DigitEvent.START and state is DigitState.WAITING:
        return DigitState.SPINNING, (DigitEffect.SPIN_STARTED,)
    if event is DigitEvent.STOP and state is DigitState.SPINNING:
        return DigitState.STOPPED, (DigitEffect.STOPPED,)
    return state, ()


class DigitRevealMachine:
    """One digit of the slot display.

    Parameters
    ----------
    index : int
        Position of the digit, counted from the left.
    on_effect : Optional[Callable[[int, DigitEffect], None]], default: None
        Called with ``(index, effect)`` for every effect a transition emits.
        The owner uses ``DigitEffect.STOPPED`` for its tick cue.
    """

    def __init__(
        self,
        index: int,
        on_effect: Optional[Callable[[int, DigitEffect], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.index = index
        self.state = DigitState.WAITING
        self.target: Optional[str] = None
        self._on_effect = on_effect
        self._rng = rng or random.Random()

    @property
    def waiting(self) -> bool:
        return self.state is DigitState.WAITING

    @property
    def spinning(self) -> bool:
        return self.state is DigitState.SPINNING

    @property
    def stopped(self) -> bool:
        return self.state is DigitState.STOPPED

    def _apply(self, event: DigitEvent) -> bool:
        new_state, effects = transition(self.state, event)
        changed = new_state is not self.state
        if changed:
            logger.debug(f"digit {self.index}: {self.state.value} -> {new_state.value}")
        self.state = new_state
        for effect in effects:
            if self._on_effect is not None:
                self._on_effect(self.index, effect)
        return changed

    def start(self) -> bool:
        """Start spinning. Returns ``True`` when the digit left ``WAITING``."""
        return self._apply(DigitEvent.START)

    def stop(self, target: Optional[str] = None) -> bool:
        """Land on ``target`` (or the digit set earlier).

        Returns ``True`` only for the actual ``SPINNING -> STOPPED`` step;
        stopping an already stopped digit is a silent no-op.

        Raises
        ------
        InvalidOperation
            If a spinning digit is told to stop with no target digit known.
        """
        if target is not None:
            self.target = target
        if self.spinning and self.target is None:
            raise InvalidOperation(f"digit {self.index} has no target to stop on")
        return self._apply(DigitEvent.STOP)

    def reset(self) -> None:
        self._apply(DigitEvent.RESET)
        self.target = None

    def display(self) -> str:
        if self.state is DigitState.STOPPED:
            return self.target or PLACEHOLDER
        if self.state is DigitState.SPINNING:
            return str(self._rng.randrange(10))
        return PLACEHOLDER


__all__ = [
    "DigitEffect",
    "DigitEvent",
    "DigitRevealMachine",
    "DigitState",
    "FLICKER_INTERVAL_MS",
    "PLACEHOLDER",
    "transition",
]
