"""Spin session controller: drives every digit of a prize to its reveal."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .digit import DigitEffect, DigitRevealMachine, DigitState
from .events import (
    DIGIT_STOPPED,
    SPIN_GROUP_STARTED,
    SPIN_GROUP_STOPPED,
    START_REQUESTED,
    EventHub,
)
from .timers import Scheduler, TimerGroup
from .types import (
    AutoStopMode,
    OperatorPaced,
    Prize,
    RevealMode,
    Sequential,
    Simultaneous,
    pad_number,
)

logger = logging.getLogger(__name__)


class SpinSessionController:
    """Runs one reveal protocol at a time over a set of digit machines.

    The controller owns the transient session state: the target number, the
    digit machines, whether a session is active and how many digits are
    spinning. It reports completion exactly once per session through
    ``on_complete`` with the revealed number.

    Parameters
    ----------
    prize : Prize
        Tier whose spin mode, duration and width drive the session.
    scheduler : Scheduler
        Source of cancelable timers.
    events : EventHub
        Receives ``digit_stopped``, ``spin_group_started``,
        ``spin_group_stopped`` and ``start_requested``.
    on_complete : Optional[Callable[[str], None]], default: None
        Called once the whole number has been revealed.
    """

    def __init__(
        self,
        prize: Prize,
        scheduler: Scheduler,
        events: EventHub,
        on_complete: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._events = events
        self._timers = TimerGroup(scheduler)
        self.on_complete = on_complete
        self.prize = prize
        self.digits: list[DigitRevealMachine] = []
        self.target_number: Optional[str] = None
        self.session_active = False
        self.spinning_digit_count = 0
        self.pending_click: Optional[int] = None
        self._kicked_off = False
        self._batch_stop = False
        self._build_digits()

    # -------- introspection --------
    @property
    def digit_states(self) -> tuple[DigitState, ...]:
        return tuple(d.state for d in self.digits)

    @property
    def all_stopped(self) -> bool:
        return all(d.stopped for d in self.digits)

    @property
    def any_spinning(self) -> bool:
        return any(d.spinning for d in self.digits)

    @property
    def is_click_mode(self) -> bool:
        mode = self.prize.spin_mode
        return isinstance(mode, OperatorPaced) and mode.reveal is RevealMode.CLICK

    def display(self) -> str:
        return "".join(d.display() for d in self.digits)

    def is_clickable(self, index: int) -> bool:
        """Whether a click on ``index`` would currently be accepted."""
        if not self.is_click_mode or not 0 <= index < len(self.digits):
            return False
        digit = self.digits[index]
        if digit.spinning:
            return True
        if self.any_spinning or self.pending_click is not None:
            return False
        return self.all_stopped or not digit.stopped

    # -------- configuration --------
    def configure(self, prize: Prize) -> None:
        """Switch to another tier. Tears down any session in flight."""
        self.teardown()
        self.prize = prize
        self._build_digits()

    def _build_digits(self) -> None:
        self.digits = [
            DigitRevealMachine(i, on_effect=self._on_digit_effect)
            for i in range(self.prize.digit_count)
        ]

    # -------- lifecycle --------
    def start(self, target_number: Optional[str] = None) -> bool:
        """Open a new session, optionally with its target already resolved.

        Starting while a session is active is a no-op and returns ``False``.
        Every pending timer of the previous session is cancelled and every
        digit goes back to ``WAITING``.
        """
        if self.session_active:
            logger.debug("start ignored: session already active")
            return False
        pending = self.pending_click
        self._timers.cancel_all()
        self._reset_digits()
        self.pending_click = pending
        self.session_active = True
        self._kicked_off = False
        self.target_number = None
        logger.debug(f"session started for prize {self.prize.id}")
        if target_number is not None:
            self.set_target(target_number)
        return True

    def set_target(self, target_number: Optional[str]) -> None:
        """Supply (or clear, with ``None``) the number the digits land on."""
        if target_number is None:
            self.clear_target()
            return
        padded = pad_number(target_number, self.prize.digit_count)
        if len(padded) != len(self.digits):
            raise ValueError(
                f"target {target_number!r} does not fit {len(self.digits)} digits"
            )
        self.target_number = padded
        for digit, value in zip(self.digits, padded):
            digit.target = value
        if self.session_active:
            self._kick_off()

    def clear_target(self) -> None:
        """Forget the target. An active session is reset to ``WAITING``."""
        self.target_number = None
        if self.session_active:
            self.reset()

    def reset(self) -> None:
        """Cancel every timer and return every digit to ``WAITING``."""
        self._timers.cancel_all()
        self._reset_digits()
        self.session_active = False
        self._kicked_off = False
        self.target_number = None
        self.pending_click = None

    teardown = reset

    def cancel_pending(self) -> None:
        """Drop a remembered click whose number could not be allocated."""
        self.pending_click = None

    def _reset_digits(self) -> None:
        for digit in self.digits:
            digit.reset()
        self.pending_click = None
        # SPIN_ABANDONED effects already brought the count back to zero.
        self.spinning_digit_count = 0

    # -------- protocols --------
    def _kick_off(self) -> None:
        if self._kicked_off:
            return
        self._kicked_off = True
        mode = self.prize.spin_mode
        duration = self.prize.spin_duration_ms

        if isinstance(mode, Simultaneous):
            self._start_all()
            if mode.auto_stop is AutoStopMode.TIMER:
                self._timers.call_later(duration, self._stop_all)
        elif isinstance(mode, Sequential) or (
            isinstance(mode, OperatorPaced) and mode.reveal is RevealMode.TIMER
        ):
            self._start_all()
            for i in range(len(self.digits)):
                self._timers.call_later(duration * (i + 1), self._stopper(i))
        elif self.pending_click is not None:
            index, self.pending_click = self.pending_click, None
            self.digits[index].start()

    def _start_all(self) -> None:
        for digit in self.digits:
            digit.start()

    def _stopper(self, index: int) -> Callable[[], None]:
        def _fire() -> None:
            if self.session_active:
                self.digits[index].stop()
                self._check_complete()

        return _fire

    def _stop_all(self) -> None:
        if not self.session_active:
            return
        self._batch_stop = True
        try:
            stopped = [d.stop() for d in self.digits]
        finally:
            self._batch_stop = False
        if any(stopped):
            self._events.emit(DIGIT_STOPPED, None)
        self._check_complete()

    def reveal(self) -> bool:
        """Operator reveal for ``Simultaneous(MANUAL)``: stop every digit now.

        A no-op returning ``False`` without an active session or target.
        """
        if not self.session_active or self.target_number is None:
            logger.debug("reveal ignored: no active session or target")
            return False
        mode = self.prize.spin_mode
        if not (isinstance(mode, Simultaneous) and mode.auto_stop is AutoStopMode.MANUAL):
            logger.debug("reveal ignored: prize is not revealed manually")
            return False
        self._stop_all()
        return True

    def click(self, index: int) -> bool:
        """Operator click on digit ``index`` (operator-paced click mode only).

        Returns ``True`` when the click changed something: a digit started or
        stopped, or a start was requested. Rejected clicks leave every state
        unchanged.
        """
        if not self.is_click_mode or not 0 <= index < len(self.digits):
            return False
        digit = self.digits[index]

        if digit.spinning:
            digit.stop()
            self._check_complete()
            return True
        if self.any_spinning or self.pending_click is not None:
            return False

        if not self.session_active:
            if not (self.all_stopped or all(d.waiting for d in self.digits)):
                return False
            if self.target_number is None:
                return self._request_start(index)
            # A fresh number was supplied after the last cycle: begin anew.
            target = self.target_number
            self.pending_click = index
            self.start(target)
            return True

        if digit.stopped:
            return False
        if self.target_number is None:
            return self._request_start(index)
        return digit.start()

    def _request_start(self, index: int) -> bool:
        self.pending_click = index
        logger.debug(f"start requested by click on digit {index}")
        self._events.emit(START_REQUESTED, index)
        return True

    # -------- bookkeeping --------
    def _on_digit_effect(self, index: int, effect: DigitEffect) -> None:
        if effect is DigitEffect.SPIN_STARTED:
            self.spinning_digit_count += 1
            if self.spinning_digit_count == 1:
                self._events.emit(SPIN_GROUP_STARTED, None)
            return
        self.spinning_digit_count = max(0, self.spinning_digit_count - 1)
        if effect is DigitEffect.STOPPED and not self._batch_stop:
            self._events.emit(DIGIT_STOPPED, index)
        if self.spinning_digit_count == 0:
            self._events.emit(SPIN_GROUP_STOPPED, None)

    def _check_complete(self) -> None:
        if not self.session_active or not self.all_stopped:
            return
        number = self.target_number
        self.session_active = False
        self._kicked_off = False
        self._timers.cancel_all()
        logger.debug(f"session complete with {number}")
        if self.on_complete is not None and number is not None:
            self.on_complete(number)


__all__ = ["SpinSessionController"]
