"""Top-level draw orchestration: allocate, spin, commit, navigate."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Iterable, Optional, Sequence

from ..errors import (
    ConfigurationError,
    DrawError,
    DrawInProgress,
    InvalidOperation,
    PoolExhausted,
    PrizeComplete,
)
from .allocator import NumberAllocator
from .defaults import SPECIAL_PRIZE_ID
from .events import (
    ALL_PRIZES_COMPLETE,
    DRAW_FINISHED,
    DRAW_STARTED,
    ERROR,
    PRIZE_CHANGED,
    START_REQUESTED,
    EventHub,
)
from .session import SpinSessionController
from .timers import Scheduler
from .types import GlobalSettings, Prize, Winner

logger = logging.getLogger(__name__)


class DrawState(str, Enum):
    IDLE = "IDLE"
    ALLOCATING = "ALLOCATING"
    SPINNING = "SPINNING"
    COMMITTING = "COMMITTING"


def validate_event_config(prizes: Sequence[Prize], settings: GlobalSettings) -> None:
    """Reject configurations that could never be displayed correctly.

    Raises
    ------
    ConfigurationError
        When there are no prizes, prize ids repeat, the range is negative,
        or the largest number does not fit a tier's digit count.
    """

    if not prizes:
        raise ConfigurationError("At least one prize is required")
    ids = [p.id for p in prizes]
    if len(set(ids)) != len(ids):
        raise ConfigurationError("Prize ids must be unique")
    if settings.min_number < 0:
        raise ConfigurationError("min_number must not be negative")
    width = len(str(settings.max_number))
    too_narrow = [p.id for p in prizes if p.digit_count < width]
    if too_narrow:
        raise ConfigurationError(
            f"max_number {settings.max_number} needs {width} digits",
            details={"prizes": too_narrow},
        )


class DrawController:
    """Runs the event: one draw at a time over an ordered list of prize tiers.

    The controller works on in-memory values only. Prizes and settings are
    read-only inputs, the winners list is extended newest first and handed
    back through :attr:`winners` and the ``draw_finished`` event.

    Parameters
    ----------
    prizes : Sequence[Prize]
        Tiers ordered from the grand prize down.
    settings : GlobalSettings
        Range, exclusion and randomness source.
    scheduler : Scheduler
        Timer source for spin sessions.
    winners : Optional[Iterable[Winner]], default: None
        Previously recorded winners, newest first.
    current_prize_id : Optional[str], default: None
        Tier to show first; defaults to the last tier.
    allocator : Optional[NumberAllocator], default: None
        Number source; a default :class:`NumberAllocator` when omitted.
    events : Optional[EventHub], default: None
        Hub that presentation and audio collaborators subscribe to.
    """

    def __init__(
        self,
        prizes: Sequence[Prize],
        settings: GlobalSettings,
        scheduler: Scheduler,
        *,
        winners: Optional[Iterable[Winner]] = None,
        current_prize_id: Optional[str] = None,
        allocator: Optional[NumberAllocator] = None,
        events: Optional[EventHub] = None,
    ) -> None:
        validate_event_config(prizes, settings)
        self.prizes: tuple[Prize, ...] = tuple(prizes)
        self.settings = settings
        self.winners: list[Winner] = list(winners or [])
        self.allocator = allocator or NumberAllocator()
        self.events = events or EventHub()
        self.state = DrawState.IDLE
        self.last_error: Optional[DrawError] = None
        # Bumped per allocation and on reset; stale results are dropped.
        self._generation = 0
        self._allocations: set[asyncio.Task] = set()
        self._prize_index = self._index_of(current_prize_id)
        self.session = SpinSessionController(
            self.current_prize,
            scheduler,
            self.events,
            on_complete=self.on_session_complete,
        )
        self.events.subscribe(START_REQUESTED, self._on_start_requested)

    # -------- derived state --------
    def _index_of(self, prize_id: Optional[str]) -> int:
        for i, prize in enumerate(self.prizes):
            if prize.id == prize_id:
                return i
        return len(self.prizes) - 1

    @property
    def current_prize(self) -> Prize:
        return self.prizes[self._prize_index]

    @property
    def current_prize_id(self) -> str:
        return self.current_prize.id

    def winners_for(self, prize_id: str) -> list[Winner]:
        return [w for w in self.winners if w.prize_id == prize_id]

    def remaining(self, prize_id: str) -> int:
        prize = self._prize(prize_id)
        return max(0, prize.quantity - len(self.winners_for(prize_id)))

    def is_prize_complete(self, prize_id: str) -> bool:
        return self.remaining(prize_id) == 0

    def all_prizes_complete(self) -> bool:
        return all(self.is_prize_complete(p.id) for p in self.prizes)

    @property
    def displayed_number(self) -> Optional[str]:
        """Newest winning number of the current tier, if any."""
        current = self.winners_for(self.current_prize_id)
        return current[0].number if current else None

    def final_results(self) -> list[tuple[Prize, list[Winner]]]:
        """Every tier with its winners, the special prize first."""
        ordered = sorted(self.prizes, key=lambda p: p.id != SPECIAL_PRIZE_ID)
        return [(p, self.winners_for(p.id)) for p in ordered]

    def _prize(self, prize_id: str) -> Prize:
        for prize in self.prizes:
            if prize.id == prize_id:
                return prize
        raise KeyError(f"Unknown prize '{prize_id}'")

    def exclusion_set(self, winners: Optional[Iterable[Winner]] = None) -> frozenset[int]:
        """Numbers already won, parsed from a winners snapshot."""
        source = self.winners if winners is None else winners
        return frozenset(int(w.number) for w in source)

    # -------- errors --------
    def _fail(self, error: DrawError) -> None:
        self.last_error = error
        logger.info(f"Draw rejected: {error.code}")
        self.events.emit(ERROR, error)

    # -------- draw --------
    def _begin_allocation(self) -> bool:
        if self.state is not DrawState.IDLE or self.session.session_active:
            self._fail(DrawInProgress())
            return False
        if self.is_prize_complete(self.current_prize_id):
            self.session.cancel_pending()
            self._fail(PrizeComplete())
            return False
        self.last_error = None
        self.state = DrawState.ALLOCATING
        self._generation += 1
        return True

    def _allocate(self, winners_snapshot: Sequence[Winner]) -> Optional[int]:
        return self.allocator.allocate(
            self.settings.min_number,
            self.settings.max_number,
            self.exclusion_set(winners_snapshot),
            self.settings,
        )

    def _finish_allocation(self, number: Optional[int], generation: int) -> Optional[str]:
        if generation != self._generation or self.state is not DrawState.ALLOCATING:
            logger.info(f"Discarding allocation {number} from a superseded draw")
            return None
        if number is None:
            self.state = DrawState.IDLE
            self.session.cancel_pending()
            self._fail(PoolExhausted())
            return None
        target = str(number)
        self.state = DrawState.SPINNING
        self.events.emit(DRAW_STARTED, self.current_prize)
        if self.session.session_active:
            self.session.set_target(target)
        else:
            self.session.start(target)
        logger.debug(f"Draw started for {self.current_prize_id}")
        return target

    def start_draw(self) -> Optional[str]:
        """Allocate a number and start its spin session.

        Blocks for at most the remote timeout. Rejections (a draw already in
        progress, a complete prize, an exhausted pool) are reported through
        the ``error`` event and :attr:`last_error`; they never raise.

        Returns
        -------
        Optional[str]
            The allocated number, or ``None`` when the draw did not start.
        """
        if not self._begin_allocation():
            return None
        return self._finish_allocation(self._allocate(tuple(self.winners)), self._generation)

    async def start_draw_async(self) -> Optional[str]:
        """Like :meth:`start_draw`, with the allocation off the event loop.

        A :meth:`reset` while the number is being fetched discards it.
        """
        if not self._begin_allocation():
            return None
        return await self._allocate_in_executor(self._generation)

    async def _allocate_in_executor(self, generation: int) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            number = await loop.run_in_executor(None, self._allocate, tuple(self.winners))
        except (Exception, asyncio.CancelledError):
            if generation == self._generation and self.state is DrawState.ALLOCATING:
                self.state = DrawState.IDLE
                self.session.cancel_pending()
            raise
        return self._finish_allocation(number, generation)

    async def wait_for_allocations(self) -> None:
        """Wait until every click-initiated allocation has settled."""
        while self._allocations:
            await asyncio.gather(*self._allocations, return_exceptions=True)

    def _on_start_requested(self, _index: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.start_draw()
            return
        if not self._begin_allocation():
            return
        task = loop.create_task(self._allocate_in_executor(self._generation))
        self._allocations.add(task)
        task.add_done_callback(self._on_allocation_done)

    def _on_allocation_done(self, task: "asyncio.Task[Optional[str]]") -> None:
        self._allocations.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Click-initiated draw failed: {error!r}", exc_info=error)

    def on_session_complete(self, number: str) -> None:
        """Commit the revealed number as a winner of the current tier."""
        self.state = DrawState.COMMITTING
        winner = Winner.for_prize(self.current_prize, number)
        self.winners.insert(0, winner)
        self.session.clear_target()
        self.state = DrawState.IDLE
        logger.info(f"Winner {winner.number} for {winner.prize_name}")
        self.events.emit(DRAW_FINISHED, winner)
        if self.all_prizes_complete():
            self.events.emit(ALL_PRIZES_COMPLETE, self.final_results())

    # -------- operator input --------
    def reveal(self) -> bool:
        return self.session.reveal()

    def click_digit(self, index: int) -> bool:
        return self.session.click(index)

    # -------- navigation --------
    def _move_to(self, index: int) -> bool:
        if self.state is not DrawState.IDLE or self.session.session_active:
            self._fail(InvalidOperation("Cannot change prize while a draw is running"))
            return False
        if not 0 <= index < len(self.prizes) or index == self._prize_index:
            return False
        self._prize_index = index
        self.last_error = None
        self.session.configure(self.current_prize)
        self.events.emit(PRIZE_CHANGED, self.current_prize)
        return True

    def next_prize(self) -> bool:
        """Move one tier up, towards the grand prize at the front of the list."""
        return self._move_to(self._prize_index - 1)

    def previous_prize(self) -> bool:
        return self._move_to(self._prize_index + 1)

    def select_prize(self, prize_id: str) -> bool:
        return self._move_to(self.prizes.index(self._prize(prize_id)))

    def reset(self, prizes: Sequence[Prize], settings: GlobalSettings) -> None:
        """Clear every winner and start over with ``prizes`` and ``settings``."""
        validate_event_config(prizes, settings)
        self._generation += 1
        self.session.teardown()
        self.prizes = tuple(prizes)
        self.settings = settings
        self.winners = []
        self.state = DrawState.IDLE
        self.last_error = None
        self._prize_index = len(self.prizes) - 1
        self.session.configure(self.current_prize)
        self.events.emit(PRIZE_CHANGED, self.current_prize)


__all__ = ["DrawController", "DrawState", "validate_event_config"]
