from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from .draw.allocator import NumberAllocator
from .draw.controller import DrawController
from .draw.defaults import DEFAULT_PRIZES, DEFAULT_SETTINGS
from .draw.events import DRAW_FINISHED, PRIZE_CHANGED, EventHub
from .draw.timers import Scheduler
from .draw.types import GlobalSettings, Prize, Winner
from .models import EventState, PrizeRecord, WinnerRecord


def load_prizes(session: Session) -> list[Prize]:
    """Return the stored prize tiers in display order, or the defaults."""
    records = session.scalars(
        select(PrizeRecord).order_by(PrizeRecord.position, PrizeRecord.id)
    ).all()
    if not records:
        return list(DEFAULT_PRIZES)
    return [r.to_prize() for r in records]


def save_prizes(session: Session, prizes: Sequence[Prize]) -> None:
    """Replace the stored prize tiers with ``prizes`` (kept in order)."""
    session.execute(delete(PrizeRecord))
    session.add_all(PrizeRecord.from_prize(p, i) for i, p in enumerate(prizes))
    session.flush()


def load_settings(session: Session) -> GlobalSettings:
    state = EventState.get(session)
    return state.to_settings() if state is not None else DEFAULT_SETTINGS


def save_settings(session: Session, settings: GlobalSettings) -> None:
    EventState.get_or_create(session).apply_settings(settings)
    session.flush()


def load_current_prize_id(session: Session) -> Optional[str]:
    state = EventState.get(session)
    return state.current_prize_key if state is not None else None


def save_current_prize_id(session: Session, prize_id: Optional[str]) -> None:
    EventState.get_or_create(session).current_prize_key = prize_id
    session.flush()


def load_winners(session: Session) -> list[Winner]:
    """Return every recorded winner, newest first."""
    records = session.scalars(
        select(WinnerRecord).order_by(WinnerRecord.drawn_at.desc(), WinnerRecord.id.desc())
    ).all()
    return [r.to_winner() for r in records]


def record_winner(session: Session, winner: Winner) -> WinnerRecord:
    """Append ``winner``. Winners are never updated once stored."""
    existing = session.scalar(
        select(WinnerRecord).where(WinnerRecord.winner_key == winner.id)
    )
    if existing is not None:
        raise ValueError(f"Winner {winner.id} is already recorded")
    record = WinnerRecord.from_winner(winner)
    session.add(record)
    session.flush()
    return record


def reset_event(
    session: Session,
    prizes: Iterable[Prize] = DEFAULT_PRIZES,
    settings: GlobalSettings = DEFAULT_SETTINGS,
) -> None:
    """Wipe every winner and restore the stock prizes and settings.

    The selected tier goes back to the last one, where the event starts.
    """
    prizes = list(prizes)
    session.execute(delete(WinnerRecord))
    save_prizes(session, prizes)
    save_settings(session, settings)
    save_current_prize_id(session, prizes[-1].id if prizes else None)


def build_controller(
    session_factory: sessionmaker,
    scheduler: Scheduler,
    *,
    allocator: Optional[NumberAllocator] = None,
    events: Optional[EventHub] = None,
) -> DrawController:
    """Create a :class:`DrawController` from stored state and keep it persisted.

    Every committed winner is written in its own transaction, and every
    change of tier updates the stored selection.

    Parameters
    ----------
    session_factory : sessionmaker
        Factory for the sessions used to load and persist state.
    scheduler : Scheduler
        Timer source for the spin sessions.
    allocator : Optional[NumberAllocator]
        Optional number source override.
    events : Optional[EventHub]
        Optional hub shared with presentation collaborators.

    Returns
    -------
    DrawController
        Controller positioned on the stored tier with the stored winners.
    """
    with session_factory.begin() as session:
        prizes = load_prizes(session)
        settings = load_settings(session)
        winners = load_winners(session)
        current = load_current_prize_id(session)

    controller = DrawController(
        prizes,
        settings,
        scheduler,
        winners=winners,
        current_prize_id=current,
        allocator=allocator,
        events=events,
    )

    def _persist_winner(winner: Winner) -> None:
        with session_factory.begin() as session:
            record_winner(session, winner)

    def _persist_selection(prize: Prize) -> None:
        with session_factory.begin() as session:
            save_current_prize_id(session, prize.id)

    controller.events.subscribe(DRAW_FINISHED, _persist_winner)
    controller.events.subscribe(PRIZE_CHANGED, _persist_selection)
    return controller
