"""Database models that persist an event between restarts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from ..draw.defaults import DEFAULT_SETTINGS
from ..draw.types import (
    GlobalSettings,
    Prize,
    RandomSource,
    Winner,
    spin_mode_from_parts,
)


class PrizeRecord(Base):
    """A configured prize tier."""

    __tablename__ = "prizes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    prize_key: Mapped[str] = mapped_column(String(64), nullable=False)
    """Identifier of the tier used by the draw engine (``Prize.id``)."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Order of the tier; position 0 is the grand prize."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    spin_mode: Mapped[str] = mapped_column(String(32), nullable=False)
    """``kind`` tag of the spin mode variant."""

    spin_option: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    """Payload of the spin mode variant (auto stop or reveal mode)."""

    spin_duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=5000)
    digit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    __table_args__ = (UniqueConstraint("prize_key", name="prizes_prize_key_key"),)

    @classmethod
    def from_prize(cls, prize: Prize, position: int) -> "PrizeRecord":
        return cls(
            prize_key=prize.id,
            position=position,
            name=prize.name,
            quantity=prize.quantity,
            spin_mode=prize.spin_mode.kind,
            spin_option=prize.spin_mode.option,
            spin_duration_ms=prize.spin_duration_ms,
            digit_count=prize.digit_count,
        )

    def to_prize(self) -> Prize:
        return Prize(
            id=self.prize_key,
            name=self.name,
            quantity=self.quantity,
            spin_mode=spin_mode_from_parts(self.spin_mode, self.spin_option),
            spin_duration_ms=self.spin_duration_ms,
            digit_count=self.digit_count,
        )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<PrizeRecord(prize_key={self.prize_key}, position={self.position})>"


class WinnerRecord(Base):
    """A committed draw result. Rows are only ever inserted or wiped."""

    __tablename__ = "winners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    winner_key: Mapped[str] = mapped_column(String(64), nullable=False)
    """Identifier of the winner as issued by the draw engine (``Winner.id``)."""

    prize_key: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    prize_name: Mapped[str] = mapped_column(String(255), nullable=False)

    number: Mapped[str] = mapped_column(String(32), nullable=False)
    """Winning number, zero-padded to the tier's digit count."""

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (UniqueConstraint("winner_key", name="winners_winner_key_key"),)

    @classmethod
    def from_winner(cls, winner: Winner) -> "WinnerRecord":
        return cls(
            winner_key=winner.id,
            prize_key=winner.prize_id,
            prize_name=winner.prize_name,
            number=winner.number,
            drawn_at=winner.timestamp,
        )

    def to_winner(self) -> Winner:
        drawn_at = self.drawn_at
        # SQLite drops tzinfo on the way back.
        if drawn_at.tzinfo is None:
            drawn_at = drawn_at.replace(tzinfo=timezone.utc)
        return Winner(
            id=self.winner_key,
            prize_id=self.prize_key,
            prize_name=self.prize_name,
            number=self.number,
            timestamp=drawn_at,
        )


class EventState(Base):
    """Single-row table holding the global settings and the selected tier."""

    __tablename__ = "event_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    min_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_number: Mapped[int] = mapped_column(Integer, nullable=False, default=133)
    exclude_previous_winners: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    random_source: Mapped[str] = mapped_column(String(16), nullable=False, default="LOCAL")
    remote_api_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    current_prize_key: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    SINGLETON_ID = 1

    @classmethod
    def get(cls, session: Session) -> Optional["EventState"]:
        return session.scalar(select(cls).where(cls.id == cls.SINGLETON_ID))

    @classmethod
    def get_or_create(cls, session: Session) -> "EventState":
        state = cls.get(session)
        if state is None:
            state = cls(id=cls.SINGLETON_ID)
            state.apply_settings(DEFAULT_SETTINGS)
            session.add(state)
            session.flush()
        return state

    def apply_settings(self, settings: GlobalSettings) -> None:
        self.min_number = settings.min_number
        self.max_number = settings.max_number
        self.exclude_previous_winners = settings.exclude_previous_winners
        self.random_source = settings.random_source.value
        self.remote_api_key = settings.remote_api_key

    def to_settings(self) -> GlobalSettings:
        return GlobalSettings(
            min_number=self.min_number,
            max_number=self.max_number,
            exclude_previous_winners=self.exclude_previous_winners,
            random_source=RandomSource(self.random_source),
            remote_api_key=self.remote_api_key,
        )
