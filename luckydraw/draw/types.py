"""Value objects describing prizes, event settings and recorded winners."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional, Union

from ..errors import ConfigurationError


class AutoStopMode(str, Enum):
    """How a simultaneous spin comes to an end."""

    TIMER = "TIMER"
    MANUAL = "MANUAL"


class RevealMode(str, Enum):
    """How an operator-paced spin reveals its digits."""

    CLICK = "CLICK"
    TIMER = "TIMER"


class RandomSource(str, Enum):
    LOCAL = "LOCAL"
    REMOTE = "REMOTE"


@dataclass(frozen=True)
class Simultaneous:
    """Every digit spins and stops together."""

    auto_stop: AutoStopMode = AutoStopMode.TIMER
    kind: ClassVar[str] = "SIMULTANEOUS"

    @property
    def option(self) -> Optional[str]:
        return self.auto_stop.value


@dataclass(frozen=True)
class Sequential:
    """Every digit spins together and they stop left to right."""

    kind: ClassVar[str] = "SEQUENTIAL"

    @property
    def option(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class OperatorPaced:
    """Digits are revealed one at a time, by clicks or by a timer."""

    reveal: RevealMode = RevealMode.CLICK
    kind: ClassVar[str] = "OPERATOR_PACED"

    @property
    def option(self) -> Optional[str]:
        return self.reveal.value


SpinMode = Union[Simultaneous, Sequential, OperatorPaced]


def spin_mode_from_parts(kind: str, option: Optional[str] = None) -> SpinMode:
    """Rebuild a :data:`SpinMode` from its ``kind`` tag and optional payload.

    Parameters
    ----------
    kind : str
        One of ``"SIMULTANEOUS"``, ``"SEQUENTIAL"`` or ``"OPERATOR_PACED"``.
    option : Optional[str], default: None
        Mode payload (auto stop or reveal mode). Omitted payloads fall back
        to the mode defaults.

    Raises
    ------
    ConfigurationError
        If ``kind`` or ``option`` is not recognised.
    """

    try:
        if kind == Simultaneous.kind:
            return Simultaneous(AutoStopMode(option)) if option else Simultaneous()
        if kind == Sequential.kind:
            return Sequential()
        if kind == OperatorPaced.kind:
            return OperatorPaced(RevealMode(option)) if option else OperatorPaced()
    except ValueError as exc:
        raise ConfigurationError(f"Unknown option {option!r} for spin mode {kind}") from exc
    raise ConfigurationError(f"Unknown spin mode {kind!r}")


@dataclass(frozen=True)
class Prize:
    """A prize tier: how many winners it gets and how its number is revealed.

    Attributes
    ----------
    id : str
        Stable identifier of the tier.
    name : str
        Display name, e.g. ``"First Prize"``.
    quantity : int
        Number of winners to draw for this tier.
    spin_mode : SpinMode
        Reveal protocol used by the spin session.
    spin_duration_ms : int
        Spin length before stopping, or the interval between stops for the
        per-digit schedules.
    digit_count : int
        Width of the displayed number; winners are zero-padded to it.
    """

    id: str
    name: str
    quantity: int = 1
    spin_mode: SpinMode = field(default_factory=Simultaneous)
    spin_duration_ms: int = 5000
    digit_count: int = 3

    def __post_init__(self) -> None:
        if self.digit_count < 1:
            raise ConfigurationError("digit_count must be at least 1")
        if self.quantity < 1:
            raise ConfigurationError("quantity must be at least 1")
        if self.spin_duration_ms < 0:
            raise ConfigurationError("spin_duration_ms must not be negative")
        if not isinstance(self.spin_mode, (Simultaneous, Sequential, OperatorPaced)):
            raise ConfigurationError(f"Unsupported spin mode {self.spin_mode!r}")


@dataclass(frozen=True)
class GlobalSettings:
    """Event-wide number range, exclusion policy and randomness source."""

    min_number: int = 0
    max_number: int = 133
    exclude_previous_winners: bool = True
    random_source: RandomSource = RandomSource.LOCAL
    remote_api_key: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_number < self.min_number:
            raise ConfigurationError("max_number must be greater than or equal to min_number")

    @property
    def range_size(self) -> int:
        return self.max_number - self.min_number + 1


def pad_number(value: Union[int, str], digit_count: int) -> str:
    """Zero-pad ``value`` to ``digit_count`` characters (``7`` -> ``"007"``)."""

    return str(value).zfill(digit_count)


def _new_winner_id() -> str:
    return secrets.token_hex(8)


@dataclass(frozen=True)
class Winner:
    """An immutable record of one completed draw."""

    prize_id: str
    prize_name: str
    number: str
    id: str = field(default_factory=_new_winner_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_prize(cls, prize: Prize, value: Union[int, str]) -> "Winner":
        """Build the winner of ``prize`` with ``value`` padded to the prize width."""

        return cls(
            prize_id=prize.id,
            prize_name=prize.name,
            number=pad_number(value, prize.digit_count),
        )


__all__ = [
    "AutoStopMode",
    "GlobalSettings",
    "OperatorPaced",
    "Prize",
    "RandomSource",
    "RevealMode",
    "Sequential",
    "Simultaneous",
    "SpinMode",
    "Winner",
    "pad_number",
    "spin_mode_from_parts",
]
