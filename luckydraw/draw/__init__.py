"""Draw orchestration engine for the lucky-number event."""

from .allocator import NumberAllocator, local_random_int
from .controller import DrawController, DrawState, validate_event_config
from .defaults import DEFAULT_PRIZES, DEFAULT_SETTINGS
from .digit import DigitEffect, DigitEvent, DigitRevealMachine, DigitState, transition
from .events import EventHub
from .session import SpinSessionController
from .timers import AsyncioScheduler, ManualScheduler, TimerGroup
from .types import (
    AutoStopMode,
    GlobalSettings,
    OperatorPaced,
    Prize,
    RandomSource,
    RevealMode,
    Sequential,
    Simultaneous,
    SpinMode,
    Winner,
    pad_number,
    spin_mode_from_parts,
)

__all__ = [
    "AsyncioScheduler",
    "AutoStopMode",
    "DEFAULT_PRIZES",
    "DEFAULT_SETTINGS",
    "DigitEffect",
    "DigitEvent",
    "DigitRevealMachine",
    "DigitState",
    "DrawController",
    "DrawState",
    "EventHub",
    "GlobalSettings",
    "ManualScheduler",
    "NumberAllocator",
    "OperatorPaced",
    "Prize",
    "RandomSource",
    "RevealMode",
    "Sequential",
    "Simultaneous",
    "SpinMode",
    "SpinSessionController",
    "TimerGroup",
    "Winner",
    "local_random_int",
    "pad_number",
    "spin_mode_from_parts",
    "transition",
    "validate_event_config",
]
