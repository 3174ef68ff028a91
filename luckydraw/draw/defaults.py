"""Stock event configuration used on first start and after a reset."""

from __future__ import annotations

from .types import (
    AutoStopMode,
    GlobalSettings,
    OperatorPaced,
    Prize,
    RandomSource,
    RevealMode,
    Simultaneous,
)

SPECIAL_PRIZE_ID = "g-db"

DEFAULT_SETTINGS = GlobalSettings(
    min_number=0,
    max_number=133,
    exclude_previous_winners=True,
    random_source=RandomSource.REMOTE,
    remote_api_key=None,
)

# Ordered from the grand prize down; the event starts at the last tier.
DEFAULT_PRIZES: tuple[Prize, ...] = (
    Prize(
        id=SPECIAL_PRIZE_ID,
        name="Special Prize",
        quantity=1,
        spin_mode=OperatorPaced(RevealMode.CLICK),
        spin_duration_ms=15000,
        digit_count=3,
    ),
    Prize(
        id="g-1",
        name="First Prize",
        quantity=1,
        spin_mode=OperatorPaced(RevealMode.CLICK),
        spin_duration_ms=15000,
        digit_count=3,
    ),
    Prize(
        id="g-2",
        name="Second Prize",
        quantity=1,
        spin_mode=OperatorPaced(RevealMode.CLICK),
        spin_duration_ms=10000,
        digit_count=3,
    ),
    Prize(
        id="g-3",
        name="Third Prize",
        quantity=3,
        spin_mode=OperatorPaced(RevealMode.CLICK),
        spin_duration_ms=5000,
        digit_count=3,
    ),
    Prize(
        id="kk-1",
        name="Consolation Prize",
        quantity=6,
        spin_mode=Simultaneous(AutoStopMode.MANUAL),
        spin_duration_ms=5000,
        digit_count=3,
    ),
)

__all__ = ["DEFAULT_PRIZES", "DEFAULT_SETTINGS", "SPECIAL_PRIZE_ID"]
