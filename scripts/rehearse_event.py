"""Run the whole stock event offline on a virtual clock.

Every prize tier is drawn to completion with local randomness. Operator
clicks and reveals are simulated, and each engine event is logged, which
makes this a quick end-to-end smoke check before going on stage.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from luckydraw.draw import (
    DEFAULT_PRIZES,
    DEFAULT_SETTINGS,
    AutoStopMode,
    DrawController,
    EventHub,
    ManualScheduler,
    OperatorPaced,
    RandomSource,
    RevealMode,
    Simultaneous,
)
from luckydraw.draw.events import EVENT_NAMES

logger = logging.getLogger("rehearsal")


def _log_events(events: EventHub) -> None:
    for name in sorted(EVENT_NAMES):
        events.subscribe(name, lambda payload, name=name: logger.info(f"{name}: {payload!r}"))


def _finish_current_draw(controller: DrawController, scheduler: ManualScheduler) -> None:
    mode = controller.current_prize.spin_mode
    if isinstance(mode, OperatorPaced) and mode.reveal is RevealMode.CLICK:
        for index in range(controller.current_prize.digit_count):
            controller.click_digit(index)
            scheduler.advance(controller.current_prize.spin_duration_ms)
            controller.click_digit(index)
    elif isinstance(mode, Simultaneous) and mode.auto_stop is AutoStopMode.MANUAL:
        scheduler.advance(controller.current_prize.spin_duration_ms)
        controller.reveal()
    else:
        scheduler.run_until_idle()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    scheduler = ManualScheduler()
    events = EventHub()
    _log_events(events)
    controller = DrawController(
        DEFAULT_PRIZES,
        replace(DEFAULT_SETTINGS, random_source=RandomSource.LOCAL),
        scheduler,
        events=events,
    )

    while True:
        prize = controller.current_prize
        while not controller.is_prize_complete(prize.id):
            if controller.start_draw() is None:
                return
            _finish_current_draw(controller, scheduler)
        if not controller.next_prize():
            break

    for prize, winners in controller.final_results():
        print(f"{prize.name}: {', '.join(w.number for w in winners)}")


if __name__ == "__main__":
    main()
