import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from luckydraw.draw.allocator import NumberAllocator
from luckydraw.draw.defaults import DEFAULT_PRIZES, DEFAULT_SETTINGS
from luckydraw.draw.timers import ManualScheduler
from luckydraw.draw.types import (
    AutoStopMode,
    GlobalSettings,
    OperatorPaced,
    Prize,
    RandomSource,
    RevealMode,
    Sequential,
    Simultaneous,
    Winner,
)
from luckydraw.models import Base, WinnerRecord
from luckydraw.workflows import (
    build_controller,
    load_current_prize_id,
    load_prizes,
    load_settings,
    load_winners,
    record_winner,
    reset_event,
    save_current_prize_id,
    save_prizes,
    save_settings,
)


class WorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()


class StorageWorkflowTests(WorkflowTestCase):
    def test_empty_database_yields_defaults(self):
        with self.Session.begin() as session:
            self.assertEqual(load_prizes(session), list(DEFAULT_PRIZES))
            self.assertEqual(load_settings(session), DEFAULT_SETTINGS)
            self.assertEqual(load_winners(session), [])
            self.assertIsNone(load_current_prize_id(session))

    def test_prizes_round_trip_every_spin_mode(self):
        prizes = [
            Prize(id="a", name="A", spin_mode=OperatorPaced(RevealMode.TIMER), digit_count=4),
            Prize(id="b", name="B", quantity=3, spin_mode=Sequential(), spin_duration_ms=750),
            Prize(id="c", name="C", spin_mode=Simultaneous(AutoStopMode.MANUAL)),
        ]
        with self.Session.begin() as session:
            save_prizes(session, prizes)
        with self.Session.begin() as session:
            self.assertEqual(load_prizes(session), prizes)

    def test_settings_and_selection_are_stored_in_one_row(self):
        settings = GlobalSettings(
            min_number=1,
            max_number=500,
            exclude_previous_winners=False,
            random_source=RandomSource.REMOTE,
            remote_api_key="secret",
        )
        with self.Session.begin() as session:
            save_settings(session, settings)
            save_current_prize_id(session, "g-2")
        with self.Session.begin() as session:
            self.assertEqual(load_settings(session), settings)
            self.assertEqual(load_current_prize_id(session), "g-2")

    def test_winners_load_newest_first(self):
        now = datetime.now(timezone.utc)
        older = Winner(prize_id="p", prize_name="P", number="001", timestamp=now - timedelta(seconds=5))
        newer = Winner(prize_id="p", prize_name="P", number="002", timestamp=now)
        with self.Session.begin() as session:
            record_winner(session, older)
            record_winner(session, newer)
        with self.Session.begin() as session:
            loaded = load_winners(session)
        self.assertEqual([w.number for w in loaded], ["002", "001"])
        self.assertEqual(loaded[0].id, newer.id)
        self.assertEqual(loaded[0].timestamp, newer.timestamp)

    def test_winner_cannot_be_recorded_twice(self):
        winner = Winner(prize_id="p", prize_name="P", number="001")
        with self.Session.begin() as session:
            record_winner(session, winner)
            with self.assertRaises(ValueError):
                record_winner(session, winner)

    def test_reset_event_restores_defaults(self):
        with self.Session.begin() as session:
            record_winner(session, Winner(prize_id="g-1", prize_name="First", number="010"))
            save_prizes(session, [Prize(id="x", name="X")])
            reset_event(session)
        with self.Session.begin() as session:
            self.assertEqual(session.query(WinnerRecord).count(), 0)
            self.assertEqual(load_prizes(session), list(DEFAULT_PRIZES))
            self.assertEqual(load_current_prize_id(session), DEFAULT_PRIZES[-1].id)


class BuildControllerTests(WorkflowTestCase):
    def test_committed_winners_and_selection_are_persisted(self):
        prizes = [
            Prize(id="top", name="Top", spin_mode=Sequential(), spin_duration_ms=100),
            Prize(id="low", name="Low", quantity=2, spin_mode=Sequential(), spin_duration_ms=100),
        ]
        with self.Session.begin() as session:
            reset_event(
                session,
                prizes,
                GlobalSettings(min_number=0, max_number=99, random_source=RandomSource.LOCAL),
            )

        scheduler = ManualScheduler()
        values = iter([12, 34])
        controller = build_controller(
            self.Session,
            scheduler,
            allocator=NumberAllocator(local_source=lambda lo, hi: next(values)),
        )
        self.assertEqual(controller.current_prize_id, "low")

        controller.start_draw()
        scheduler.run_until_idle()
        controller.next_prize()

        with self.Session.begin() as session:
            self.assertEqual([w.number for w in load_winners(session)], ["012"])
            self.assertEqual(load_current_prize_id(session), "top")

        # A fresh controller sees the stored winner in its exclusion set.
        restored = build_controller(self.Session, ManualScheduler())
        self.assertEqual(restored.current_prize_id, "top")
        self.assertEqual(restored.exclusion_set(), frozenset({12}))


if __name__ == "__main__":
    unittest.main()
