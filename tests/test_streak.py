import unittest
from datetime import date, datetime

from vault_recall.models import StreakState
from vault_recall.streak import (
    check_and_update_streak,
    days_between,
    increment_streak,
    reset_streak,
    today_str,
)


class DaysBetweenTests(unittest.TestCase):
    def test_calendar_days(self) -> None:
        self.assertEqual(days_between("2025-01-15", "2025-01-15"), 0)
        self.assertEqual(days_between("2025-01-15", "2025-01-16"), 1)
        self.assertEqual(days_between("2024-12-31", "2025-01-02"), 2)
        self.assertEqual(days_between("2024-02-28", "2024-03-01"), 2)

    def test_accepts_date_objects(self) -> None:
        self.assertEqual(days_between(date(2025, 1, 15), datetime(2025, 1, 16, 23, 59)), 1)

    def test_today_str_format(self) -> None:
        self.assertEqual(today_str(), date.today().strftime("%Y-%m-%d"))


class CheckAndUpdateStreakTests(unittest.TestCase):
    def test_no_previous_quiz(self) -> None:
        state = StreakState()
        self.assertEqual(check_and_update_streak(state, "2025-01-15"), state)

    def test_same_day_keeps_streak(self) -> None:
        state = StreakState(current=4, longest=6, last_quiz_date="2025-01-15")
        self.assertEqual(check_and_update_streak(state, "2025-01-15"), state)

    def test_one_day_gap_keeps_streak(self) -> None:
        state = StreakState(current=4, longest=6, last_quiz_date="2025-01-15")
        self.assertEqual(check_and_update_streak(state, "2025-01-16").current, 4)

    def test_missed_day_resets_current_only(self) -> None:
        state = StreakState(current=5, longest=5, last_quiz_date="2025-01-13")
        updated = check_and_update_streak(state, "2025-01-15")
        self.assertEqual(updated, StreakState(current=0, longest=5, last_quiz_date="2025-01-13"))
        self.assertEqual(state.current, 5)


class IncrementStreakTests(unittest.TestCase):
    def test_first_quiz(self) -> None:
        updated = increment_streak(StreakState(), "2025-01-15")
        self.assertEqual(updated, StreakState(current=1, longest=1, last_quiz_date="2025-01-15"))

    def test_next_day_extends_and_raises_longest(self) -> None:
        state = StreakState(current=3, longest=3, last_quiz_date="2025-01-14")
        updated = increment_streak(state, date(2025, 1, 15))
        self.assertEqual(updated, StreakState(current=4, longest=4, last_quiz_date="2025-01-15"))

    def test_second_quiz_same_day_is_noop(self) -> None:
        once = increment_streak(StreakState(current=2, longest=7, last_quiz_date="2025-01-14"), "2025-01-15")
        twice = increment_streak(once, "2025-01-15")
        self.assertEqual(once, twice)
        self.assertEqual(twice.current, 3)
        self.assertEqual(twice.longest, 7)

    def test_gap_then_quiz_starts_over(self) -> None:
        state = StreakState(current=9, longest=9, last_quiz_date="2025-01-10")
        state = check_and_update_streak(state, "2025-01-15")
        state = increment_streak(state, "2025-01-15")
        self.assertEqual(state, StreakState(current=1, longest=9, last_quiz_date="2025-01-15"))

    def test_longest_never_below_current(self) -> None:
        state = StreakState()
        day = date(2025, 1, 1)
        for offset in (0, 1, 2, 5, 6, 6, 7, 20):
            today = date.fromordinal(day.toordinal() + offset)
            state = increment_streak(check_and_update_streak(state, today), today)
            self.assertGreaterEqual(state.longest, state.current)
        self.assertEqual(state.longest, 3)


class ResetStreakTests(unittest.TestCase):
    def test_reset_keeps_longest(self) -> None:
        state = StreakState(current=4, longest=10, last_quiz_date="2025-01-15")
        self.assertEqual(reset_streak(state), StreakState(current=0, longest=10, last_quiz_date=None))


class StreakStateFromDictTests(unittest.TestCase):
    def test_repairs_inconsistent_values(self) -> None:
        state = StreakState.from_dict({"current": 5, "longest": 2, "lastQuizDate": "2025-01-15"})
        self.assertEqual(state.longest, 5)

    def test_unparseable_date_becomes_none(self) -> None:
        state = StreakState.from_dict({"current": 1, "longest": 1, "lastQuizDate": "15/01/2025"})
        self.assertIsNone(state.last_quiz_date)


if __name__ == "__main__":
    unittest.main()
