import datetime as dt
import itertools
import unittest

from walktime.domain import HourlySeries, UnitSystem, WalkWindow
from walktime.walk_windows import compute_walk_windows, select_windows

DAY = dt.datetime(2024, 6, 1, 0, 0)


def _window(hour: int, score: float, *, day: dt.datetime = DAY) -> WalkWindow:
    return WalkWindow(
        source_index=hour,
        time=day + dt.timedelta(hours=hour),
        temperature_c=15.6,
        precipitation_probability_percent=0.0,
        is_daylight=True,
        score=score,
    )


def _series(hours: int, *, start: dt.datetime = DAY, precip=None, timezone=None) -> HourlySeries:
    stamps = [start + dt.timedelta(hours=i) for i in range(hours)]
    precip = precip or (lambda i: 0)
    return HourlySeries(
        times=tuple(t.isoformat(timespec="minutes") for t in stamps),
        temperature_2m=tuple(15.6 for _ in stamps),
        precipitation_probability=tuple(precip(i) for i in range(hours)),
        is_day=tuple(1 if 5 <= t.hour <= 20 else 0 for t in stamps),
        timezone=timezone,
    )


def _gap_hours(a: WalkWindow, b: WalkWindow) -> float:
    return abs((a.time - b.time).total_seconds()) / 3600


class TestSelectWindows(unittest.TestCase):
    def test_empty_input_gives_empty_lists(self):
        full, top = select_windows([])
        self.assertEqual(full, [])
        self.assertEqual(top, [])

    def test_full_list_is_input_unchanged(self):
        windows = [_window(6, 30), _window(7, 10), _window(8, 20)]
        full, _ = select_windows(windows)
        self.assertEqual(full, windows)

    def test_picks_lowest_scores_then_orders_by_time(self):
        windows = [_window(6, 30), _window(11, 5), _window(16, 1), _window(20, 50)]
        _, top = select_windows(windows)
        self.assertEqual([w.time.hour for w in top], [6, 11, 16])

    def test_equal_scores_prefer_earlier_hour(self):
        windows = [_window(8, 0), _window(9, 0), _window(10, 0)]
        _, top = select_windows(windows)
        self.assertEqual([w.time.hour for w in top], [8])

    def test_greedy_pick_does_not_backtrack(self):
        # 10:00 is taken first and blocks 12:00 and 14:00 even though a
        # 12:00 + 17:00 pair would also have fit.
        windows = [_window(10, 0), _window(12, 1), _window(14, 2), _window(16, 50), _window(17, 60)]
        _, top = select_windows(windows)
        self.assertEqual([w.time.hour for w in top], [10, 16])

    def test_exactly_five_hours_apart_is_allowed(self):
        windows = [_window(10, 0), _window(15, 1), _window(14, 0.5)]
        _, top = select_windows(windows)
        self.assertEqual([w.time.hour for w in top], [10, 15])

    def test_spacing_uses_absolute_difference(self):
        windows = [_window(15, 0), _window(11, 1), _window(10, 2)]
        _, top = select_windows(windows)
        self.assertEqual([w.time.hour for w in top], [10, 15])

    def test_at_most_three_picks(self):
        windows = [_window(h, h) for h in range(5, 21)]
        _, top = select_windows(windows)
        self.assertEqual(len(top), 3)
        self.assertEqual([w.time.hour for w in top], [5, 10, 15])

    def test_spacing_across_midnight(self):
        tomorrow = DAY + dt.timedelta(days=1)
        windows = [_window(18, 0), _window(20, 1), _window(5, 2, day=tomorrow)]
        _, top = select_windows(windows)
        self.assertEqual([(w.time.day, w.time.hour) for w in top], [(1, 18), (2, 5)])


class TestComputeWalkWindows(unittest.TestCase):
    def test_comfortable_day_spreads_three_picks(self):
        selection = compute_walk_windows(_series(24), dt.datetime(2024, 6, 1, 5, 0))
        self.assertEqual(selection.current_hour_index, 5)
        self.assertEqual(len(selection.full_list), 16)
        self.assertEqual(len(selection.top_list), 3)
        self.assertTrue(all(w.score == 0 for w in selection.top_list))
        self.assertTrue(all(5 <= w.time.hour <= 20 for w in selection.top_list))
        for a, b in itertools.combinations(selection.top_list, 2):
            self.assertGreaterEqual(_gap_hours(a, b), 5)

    def test_single_eligible_hour(self):
        series = _series(4, start=dt.datetime(2024, 6, 1, 2, 0), precip=lambda i: 90)
        selection = compute_walk_windows(series, dt.datetime(2024, 6, 1, 2, 0))
        self.assertEqual(len(selection.top_list), 1)
        self.assertEqual(selection.top_list[0].source_index, 3)
        self.assertEqual(selection.top_list[0].score, 180.0)

    def test_all_night_gives_empty_lists(self):
        series = _series(4, start=dt.datetime(2024, 6, 1, 21, 0))
        selection = compute_walk_windows(series, dt.datetime(2024, 6, 1, 21, 0))
        self.assertEqual(selection.full_list, [])
        self.assertEqual(selection.top_list, [])

    def test_units_passed_through(self):
        selection = compute_walk_windows(_series(24), dt.datetime(2024, 6, 1, 5, 0), units=UnitSystem.METRIC)
        self.assertEqual(selection.units, UnitSystem.METRIC)

    def test_properties_hold_for_varied_forecast(self):
        series = _series(48, precip=lambda i: (i * 37) % 101)
        for hour in range(0, 24, 3):
            selection = compute_walk_windows(series, DAY + dt.timedelta(hours=hour))
            top, full = selection.top_list, selection.full_list
            self.assertLessEqual(len(top), 3)
            self.assertLessEqual(len(top), len(full))
            self.assertEqual(top, sorted(top, key=lambda w: w.time))
            self.assertEqual(full, sorted(full, key=lambda w: w.time))
            for a, b in itertools.combinations(top, 2):
                self.assertGreaterEqual(_gap_hours(a, b), 5)

    def test_same_inputs_same_output(self):
        series = _series(48, precip=lambda i: (i * 13) % 100)
        now = dt.datetime(2024, 6, 1, 9, 20)
        self.assertEqual(compute_walk_windows(series, now), compute_walk_windows(series, now))

    def test_timezone_aware_now(self):
        series = _series(48, timezone="Europe/Berlin")
        now = dt.datetime(2024, 6, 1, 20, 30, tzinfo=dt.timezone.utc)  # 22:30 in Berlin
        selection = compute_walk_windows(series, now)
        self.assertEqual(selection.current_hour_index, 22)
        self.assertTrue(all(w.is_next_day for w in selection.full_list))
        self.assertEqual(selection.full_list[0].time.hour, 5)


if __name__ == "__main__":
    unittest.main()
