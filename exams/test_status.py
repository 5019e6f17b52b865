"""
Display status is a pure function of (now, start, end, session status).
"""
from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from exams.status import derive_display_status, remaining_seconds

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=dt_timezone.utc)
HOUR = timedelta(hours=1)


class DeriveDisplayStatusTests(SimpleTestCase):
    def test_completed_session_wins_over_window(self):
        self.assertEqual(derive_display_status(NOW, NOW + HOUR, NOW + 2 * HOUR, 'completed'), 'completed')
        self.assertEqual(derive_display_status(NOW, NOW - 2 * HOUR, NOW - HOUR, 'completed'), 'completed')

    def test_in_progress_session(self):
        self.assertEqual(derive_display_status(NOW, NOW - HOUR, NOW - timedelta(minutes=1), 'in_progress'), 'in-progress')

    def test_expired_after_end_time(self):
        self.assertEqual(derive_display_status(NOW, NOW - 2 * HOUR, NOW - HOUR), 'expired')
        self.assertEqual(derive_display_status(NOW, None, NOW - HOUR), 'expired')

    def test_pending_inside_window(self):
        self.assertEqual(derive_display_status(NOW, NOW - HOUR, NOW + HOUR), 'pending')
        self.assertEqual(derive_display_status(NOW, NOW - HOUR, None), 'pending')

    def test_window_bounds_are_inclusive(self):
        self.assertEqual(derive_display_status(NOW, NOW, NOW + HOUR), 'pending')
        self.assertEqual(derive_display_status(NOW, NOW - HOUR, NOW), 'pending')

    def test_upcoming_before_start(self):
        self.assertEqual(derive_display_status(NOW, NOW + HOUR, NOW + 2 * HOUR), 'upcoming')

    def test_no_window_falls_back_to_pending(self):
        self.assertEqual(derive_display_status(NOW), 'pending')

    def test_same_inputs_same_output(self):
        args = (NOW, NOW - HOUR, NOW + HOUR, None)
        self.assertEqual(derive_display_status(*args), derive_display_status(*args))


class RemainingSecondsTests(SimpleTestCase):
    def test_counts_down_from_duration(self):
        self.assertEqual(remaining_seconds(NOW - timedelta(minutes=10), 60, NOW), 50 * 60)

    def test_never_negative(self):
        self.assertEqual(remaining_seconds(NOW - 2 * HOUR, 60, NOW), 0)
