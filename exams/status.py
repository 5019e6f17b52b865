"""
Display status of an exam for one student.
Pure functions: no database access, the caller passes "now".
"""

COMPLETED = 'completed'
IN_PROGRESS = 'in-progress'
EXPIRED = 'expired'
PENDING = 'pending'
UPCOMING = 'upcoming'


def derive_display_status(now, start_time=None, end_time=None, session_status=None):
    """
    First matching rule wins:
    completed session, in-progress session, past end_time, inside the
    window, before start_time, else pending.
    """
    if session_status == 'completed':
        return COMPLETED
    if session_status == 'in_progress':
        return IN_PROGRESS
    if end_time is not None and now > end_time:
        return EXPIRED
    if start_time is not None and now >= start_time and (end_time is None or now <= end_time):
        return PENDING
    if start_time is not None and now < start_time:
        return UPCOMING
    return PENDING


def remaining_seconds(start_time, duration_minutes, now):
    """Seconds left of duration_minutes counted from start_time, never negative."""
    elapsed = int((now - start_time).total_seconds())
    return max(0, int(duration_minutes or 0) * 60 - elapsed)
