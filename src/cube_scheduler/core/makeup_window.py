"""
Makeup window for missed sessions.

A missed session can be made up until the day before the next session of
the same lift.  When no later same-lift session exists, the window closes
at the end of the Sunday of the missed session's week.
"""

from datetime import date, timedelta

from .models import SessionRef


def makeup_window_end(missed: SessionRef, all_sessions: list[SessionRef]) -> date:
    """Last calendar day on which the missed session may still be made up."""
    later = sorted(
        (
            s.scheduled_date
            for s in all_sessions
            if s.lift == missed.lift and s.id != missed.id and s.scheduled_date > missed.scheduled_date
        )
    )
    if later:
        return later[0] - timedelta(days=1)
    # weekday(): Monday 0 .. Sunday 6
    return missed.scheduled_date + timedelta(days=6 - missed.scheduled_date.weekday())


def is_makeup_window_expired(missed: SessionRef, all_sessions: list[SessionRef], today: date) -> bool:
    return today > makeup_window_end(missed, all_sessions)
