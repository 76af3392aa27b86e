"""Event date-window arithmetic (local calendar days).

Windows are computed in the timezone of the injected `now`:
    - now:      [now, now + 6h]
    - today:    [now, today 23:59:59.999]
    - tonight:  [max(now, today 17:00), today 23:59:59.999]
    - weekend:  [upcoming Saturday 00:00, following Sunday 23:59:59.999]
    - specific: [next <weekday> 00:00, same day 23:59:59.999] (today counts)

Day boundaries are built from calendar dates and re-attached to the timezone, so DST transitions
never move midnight.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, tzinfo

from src.intent.schema import WEEKDAYS, TimeContext, TimeLabel
from src.planner.schema import DateWindow

NOW_WINDOW = timedelta(hours=6)
TONIGHT_START = time(17, 0)
END_OF_DAY = time(23, 59, 59, 999_000)

SATURDAY = 5
SUNDAY = 6


def as_aware(now: datetime) -> datetime:
    """Return `now` with a timezone; naive values are read as local wall time."""

    if now.tzinfo is None:
        return now.astimezone()
    return now


def start_of_day(day: date, tz: tzinfo | None) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo | None) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=tz)


def next_weekday(today: date, weekday: int) -> date:
    """Next date falling on `weekday` (Monday=0); today counts."""

    return today + timedelta(days=(weekday - today.weekday()) % 7)


def _day_window(day: date, tz: tzinfo | None) -> DateWindow:
    return DateWindow(start=start_of_day(day, tz), end=end_of_day(day, tz))


def compute_date_window(time_context: TimeContext, now: datetime) -> DateWindow | None:
    """Compute the events date window for a time context.

    Returns:
        The window, or `None` when there is no time label (a window is never fabricated).
    """

    label = time_context.label
    if label is None:
        return None

    now = as_aware(now)
    tz = now.tzinfo
    today = now.date()

    if label == TimeLabel.now:
        # Absolute arithmetic so a DST jump does not stretch or shrink the window.
        end = (now.astimezone(UTC) + NOW_WINDOW).astimezone(tz)
        return DateWindow(start=now, end=end)

    if label == TimeLabel.today:
        return DateWindow(start=now, end=end_of_day(today, tz))

    if label == TimeLabel.tonight:
        tonight = datetime.combine(today, TONIGHT_START, tzinfo=tz)
        return DateWindow(start=max(now, tonight), end=end_of_day(today, tz))

    if label == TimeLabel.weekend:
        # On Sunday this rolls to next week's Saturday, keeping the window in the future.
        saturday = next_weekday(today, SATURDAY)
        sunday = saturday + timedelta(days=1)
        return DateWindow(start=start_of_day(saturday, tz), end=end_of_day(sunday, tz))

    if label == TimeLabel.specific and time_context.day_of_week in WEEKDAYS:
        day = next_weekday(today, WEEKDAYS.index(time_context.day_of_week))
        return _day_window(day, tz)

    return None
