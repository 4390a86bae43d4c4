"""Human-readable timestamps for recorded query instances."""

from datetime import UTC, datetime, timedelta, timezone


def ordinal(day: int) -> str:
    """Return the day of month with its English ordinal suffix (1st, 2nd, 11th, 23rd)."""
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_timestamp(moment: datetime) -> str:
    """
    Format a datetime as e.g. ``October 19th 2026, 3:04:05 pm``.

    Args:
        moment: The datetime to format. Its own wall-clock fields are used as-is.

    Returns:
        The formatted timestamp string.
    """
    hour = moment.hour % 12 or 12
    meridiem = "am" if moment.hour < 12 else "pm"
    return f"{moment.strftime('%B')} {ordinal(moment.day)} {moment.year}, {hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"


def current_timestamp(utc_offset_hours: float | None = None) -> str:
    """
    Format the current time for a new instance.

    Args:
        utc_offset_hours: A fixed offset from UTC to render the time in. If None,
                          the machine's local timezone is used.
    """
    if utc_offset_hours is None:
        now = datetime.now().astimezone()
    else:
        now = datetime.now(UTC).astimezone(timezone(timedelta(hours=utc_offset_hours)))
    return format_timestamp(now)
