"""Cell formatting for the memory and history tables."""

from datetime import datetime


def shorten(text: str, width: int) -> str:
    """Fit text on one table line.

    Whitespace runs (including the newlines of serialized memory content)
    collapse to single spaces; anything past ``width`` is replaced by "...".
    """
    line = " ".join(text.split())
    if len(line) <= width:
        return line
    return line[: max(width - 3, 0)] + "..."


def format_timestamp(dt: datetime | None, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format a timestamp in local time, or "-" for None."""
    if dt is None:
        return "-"
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime(fmt)


def format_elapsed(seconds: float) -> str:
    """Format a task duration: "2.5s" under a minute, then "m:ss" or "h:mm:ss"."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
