"""Conversion between date strings and epoch seconds."""

from datetime import datetime, timezone

from dateutil import parser as date_parser

from datebisect.core.errors import DateParseError

# Lexicographic order of this format matches chronological order,
# and dateutil parses it back.
DATE_FORMAT = "%Y-%m-%d %H:%M +0000"


def to_time_point(text: str) -> int:
    """Convert a human-readable date to seconds since the epoch.

    Dates without a timezone are taken as UTC. ``@<seconds>`` is
    accepted as a literal epoch value, as GNU date does.

    Raises:
        DateParseError: If the string is not a date
    """
    value = text.strip() if isinstance(text, str) else ""
    if not value:
        raise DateParseError(str(text), "empty date")

    if value.startswith("@"):
        try:
            return int(value[1:])
        except ValueError as e:
            raise DateParseError(text, "bad epoch value") from e

    try:
        parsed = date_parser.parse(value)
    except (date_parser.ParserError, OverflowError, ValueError) as e:
        raise DateParseError(text, str(e)) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def to_date_string(time_point: int) -> str:
    """Format epoch seconds as a canonical UTC date, minute precision."""
    moment = datetime.fromtimestamp(time_point, tz=timezone.utc)
    return moment.strftime(DATE_FORMAT)


def to_minute(time_point: int) -> int:
    """Round epoch seconds down to the start of their minute.

    Collaborators only ever see minute-precision dates, so a bound
    on this grid is exactly the date that was tested.
    """
    return time_point - time_point % 60
