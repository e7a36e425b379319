"""
Cron expression evaluator.

Six whitespace-separated fields:

    second  minute  hour  day-of-month  month  day-of-week
    0-59    0-59    0-23  1-31          1-12   0-6 (0 = Sunday)

Each field accepts:
- *          every value
- */step     every step-th value counted from the field minimum
- a-b        inclusive range
- a-b/step   every step-th value in [a, b], starting at a
- a,b,c      list of integers
- n          a single integer

A date/time matches when all six fields match (day-of-month and day-of-week
are ANDed, unlike classic cron).
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .entities import utc_now
from .errors import MalformedExpressionError


FIELD_COUNT = 6

# (name, minimum, maximum) in expression order
FIELD_SPECS = (
    ("second", 0, 59),
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day", 1, 31),
    ("month", 1, 12),
    ("day_of_week", 0, 6),
)

# One leap year of seconds
SEARCH_HORIZON_SECONDS = 366 * 24 * 60 * 60

_INTEGER_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class CronField:
    """A single parsed field: the source pattern and the values it admits."""

    name: str
    pattern: str
    minimum: int
    maximum: int
    values: frozenset

    def matches(self, value: int) -> bool:
        return value in self.values


@dataclass(frozen=True)
class CronExpression:
    """Parsed six-field expression."""

    expression: str
    second: CronField
    minute: CronField
    hour: CronField
    day: CronField
    month: CronField
    day_of_week: CronField

    def matches(self, moment: datetime) -> bool:
        """Check whether all six fields match the given instant."""
        return (
            self.second.matches(moment.second)
            and self.minute.matches(moment.minute)
            and self.hour.matches(moment.hour)
            and self._date_matches(moment)
        )

    def _date_matches(self, moment: datetime) -> bool:
        return (
            self.day.matches(moment.day)
            and self.month.matches(moment.month)
            and self.day_of_week.matches(_cron_weekday(moment))
        )

    def next_after(self, from_instant: Optional[datetime] = None) -> Optional[datetime]:
        """
        Find the earliest matching instant strictly after from_instant.

        Sub-second precision is dropped from from_instant first. Candidates
        run from from_instant + 1s up to from_instant + one leap year; when
        a day, hour or minute cannot match, the whole span is skipped since
        no instant inside it could match either.

        Returns:
            The matching datetime (same tzinfo as from_instant), or None if
            nothing matches within the horizon.
        """
        start = (from_instant or utc_now()).replace(microsecond=0)
        horizon = start + timedelta(seconds=SEARCH_HORIZON_SECONDS)
        candidate = start + timedelta(seconds=1)

        while candidate <= horizon:
            if not self._date_matches(candidate):
                candidate = candidate.replace(hour=0, minute=0, second=0) + timedelta(days=1)
                continue
            if not self.hour.matches(candidate.hour):
                candidate = candidate.replace(minute=0, second=0) + timedelta(hours=1)
                continue
            if not self.minute.matches(candidate.minute):
                candidate = candidate.replace(second=0) + timedelta(minutes=1)
                continue
            if not self.second.matches(candidate.second):
                candidate += timedelta(seconds=1)
                continue
            return candidate

        return None


def _cron_weekday(moment: datetime) -> int:
    """Python counts Monday as 0; cron counts Sunday as 0."""
    return (moment.weekday() + 1) % 7


def _parse_int(expression: str, name: str, text: str) -> int:
    if not _INTEGER_RE.match(text):
        raise MalformedExpressionError(
            expression, f"{name} field: '{text}' is not a non-negative integer"
        )
    return int(text)


def _parse_bounded(expression: str, name: str, text: str, minimum: int, maximum: int) -> int:
    value = _parse_int(expression, name, text)
    if value < minimum or value > maximum:
        raise MalformedExpressionError(
            expression, f"{name} field: {value} outside {minimum}-{maximum}"
        )
    return value


def _parse_range(
    expression: str, name: str, text: str, minimum: int, maximum: int
) -> tuple[int, int]:
    parts = text.split("-")
    if len(parts) != 2:
        raise MalformedExpressionError(expression, f"{name} field: bad range '{text}'")

    start = _parse_bounded(expression, name, parts[0], minimum, maximum)
    end = _parse_bounded(expression, name, parts[1], minimum, maximum)
    if start > end:
        raise MalformedExpressionError(
            expression, f"{name} field: range start {start} is after end {end}"
        )
    return start, end


def _parse_field(expression: str, name: str, pattern: str, minimum: int, maximum: int) -> CronField:
    if pattern == "*":
        values = range(minimum, maximum + 1)

    elif "/" in pattern:
        base, _, step_text = pattern.partition("/")
        step = _parse_int(expression, name, step_text)
        if step < 1:
            raise MalformedExpressionError(expression, f"{name} field: step must be at least 1")

        if base == "*":
            start, end = minimum, maximum
        elif "-" in base:
            start, end = _parse_range(expression, name, base, minimum, maximum)
        else:
            raise MalformedExpressionError(
                expression, f"{name} field: step needs '*' or a range, got '{base}'"
            )
        values = range(start, end + 1, step)

    elif "-" in pattern:
        start, end = _parse_range(expression, name, pattern, minimum, maximum)
        values = range(start, end + 1)

    elif "," in pattern:
        values = [
            _parse_bounded(expression, name, item, minimum, maximum)
            for item in pattern.split(",")
        ]

    else:
        values = [_parse_bounded(expression, name, pattern, minimum, maximum)]

    return CronField(
        name=name,
        pattern=pattern,
        minimum=minimum,
        maximum=maximum,
        values=frozenset(values),
    )


def parse_expression(expression: str) -> CronExpression:
    """
    Parse a six-field cron expression.

    Raises:
        MalformedExpressionError: wrong field count or any field fails to parse
    """
    if not isinstance(expression, str):
        raise MalformedExpressionError(str(expression), "expression must be a string")

    parts = expression.split()
    if len(parts) != FIELD_COUNT:
        raise MalformedExpressionError(
            expression,
            "cron expression must have 6 fields: second minute hour day month dayOfWeek",
        )

    fields = {
        name: _parse_field(expression, name, pattern, minimum, maximum)
        for (name, minimum, maximum), pattern in zip(FIELD_SPECS, parts)
    }
    return CronExpression(expression=expression, **fields)


def validate_expression(expression: str) -> bool:
    """Syntactic check only; a valid expression may still never match."""
    try:
        parse_expression(expression)
    except MalformedExpressionError:
        return False
    return True


def next_run_time(expression: str, from_instant: Optional[datetime] = None) -> Optional[datetime]:
    """
    Compute the next instant matching expression after from_instant.

    Args:
        expression: Six-field cron expression
        from_instant: Base instant (defaults to now, UTC)

    Returns:
        The next matching instant, or None when nothing matches within a year

    Raises:
        MalformedExpressionError: If the expression cannot be parsed
    """
    return parse_expression(expression).next_after(from_instant)
