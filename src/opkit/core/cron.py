"""Cron expression helpers for the manifest."""

import logging
from datetime import datetime
from typing import List, Optional

from croniter import croniter

logger = logging.getLogger(__name__)

CRON_ALIASES = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_NAMES = [
    "", "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def is_valid_cron(expression: str) -> bool:
    """Check an expression with croniter without raising."""
    if not expression or not expression.strip():
        return False
    text = expression.strip()
    try:
        return croniter.is_valid(CRON_ALIASES.get(text.lower(), text))
    except (TypeError, ValueError):
        return False


def _step(field: str) -> Optional[int]:
    if field.startswith("*/") and field[2:].isdigit():
        return int(field[2:])
    return None


def _join(items: List[str]) -> str:
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + " and " + items[-1]


def _named(field: str, names: List[str]) -> str:
    """Render a day-of-week or month field with names where possible."""
    parts = []
    for part in field.split(","):
        if "-" in part and all(p.isdigit() for p in part.split("-", 1)):
            start, end = (int(p) for p in part.split("-", 1))
            if start < len(names) and end < len(names):
                parts.append(f"{names[start]} through {names[end]}")
                continue
        if part.isdigit() and int(part) < len(names):
            parts.append(names[int(part)])
        else:
            parts.append(part)
    return _join(parts)


def _time_phrase(minute: str, hour: str) -> Optional[str]:
    if minute.isdigit() and hour.isdigit():
        return f"{int(hour):02d}:{int(minute):02d}"
    return None


def _frequency_phrase(minute: str, hour: str) -> str:
    minute_step = _step(minute)
    hour_step = _step(hour)

    if minute == "*" and hour == "*":
        return "Every minute"
    if minute_step and hour == "*":
        return "Every minute" if minute_step == 1 else f"Every {minute_step} minutes"
    if minute.isdigit() and hour == "*":
        if int(minute) == 0:
            return "Every hour, on the hour"
        return f"Every hour at minute {int(minute)}"
    if minute.isdigit() and hour_step:
        return f"Every {hour_step} hours at minute {int(minute)}"
    return f"At minute {minute} past hour {hour}"


def _describe(minute: str, hour: str, dom: str, month: str, dow: str) -> str:
    at = _time_phrase(minute, hour)
    months = "every month" if month == "*" else _named(month, MONTH_NAMES)

    if at is not None:
        if dom == "*" and dow == "*":
            text = "Every day" if month == "*" else f"Every day in {months}"
        elif dom == "*":
            text = f"Every {_named(dow, DAY_NAMES)}"
            if month != "*":
                text += f" in {months}"
        else:
            text = f"On day {dom} of {months}"
            if dow != "*":
                text += f" and every {_named(dow, DAY_NAMES)}"
        return f"{text} at {at}"

    text = _frequency_phrase(minute, hour)
    if dow != "*":
        text += f", on {_named(dow, DAY_NAMES)}"
    if dom != "*":
        text += f", on day {dom} of the month"
    if month != "*":
        text += f", in {months}"
    return text


def summarize_cron(expression: str) -> str:
    """
    Describe how often a cron expression recurs.

    Malformed expressions are returned unchanged; this never raises, so a
    bad schedule cannot break manifest construction.

    Args:
        expression: Five-field cron expression or alias such as "@hourly"

    Returns:
        Human-readable recurrence, e.g. "Every day at 09:30"
    """
    if not is_valid_cron(expression):
        logger.debug(f"Cron expression '{expression}' is not valid; using it as its own summary")
        return expression

    text = expression.strip()
    fields = CRON_ALIASES.get(text.lower(), text).split()
    if len(fields) != 5:
        return f"Recurs on schedule {text}"

    return _describe(*fields)


def next_run(expression: str, after: datetime) -> Optional[datetime]:
    """
    Compute the next fire time after ``after``.

    Returns:
        Next run time, or None for malformed expressions
    """
    if not is_valid_cron(expression):
        return None
    text = expression.strip()
    return croniter(CRON_ALIASES.get(text.lower(), text), after).get_next(datetime)
