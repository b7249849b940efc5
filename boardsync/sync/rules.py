"""
Derivation rules.

Pure functions mapping source values to target values. No I/O, no clock
reads unless a `today` is passed in.
"""

import re
from datetime import date, datetime, time, timedelta, timezone

# Honorifics skipped when picking a first name
NAME_PREFIXES = ("mr", "mrs", "ms", "miss", "dr", "prof", "sir", "lady", "rev", "mx")

# "Name - Company", "Name | Company", "Name / Company" (hyphen, en dash, em dash)
NAME_SEPARATORS = re.compile(r"\s*[-–—|/]\s*")

JOB_ID_PATTERN = re.compile(r"[?&]id=(\d+)")

RULE_COPY = "copy-as-is"
RULE_MINUS_ONE = "minus-one-day"
RULE_PLUS_ONE = "plus-one-day"

NOON_UTC = time(12, 0, tzinfo=timezone.utc)


def shift_date(
    day: date,
    status_label: str | None,
    *,
    exempt_label: str,
    direction: int,
) -> date:
    """
    Date-shift rule.

    Returns `day` unchanged when the status label is the exempt label,
    otherwise `day` moved one calendar day in `direction`.

    The shift is done on a noon-UTC timestamp and the date re-extracted, so a
    DST transition on either side can never move the result off by a day.

    Args:
        day: Source calendar day
        status_label: Current status label (None/"" for unset)
        exempt_label: Label that means "copy as-is"
        direction: -1 (day before) or +1 (day after)

    Raises:
        ValueError: If direction is not -1 or +1
    """
    if direction not in (-1, 1):
        raise ValueError(f"direction must be -1 or +1, got {direction!r}")

    if status_label == exempt_label:
        return day

    anchored = datetime.combine(day, NOON_UTC)
    shifted = anchored + timedelta(days=direction)
    return shifted.date()


def applied_rule(status_label: str | None, *, exempt_label: str, direction: int) -> str:
    """Name of the branch shift_date takes, for reports."""
    if status_label == exempt_label:
        return RULE_COPY
    return RULE_MINUS_ONE if direction < 0 else RULE_PLUS_ONE


def extract_job_id(url: str | None) -> str:
    """
    Identifier-extraction rule.

    "https://myhirehop.com/job.php?id=13422&x=1" -> "13422"; "" if no id.
    """
    if not url:
        return ""
    match = JOB_ID_PATTERN.search(url)
    return match.group(1) if match else ""


def build_portal_url(base_url: str, job_id: str) -> str:
    """Append a job id to a portal URL prefix."""
    return f"{base_url}{job_id}"


def first_name(full_name: str | None) -> str:
    """
    Name-splitting rule.

    "Mr Jonathan Wood - Ooosh Tours" -> "Jonathan"
    "Mrs Sarah Smith" -> "Sarah"
    "Acme Corp Ltd" -> "Acme"
    """
    if not full_name or not isinstance(full_name, str):
        return ""

    name_part = NAME_SEPARATORS.split(full_name)[0].strip()
    words = name_part.split()
    if not words:
        return ""

    prefix = re.sub(r"[.,]", "", words[0].lower())
    if prefix in NAME_PREFIXES and len(words) > 1:
        return words[1]
    return words[0]


def days_until(day: date, today: date) -> int:
    """Whole calendar days from today to day (negative when past)."""
    return (day - today).days
