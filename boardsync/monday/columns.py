"""
Column value extraction.

Pulls typed values out of an Item's raw column entries. The JSON payload is
authoritative; the rendered text is the fallback when the payload is absent,
fails to parse, or lacks the expected field. Nothing here raises: a missing
column or unreadable value comes back as ColumnValue.empty().
"""

import json
from datetime import date
from typing import Any

from boardsync.monday.types import ColumnValue, Item, RawColumn


def find_column(item: Item, column_id: str) -> RawColumn | None:
    """Look up a raw column entry by id."""
    return item.columns.get(column_id)


def parse_payload(column: RawColumn) -> dict[str, Any]:
    """Decode the JSON payload, or {} when absent or malformed."""
    if not column.value:
        return {}
    try:
        parsed = json.loads(column.value)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def parse_day(text: str | None) -> date | None:
    """Parse a YYYY-MM-DD string (anything after the day is ignored)."""
    if not text:
        return None
    try:
        return date.fromisoformat(text.strip()[:10])
    except ValueError:
        return None


def get_text(item: Item, column_id: str) -> ColumnValue:
    """Rendered text of any column."""
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()
    return ColumnValue.of_text(column.text)


def get_mirror_text(item: Item, column_id: str) -> ColumnValue:
    """Mirror columns render through display_value; plain columns through text."""
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()
    if column.display_value is not None:
        return ColumnValue.of_text(column.display_value)
    return ColumnValue.of_text(column.text)


def get_date(item: Item, column_id: str) -> ColumnValue:
    """Date column as a calendar day."""
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()

    payload_day = parse_day(parse_payload(column).get("date"))
    if payload_day is not None:
        return ColumnValue.of_date(payload_day)

    return ColumnValue.of_date(parse_day(column.text))


def date_parse_error(item: Item, column_id: str) -> str | None:
    """
    Why a non-blank date column could not be read as a day.

    Returns None when the column is blank or holds a readable date.
    """
    column = find_column(item, column_id)
    if column is None or not get_date(item, column_id).is_empty:
        return None
    raw = parse_payload(column).get("date") or (column.text or "").strip()
    if not raw:
        return None
    return f"Unparseable date in {column_id}: {raw!r}"


def get_status_label(item: Item, column_id: str) -> ColumnValue:
    """
    Status column label.

    Some status payloads carry only a numeric index; a bare number is not a
    label, so the rendered text is used instead.
    """
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()

    label = parse_payload(column).get("label")
    if isinstance(label, str) and label:
        return ColumnValue.status(label)
    if isinstance(label, dict) and label.get("text"):
        return ColumnValue.status(label["text"])

    return ColumnValue.status(column.text)


def get_url(item: Item, column_id: str) -> ColumnValue:
    """Link column as url + display text."""
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()

    payload = parse_payload(column)
    if payload.get("url"):
        return ColumnValue.link(payload["url"], payload.get("text"))

    # The rendered text of a link column is usually "text - url" or just the url
    text = (column.text or "").strip()
    if " - " in text:
        display, _, url = text.rpartition(" - ")
        if url.startswith(("http://", "https://")):
            return ColumnValue.link(url, display)
    return ColumnValue.link(text)


def get_email(item: Item, column_id: str) -> ColumnValue:
    """Email column address."""
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()

    email = parse_payload(column).get("email")
    if email:
        return ColumnValue.email(email)
    return ColumnValue.email(column.text)


def get_linked_ids(item: Item, column_id: str) -> ColumnValue:
    """
    Relation column as linked item ids, in API order.

    Relations are only read from the payload; the rendered text holds item
    names, not ids.
    """
    column = find_column(item, column_id)
    if column is None:
        return ColumnValue.empty()

    linked = parse_payload(column).get("linkedPulseIds")
    if not isinstance(linked, list):
        return ColumnValue.empty()

    ids = []
    for entry in linked:
        if not isinstance(entry, dict):
            continue
        try:
            ids.append(int(entry["linkedPulseId"]))
        except (KeyError, TypeError, ValueError):
            continue
    return ColumnValue.relation(ids)
