"""
monday.com data types.

Provider-shaped records (items, raw column entries, webhook events) plus the
decoded ColumnValue variant the rest of the pipeline works with.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class ColumnKind(Enum):
    """Decoded column value variants."""
    EMPTY = "empty"
    TEXT = "text"
    STATUS = "status"
    DATE = "date"
    EMAIL = "email"
    LINK = "link"
    RELATION = "relation"


@dataclass(frozen=True, eq=False)
class ColumnValue:
    """
    One typed column value.

    Use the named constructors; each returns the EMPTY variant for blank
    input so "no value" has exactly one representation.

    Attributes:
        kind: Which variant this is
        text: Label, plain text, email address or link display text
        day: Calendar day for DATE values
        url: Target for LINK values
        linked_ids: Linked item ids for RELATION values, in API order
    """
    kind: ColumnKind
    text: str = ""
    day: date | None = None
    url: str = ""
    linked_ids: tuple[int, ...] = ()

    @classmethod
    def empty(cls) -> "ColumnValue":
        return cls(ColumnKind.EMPTY)

    @classmethod
    def of_text(cls, value: str | None) -> "ColumnValue":
        if not value:
            return cls.empty()
        return cls(ColumnKind.TEXT, text=value)

    @classmethod
    def status(cls, label: str | None) -> "ColumnValue":
        if not label:
            return cls.empty()
        return cls(ColumnKind.STATUS, text=label)

    @classmethod
    def of_date(cls, day: date | None) -> "ColumnValue":
        if day is None:
            return cls.empty()
        return cls(ColumnKind.DATE, day=day)

    @classmethod
    def email(cls, address: str | None) -> "ColumnValue":
        if not address:
            return cls.empty()
        return cls(ColumnKind.EMAIL, text=address)

    @classmethod
    def link(cls, url: str | None, text: str | None = None) -> "ColumnValue":
        if not url:
            return cls.empty()
        return cls(ColumnKind.LINK, url=url, text=text or url)

    @classmethod
    def relation(cls, ids) -> "ColumnValue":
        ids = tuple(int(i) for i in ids or ())
        if not ids:
            return cls.empty()
        return cls(ColumnKind.RELATION, linked_ids=ids)

    @property
    def is_empty(self) -> bool:
        return self.kind is ColumnKind.EMPTY

    @property
    def first_linked_id(self) -> int | None:
        """The defined pick when a single linked item is expected."""
        return self.linked_ids[0] if self.linked_ids else None

    def display(self) -> str:
        """Plain string form, used in responses and idempotency markers."""
        if self.kind is ColumnKind.DATE and self.day is not None:
            return self.day.isoformat()
        if self.kind is ColumnKind.LINK:
            return self.url
        if self.kind is ColumnKind.RELATION:
            return ",".join(str(i) for i in self.linked_ids)
        return self.text

    def _key(self) -> tuple:
        if self.kind is ColumnKind.RELATION:
            return (self.kind, frozenset(self.linked_ids))
        return (self.kind, self.text, self.day, self.url)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnValue):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())


@dataclass(frozen=True)
class RawColumn:
    """
    A column entry exactly as the API returns it.

    Attributes:
        id: Column identifier
        text: Rendered text fallback
        value: JSON-encoded payload (authoritative when it parses)
        display_value: Rendered value of mirror columns
    """
    id: str
    text: str | None = None
    value: str | None = None
    display_value: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RawColumn":
        return cls(
            id=str(data.get("id", "")),
            text=data.get("text"),
            value=data.get("value"),
            display_value=data.get("display_value"),
        )


@dataclass
class Item:
    """
    A record on a board.

    Attributes:
        id: Item identifier
        name: Display name
        columns: Raw column entries keyed by column id
        board_id: Owning board, when the query asked for it
    """
    id: int
    name: str = ""
    columns: dict[str, RawColumn] = field(default_factory=dict)
    board_id: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Item":
        """Create an Item from an `items` query entry."""
        columns: dict[str, RawColumn] = {}
        for entry in data.get("column_values") or []:
            column = RawColumn.from_api(entry)
            columns[column.id] = column

        board = data.get("board") or {}
        board_id = board.get("id")

        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            columns=columns,
            board_id=int(board_id) if board_id else None,
        )


@dataclass
class WebhookEvent:
    """
    The `event` object of an inbound webhook delivery.

    Attributes:
        item_id: Item that changed (pulseId or itemId on the wire)
        board_id: Board the item lives on, if sent
        column_id: Changed column; None means the item name changed or the
            item was created
        value: Inline new value, if sent
        event_type: monday event type (e.g. "update_column_value")
    """
    item_id: int
    board_id: int | None = None
    column_id: str | None = None
    value: dict[str, Any] = field(default_factory=dict)
    event_type: str = ""

    @classmethod
    def from_payload(cls, event: dict[str, Any]) -> "WebhookEvent":
        """
        Build from the webhook `event` dict.

        Raises:
            ValueError: If no usable item id is present
        """
        raw_item = event.get("pulseId") or event.get("itemId")
        if raw_item is None:
            raise ValueError("Webhook event has no pulseId/itemId")

        raw_board = event.get("boardId")
        value = event.get("value")

        return cls(
            item_id=int(raw_item),
            board_id=int(raw_board) if raw_board else None,
            column_id=event.get("columnId") or None,
            value=value if isinstance(value, dict) else {},
            event_type=event.get("type", ""),
        )

    @property
    def is_name_change(self) -> bool:
        return self.column_id is None or self.column_id == "name"

    @property
    def linked_ids(self) -> list[int]:
        """Linked item ids carried inline by relation column events."""
        linked = self.value.get("linkedPulseIds") or []
        ids = []
        for entry in linked:
            if isinstance(entry, dict) and entry.get("linkedPulseId") is not None:
                ids.append(int(entry["linkedPulseId"]))
        return ids
