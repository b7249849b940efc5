"""In-memory board and item builders shared by the tests."""

import json
from datetime import date

from boardsync.errors import MondayAPIError
from boardsync.monday.types import Item, RawColumn


def date_col(column_id: str, day: str | None) -> RawColumn:
    if not day:
        return RawColumn(column_id, text="", value=None)
    return RawColumn(column_id, text=day, value=json.dumps({"date": day}))


def status_col(column_id: str, label: str | None, index: int = 1) -> RawColumn:
    if not label:
        return RawColumn(column_id, text="", value=None)
    return RawColumn(column_id, text=label, value=json.dumps({"index": index, "label": label}))


def text_col(column_id: str, text: str | None) -> RawColumn:
    return RawColumn(column_id, text=text or "", value=json.dumps(text) if text else None)


def email_col(column_id: str, address: str | None) -> RawColumn:
    if not address:
        return RawColumn(column_id, text="", value=None)
    return RawColumn(column_id, text=address, value=json.dumps({"email": address, "text": address}))


def link_col(column_id: str, url: str | None, text: str | None = None) -> RawColumn:
    if not url:
        return RawColumn(column_id, text="", value=None)
    display = text or url
    return RawColumn(
        column_id,
        text=f"{display} - {url}",
        value=json.dumps({"url": url, "text": display}),
    )


def relation_col(column_id: str, ids) -> RawColumn:
    payload = {"linkedPulseIds": [{"linkedPulseId": i} for i in ids]}
    return RawColumn(column_id, text="", value=json.dumps(payload))


def mirror_col(column_id: str, display: str | None) -> RawColumn:
    return RawColumn(column_id, text=None, value=None, display_value=display)


def make_item(item_id: int, *columns: RawColumn, name: str = "", board_id: int | None = None) -> Item:
    return Item(id=item_id, name=name, columns={c.id: c for c in columns}, board_id=board_id)


def raw_from_wire(column_id: str, wire) -> RawColumn:
    """What the API would return for a column after a mutation wrote `wire`."""
    if isinstance(wire, dict):
        if "date" in wire:
            return RawColumn(column_id, text=wire["date"], value=json.dumps(wire))
        if "email" in wire:
            return RawColumn(column_id, text=wire["email"], value=json.dumps(wire))
        if "url" in wire:
            return RawColumn(column_id, text=f"{wire['text']} - {wire['url']}", value=json.dumps(wire))
        if "item_ids" in wire:
            payload = {"linkedPulseIds": [{"linkedPulseId": i} for i in wire["item_ids"]]}
            return RawColumn(column_id, text="", value=json.dumps(payload))
    if wire == "":
        return RawColumn(column_id, text="", value=None)
    return RawColumn(column_id, text=str(wire), value=json.dumps(wire))


class FakeBoardClient:
    """
    Stand-in for MondayClient backed by a dict of items.

    Writes are recorded and applied, so a second invocation sees the state
    the first one left behind.
    """

    def __init__(self, *items: Item):
        self.items: dict[int, Item] = {item.id: item for item in items}
        self.order: list[int] = [item.id for item in items]
        self.writes: list[tuple[int, int, dict]] = []
        self.page_requests: list[str | None] = []
        self.failing_items: set[int] = set()

    def add(self, item: Item) -> Item:
        self.items[item.id] = item
        self.order.append(item.id)
        return item

    def fetch_item(self, item_id):
        return self.items.get(int(item_id))

    def change_multiple_column_values(self, board_id, item_id, column_values):
        if item_id in self.failing_items:
            raise MondayAPIError("GraphQL error: item is locked")
        self.writes.append((board_id, item_id, dict(column_values)))
        item = self.items.get(item_id)
        if item is not None:
            for column_id, wire in column_values.items():
                item.columns[column_id] = raw_from_wire(column_id, wire)
        return {"change_multiple_column_values": {"id": str(item_id)}}

    def fetch_items_page(self, board_id, limit, cursor=None):
        self.page_requests.append(cursor)
        offset = int(cursor.split(":")[1]) if cursor else 0
        ids = self.order[offset:offset + limit]
        end = offset + len(ids)
        next_cursor = f"page:{end}" if end < len(self.order) else None
        return [self.items[i] for i in ids], next_cursor

    def me(self):
        return {"id": "1", "name": "Automation"}

    def writes_for(self, item_id: int) -> list[dict]:
        return [values for _, written_id, values in self.writes if written_id == item_id]


class FixedDay:
    """Callable returning a fixed date, for AutomationContext.today."""

    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day
