"""
monday.com access layer.

GraphQL client, typed column values, extraction from raw column entries and
the batched upstream writer.
"""

from boardsync.monday.types import (
    ColumnKind,
    ColumnValue,
    Item,
    RawColumn,
    WebhookEvent,
)
from boardsync.monday.client import MondayClient
from boardsync.monday.writer import UpstreamWriter, WriteResult, serialize_value

__all__ = [
    "ColumnKind",
    "ColumnValue",
    "Item",
    "RawColumn",
    "WebhookEvent",
    "MondayClient",
    "UpstreamWriter",
    "WriteResult",
    "serialize_value",
]
