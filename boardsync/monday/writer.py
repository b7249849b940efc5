"""
Upstream writer.

Persists derived column values with one change_multiple_column_values
mutation per item, serializing each value into the shape its column type
expects.
"""

from dataclasses import dataclass, field
from typing import Any

from boardsync.errors import ConfigurationError
from boardsync.logger import get_logger
from boardsync.monday.types import ColumnKind, ColumnValue

logger = get_logger("monday.writer")


def serialize_value(value: ColumnValue) -> Any:
    """
    Convert a ColumnValue into its mutation wire shape.

    date -> {"date": "YYYY-MM-DD"}; status/text -> bare string;
    email -> {"email", "text"} with both set to the address;
    link -> {"url", "text"}; relation -> {"item_ids": [...]};
    empty -> "" which clears the column.
    """
    if value.kind is ColumnKind.DATE and value.day is not None:
        return {"date": value.day.isoformat()}
    if value.kind is ColumnKind.EMAIL:
        return {"email": value.text, "text": value.text}
    if value.kind is ColumnKind.LINK:
        return {"url": value.url, "text": value.text}
    if value.kind is ColumnKind.RELATION:
        return {"item_ids": list(value.linked_ids)}
    if value.kind in (ColumnKind.STATUS, ColumnKind.TEXT):
        return value.text
    return ""


@dataclass
class WriteResult:
    """Outcome of one write."""

    success: bool
    item_id: int
    columns: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


class UpstreamWriter:
    """Writes a batch of column values to one item in one call."""

    def __init__(self, client):
        """
        Args:
            client: Object with change_multiple_column_values(board_id, item_id, values)
        """
        self.client = client

    def write(
        self,
        board_id: int,
        item_id: int,
        values: dict[str, ColumnValue],
    ) -> WriteResult:
        """
        Persist all values in a single mutation.

        Failures are reported in the result rather than raised; the caller
        decides how to surface them.
        """
        columns = {column_id: serialize_value(value) for column_id, value in values.items()}
        if not columns:
            return WriteResult(success=True, item_id=item_id)

        try:
            self.client.change_multiple_column_values(board_id, item_id, columns)
        except ConfigurationError:
            raise
        except Exception as e:
            # API and transport errors that outlived the retry policy
            logger.error(
                "writer.failed",
                item_id=item_id,
                board_id=board_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return WriteResult(success=False, item_id=item_id, columns=columns, error=str(e))

        logger.info("writer.written", item_id=item_id, board_id=board_id, columns=list(columns))
        return WriteResult(success=True, item_id=item_id, columns=columns)
