"""
Date copy automation.

When the hire date or the vehicle status of a Q&H item changes, copy the date
to the target date column: as-is when the status is the exempt label
("Rehearsal"), otherwise shifted one day.
"""

from dataclasses import dataclass
from typing import Any

from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item, WebhookEvent
from boardsync.sync import rules
from boardsync.sync.guard import ConvergenceGuard

from .base import AutomationContext, commit, logger


@dataclass
class DateCopyConfig:
    """
    Board and column identifiers for the date copy.

    Attributes:
        board_id: Q&H board
        source_column: Date that is copied
        target_column: Date that is written
        status_column: Vehicle status deciding the rule
        exempt_label: Status label that copies the date unchanged
        direction: -1 for the day before, +1 for the day after
        trigger_columns: Columns whose change fires the webhook
        marker_column: Text column written alongside the target when the
            target is itself a trigger column
    """
    board_id: int = 2431480012
    source_column: str = "date_mkzzmse7"
    target_column: str = "dup__of_hire_starts"
    status_column: str = "dup__of_vehicle_"
    exempt_label: str = "Rehearsal"
    direction: int = -1
    trigger_columns: tuple[str, ...] = ("date_mkzzmse7", "dup__of_vehicle_")
    marker_column: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "DateCopyConfig":
        defaults = cls()
        direction = int(data.get("direction", defaults.direction))
        if direction not in (-1, 1):
            raise ValueError(f"date_copy direction must be -1 or +1, got {direction}")
        triggers = data.get("trigger_columns")
        return cls(
            board_id=int(data.get("board_id", defaults.board_id)),
            source_column=data.get("source_column", defaults.source_column),
            target_column=data.get("target_column", defaults.target_column),
            status_column=data.get("status_column", defaults.status_column),
            exempt_label=data.get("exempt_label", defaults.exempt_label),
            direction=direction,
            trigger_columns=tuple(triggers) if triggers else defaults.trigger_columns,
            marker_column=data.get("marker_column") or None,
        )


class DateCopyAutomation:
    """Copies the hire date to the target date column with the shift rule."""

    name = "date-copy-automation"

    def __init__(self, config: DateCopyConfig | None = None):
        self.config = config or DateCopyConfig()
        self.board_id = self.config.board_id
        self.guard = ConvergenceGuard(self.config.trigger_columns, self.config.marker_column)

    @classmethod
    def from_config(cls, data: dict) -> "DateCopyAutomation":
        return cls(DateCopyConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        return event.column_id in (self.config.source_column, self.config.status_column)

    def derive(self, item: Item) -> tuple[dict[str, ColumnValue] | None, str]:
        """
        Derived target value for an item.

        Returns:
            ({target: date} or None when the source is empty, status label)
        """
        source = columns.get_date(item, self.config.source_column)
        status = columns.get_status_label(item, self.config.status_column).text
        if source.is_empty:
            return None, status

        target_day = rules.shift_date(
            source.day,
            status,
            exempt_label=self.config.exempt_label,
            direction=self.config.direction,
        )
        return {self.config.target_column: ColumnValue.of_date(target_day)}, status

    def current_values(self, item: Item) -> dict[str, ColumnValue]:
        current = {self.config.target_column: columns.get_date(item, self.config.target_column)}
        if self.config.marker_column:
            current[self.config.marker_column] = columns.get_text(item, self.config.marker_column)
        return current

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        derived, status = self.derive(item)
        if derived is None:
            error = columns.date_parse_error(item, self.config.source_column)
            if error:
                logger.warning("date_copy.unparseable_source", item_id=item.id, error=error)
            else:
                logger.info("date_copy.no_source", item_id=item.id)
            return {"message": "No date to copy"}

        decision = self.guard.evaluate(item, derived, self.current_values(item))
        decision = commit(ctx, self.board_id, item.id, decision)

        source = columns.get_date(item, self.config.source_column)
        target = derived[self.config.target_column]
        logger.info(
            "date_copy.done",
            item_id=item.id,
            state=decision.state.value,
            source_date=source.display(),
            target_date=target.display(),
        )
        return {
            "success": True,
            "itemId": item.id,
            "sourceDate": source.display(),
            "targetDate": target.display(),
            "vehicleStatus": status or "(empty)",
            "appliedRule": rules.applied_rule(
                status,
                exempt_label=self.config.exempt_label,
                direction=self.config.direction,
            ),
            "state": decision.state.value,
            "reason": decision.reason,
        }
