"""
Q&H client-linked automation.

When a Q&H item is linked to an address book contact, copy the mirrored
client email and name into plain columns on the Q&H item.
"""

from dataclasses import dataclass
from typing import Any

from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item, WebhookEvent
from boardsync.sync.guard import ConvergenceGuard

from .base import AutomationContext, commit, logger


@dataclass
class QHClientLinkedConfig:
    board_id: int = 2431480012
    trigger_column: str = "connect_boards7"
    mirror_email_column: str = "mirror_14"
    mirror_name_column: str = "mirror_145"
    client_email_column: str = "text1"
    client_name_column: str = "text6"

    @classmethod
    def from_dict(cls, data: dict) -> "QHClientLinkedConfig":
        defaults = cls()
        return cls(
            board_id=int(data.get("board_id", defaults.board_id)),
            trigger_column=data.get("trigger_column", defaults.trigger_column),
            mirror_email_column=data.get("mirror_email_column", defaults.mirror_email_column),
            mirror_name_column=data.get("mirror_name_column", defaults.mirror_name_column),
            client_email_column=data.get("client_email_column", defaults.client_email_column),
            client_name_column=data.get("client_name_column", defaults.client_name_column),
        )


class QHClientLinkedAutomation:
    """Copies mirrored client details into the Q&H item's own columns."""

    name = "qh-client-linked"

    def __init__(self, config: QHClientLinkedConfig | None = None):
        self.config = config or QHClientLinkedConfig()
        self.board_id = self.config.board_id
        self.guard = ConvergenceGuard(trigger_columns=(self.config.trigger_column,))

    @classmethod
    def from_config(cls, data: dict) -> "QHClientLinkedAutomation":
        return cls(QHClientLinkedConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        return event.column_id == self.config.trigger_column

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        email = columns.get_mirror_text(item, self.config.mirror_email_column)
        name = columns.get_mirror_text(item, self.config.mirror_name_column)

        derived = {
            self.config.client_email_column: ColumnValue.email(email.text),
            self.config.client_name_column: ColumnValue.of_text(name.text),
        }
        current = {
            self.config.client_email_column: columns.get_email(item, self.config.client_email_column),
            self.config.client_name_column: columns.get_text(item, self.config.client_name_column),
        }
        decision = commit(ctx, self.board_id, item.id, self.guard.evaluate(item, derived, current))

        logger.info("qh_client_linked.done", item_id=item.id, state=decision.state.value)
        return {
            "success": True,
            "itemId": item.id,
            "updates": {
                self.config.client_email_column: email.text,
                self.config.client_name_column: name.text,
            },
            "state": decision.state.value,
        }
