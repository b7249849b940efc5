"""
Crew email copy automation.

When a Crewed Jobs item is connected to a freelancer, copy the freelancer's
email into a text column on the job. Removing the connection clears it.
"""

from dataclasses import dataclass
from typing import Any

from boardsync.errors import MondayAPIError
from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item, WebhookEvent
from boardsync.sync.guard import ConvergenceGuard

from .base import AutomationContext, commit, logger


@dataclass
class CrewEmailCopyConfig:
    """Boards and columns for the crew email copy."""
    board_id: int = 18398014629
    freelancer_board_id: int = 3463379885
    connect_column: str = "board_relation_mm09gh84"
    target_column: str = "text_mm09da3v"
    email_column: str = "email"

    @classmethod
    def from_dict(cls, data: dict) -> "CrewEmailCopyConfig":
        defaults = cls()
        return cls(
            board_id=int(data.get("board_id", defaults.board_id)),
            freelancer_board_id=int(data.get("freelancer_board_id", defaults.freelancer_board_id)),
            connect_column=data.get("connect_column", defaults.connect_column),
            target_column=data.get("target_column", defaults.target_column),
            email_column=data.get("email_column", defaults.email_column),
        )


class CrewEmailCopyAutomation:
    """Mirrors the connected freelancer's email onto the job."""

    name = "crew-email-copy"

    def __init__(self, config: CrewEmailCopyConfig | None = None):
        self.config = config or CrewEmailCopyConfig()
        self.board_id = self.config.board_id
        # The target text column never fires this webhook
        self.guard = ConvergenceGuard(trigger_columns=(self.config.connect_column,))

    @classmethod
    def from_config(cls, data: dict) -> "CrewEmailCopyAutomation":
        return cls(CrewEmailCopyConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        return event.column_id == self.config.connect_column

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        target = self.config.target_column
        current = {target: columns.get_text(item, target)}

        # The event carries the new connection inline; the fetched item may lag
        linked = ColumnValue.relation(event.linked_ids)
        if linked.is_empty:
            decision = self.guard.evaluate(item, {target: ColumnValue.empty()}, current)
            decision = commit(ctx, self.board_id, item.id, decision)
            return {
                "success": True,
                "message": "Connection removed - email field cleared",
                "itemId": item.id,
                "state": decision.state.value,
            }

        freelancer_id = linked.first_linked_id
        freelancer = ctx.client.fetch_item(freelancer_id)
        if freelancer is None:
            raise MondayAPIError("Failed to fetch freelancer details")
        if freelancer.board_id and freelancer.board_id != self.config.freelancer_board_id:
            logger.warning(
                "crew_email_copy.unexpected_board",
                item_id=item.id,
                freelancer_id=freelancer_id,
                board_id=freelancer.board_id,
            )

        email = columns.get_email(freelancer, self.config.email_column)
        derived = {target: ColumnValue.of_text(email.text)}

        decision = self.guard.evaluate(item, derived, current)
        decision = commit(ctx, self.board_id, item.id, decision)

        logger.info(
            "crew_email_copy.done",
            item_id=item.id,
            freelancer_id=freelancer_id,
            state=decision.state.value,
        )
        return {
            "success": True,
            "itemId": item.id,
            "freelancerId": freelancer_id,
            "freelancerName": freelancer.name,
            "email": email.text or "(not set)",
            "targetColumn": target,
            "state": decision.state.value,
            "reason": decision.reason,
        }
