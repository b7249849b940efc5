"""Automation protocol and the per-invocation context handed to it."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Protocol, runtime_checkable

from boardsync.errors import MondayAPIError
from boardsync.logger import get_logger
from boardsync.monday.types import Item, WebhookEvent
from boardsync.monday.writer import UpstreamWriter
from boardsync.sync.guard import GuardDecision, mark_written

logger = get_logger("automations")


@runtime_checkable
class Notifier(Protocol):
    """Outbound alert channel (email, chat, ...)."""

    def send(self, kind: str, payload: dict[str, Any]) -> bool:
        """Deliver one alert.

        Args:
            kind: Alert type, e.g. "last_minute_alert"
            payload: Alert fields

        Returns:
            True if the alert was accepted for delivery
        """
        ...


class LoggingNotifier:
    """Default notifier: records the alert in the log and reports success."""

    def send(self, kind: str, payload: dict[str, Any]) -> bool:
        logger.info("notifier.alert", kind=kind, payload=payload)
        return True


@dataclass
class AutomationContext:
    """
    Collaborators available to an automation for one invocation.

    Attributes:
        client: monday.com client (fetch_item, change_multiple_column_values)
        writer: Upstream writer bound to the same client
        notifier: Alert channel
        today: Returns the current calendar day
    """
    client: Any
    writer: UpstreamWriter
    notifier: Notifier = field(default_factory=LoggingNotifier)
    today: Callable[[], date] = date.today

    @classmethod
    def for_client(cls, client, notifier: Notifier | None = None) -> "AutomationContext":
        return cls(
            client=client,
            writer=UpstreamWriter(client),
            notifier=notifier or LoggingNotifier(),
        )


@runtime_checkable
class Automation(Protocol):
    """One webhook-driven column synchronization."""

    name: str
    board_id: int

    def accepts(self, event: WebhookEvent) -> bool:
        """Whether the event's column is one this automation reacts to."""
        ...

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        """Derive, guard and write; returns the JSON response body.

        Raises:
            BoardsyncError: For failures that must surface as HTTP 500
        """
        ...


def commit(ctx: AutomationContext, board_id: int, item_id: int, decision: GuardDecision) -> GuardDecision:
    """
    Carry out a guard decision.

    Writes when the decision asks for it and returns the WRITE_PERFORMED
    decision; any other decision is returned unchanged.

    Raises:
        MondayAPIError: If the write failed
    """
    if not decision.should_write:
        logger.info("automation.skip", item_id=item_id, state=decision.state.value, reason=decision.reason)
        return decision

    result = ctx.writer.write(board_id, item_id, decision.writes)
    if not result.success:
        raise MondayAPIError(result.error or "Failed to write column values")
    return mark_written(decision)
