"""
Client address book automations.

item-created: stamps a new contact with its item id, full name and first name.
updates: keeps the name columns current, pushes name and email changes out to
every linked Q&H item, and records the last contact date when a Q&H item is
linked.
"""

from dataclasses import dataclass
from typing import Any

from boardsync.errors import MondayAPIError
from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item, WebhookEvent
from boardsync.sync import rules
from boardsync.sync.guard import ConvergenceGuard

from .base import AutomationContext, commit, logger


@dataclass
class AddressBookConfig:
    """Address book and Q&H column identifiers."""
    board_id: int = 2431071567
    full_name_column: str = "text_14"
    first_name_column: str = "text"
    email_column: str = "email_1"
    linked_qh_column: str = "link_to_duplicate_of_incoming___pending_enquiries"
    last_contact_column: str = "date4"
    item_id_copy_column: str = "item_id__gc_"
    qh_board_id: int = 2431480012
    qh_client_name_column: str = "text6"
    qh_client_email_column: str = "text1"

    @classmethod
    def from_dict(cls, data: dict) -> "AddressBookConfig":
        defaults = cls()
        values = {}
        for name, default in vars(defaults).items():
            raw = data.get(name, default)
            values[name] = int(raw) if isinstance(default, int) else raw
        return cls(**values)


def name_columns(config: AddressBookConfig, item: Item) -> dict[str, ColumnValue]:
    """Full name and first name derived from the item name."""
    return {
        config.full_name_column: ColumnValue.of_text(item.name),
        config.first_name_column: ColumnValue.of_text(rules.first_name(item.name)),
    }


class AddressBookItemCreatedAutomation:
    """Fills the helper columns of a newly created contact."""

    name = "address-book-item-created"

    def __init__(self, config: AddressBookConfig | None = None):
        self.config = config or AddressBookConfig()
        self.board_id = self.config.board_id
        self.guard = ConvergenceGuard()

    @classmethod
    def from_config(cls, data: dict) -> "AddressBookItemCreatedAutomation":
        return cls(AddressBookConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        # Item-created events carry no column
        return True

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        derived = {self.config.item_id_copy_column: ColumnValue.of_text(str(item.id))}
        derived.update(name_columns(self.config, item))

        current = {column_id: columns.get_text(item, column_id) for column_id in derived}
        decision = self.guard.evaluate(item, derived, current)
        decision = commit(ctx, self.board_id, item.id, decision)

        logger.info("address_book.item_created", item_id=item.id, state=decision.state.value)
        return {
            "success": True,
            "itemId": item.id,
            "itemName": item.name,
            "firstName": derived[self.config.first_name_column].text,
            "updates": {column_id: value.display() for column_id, value in derived.items()},
            "state": decision.state.value,
        }


class AddressBookUpdatesAutomation:
    """Reacts to name, email and linked-Q&H changes on a contact."""

    name = "address-book-updates"

    def __init__(self, config: AddressBookConfig | None = None):
        self.config = config or AddressBookConfig()
        self.board_id = self.config.board_id
        # Local writes land in columns no webhook watches
        self.guard = ConvergenceGuard(
            trigger_columns=("name", self.config.email_column, self.config.linked_qh_column),
        )

    @classmethod
    def from_config(cls, data: dict) -> "AddressBookUpdatesAutomation":
        return cls(AddressBookConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        return event.is_name_change or event.column_id in (
            self.config.email_column,
            self.config.linked_qh_column,
        )

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        actions: list[str] = []

        if event.is_name_change:
            self._sync_name(item, ctx, actions)
        elif event.column_id == self.config.email_column:
            self._sync_email(item, ctx, actions)
        elif event.column_id == self.config.linked_qh_column:
            self._touch_last_contact(item, ctx, actions)

        logger.info("address_book.updated", item_id=item.id, column_id=event.column_id, actions=actions)
        return {
            "success": True,
            "itemId": item.id,
            "columnId": event.column_id,
            "actions": actions,
        }

    def _sync_name(self, item: Item, ctx: AutomationContext, actions: list[str]) -> None:
        derived = name_columns(self.config, item)
        current = {column_id: columns.get_text(item, column_id) for column_id in derived}
        decision = commit(ctx, self.board_id, item.id, self.guard.evaluate(item, derived, current))
        if decision.writes:
            actions.append("updated_name_columns")

        count = self._fan_out(
            item,
            ctx,
            {self.config.qh_client_name_column: ColumnValue.of_text(item.name)},
        )
        if count:
            actions.append(f"synced_name_to_{count}_qh_items")

    def _sync_email(self, item: Item, ctx: AutomationContext, actions: list[str]) -> None:
        email = columns.get_email(item, self.config.email_column)
        count = self._fan_out(
            item,
            ctx,
            {self.config.qh_client_email_column: ColumnValue.email(email.text)},
        )
        if count:
            actions.append(f"synced_email_to_{count}_qh_items")

    def _touch_last_contact(self, item: Item, ctx: AutomationContext, actions: list[str]) -> None:
        column_id = self.config.last_contact_column
        derived = {column_id: ColumnValue.of_date(ctx.today())}
        current = {column_id: columns.get_date(item, column_id)}
        decision = commit(ctx, self.board_id, item.id, self.guard.evaluate(item, derived, current))
        if decision.writes:
            actions.append("updated_last_contact_date")

    def _fan_out(self, item: Item, ctx: AutomationContext, values: dict[str, ColumnValue]) -> int:
        """
        Write the same values to every linked Q&H item.

        Returns:
            Number of Q&H items written

        Raises:
            MondayAPIError: On the first failed write
        """
        linked = columns.get_linked_ids(item, self.config.linked_qh_column)
        for qh_item_id in linked.linked_ids:
            result = ctx.writer.write(self.config.qh_board_id, qh_item_id, values)
            if not result.success:
                raise MondayAPIError(result.error or f"Failed to update Q&H item {qh_item_id}")
        return len(linked.linked_ids)
