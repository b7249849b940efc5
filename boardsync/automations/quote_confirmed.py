"""
Quote confirmed automation.

When a Q&H quote status becomes "Confirmed quote":
- hires starting within the last-minute window raise an alert
- vehicle hires get their vehicle status set to "Email now" (close to the
  hire date) or "NEEDED"
"""

import re
from dataclasses import dataclass
from typing import Any

from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item, WebhookEvent
from boardsync.sync import rules
from boardsync.sync.guard import ConvergenceGuard

from .base import AutomationContext, logger

LAST_MINUTE_ALERT = "last_minute_alert"


@dataclass
class QuoteConfirmedConfig:
    """
    Columns and thresholds for the quote-confirmed automation.

    Attributes:
        last_minute_days: Alert when the hire starts within this many days
        email_now_days: Vehicle status is "Email now" within this many days
    """
    board_id: int = 2431480012
    status_column: str = "status6"
    confirmed_label: str = "Confirmed quote"
    hire_start_column: str = "date"
    job_number_column: str = "text7"
    client_name_column: str = "text6"
    hirehop_link_column: str = "link"
    item_type_column: str = "dup__of_backline_"
    vehicle_type_label: str = "Vehicle"
    vehicle_status_column: str = "status8"
    email_now_label: str = "Email now"
    needed_label: str = "NEEDED"
    last_minute_days: int = 3
    email_now_days: int = 10
    alert_recipient: str = "info@oooshtours.co.uk"

    @classmethod
    def from_dict(cls, data: dict) -> "QuoteConfirmedConfig":
        defaults = cls()
        values = {}
        for name, default in vars(defaults).items():
            raw = data.get(name, default)
            values[name] = int(raw) if isinstance(default, int) else raw
        return cls(**values)


def action_slug(label: str) -> str:
    """'Email now' -> 'email_now'"""
    return re.sub(r"\s+", "_", label).lower()


class QuoteConfirmedAutomation:
    """Alerts on last-minute confirmations and flags vehicle bookings."""

    name = "quote-confirmed-automation"

    def __init__(self, config: QuoteConfirmedConfig | None = None):
        self.config = config or QuoteConfirmedConfig()
        self.board_id = self.config.board_id
        self.guard = ConvergenceGuard(trigger_columns=(self.config.status_column,))

    @classmethod
    def from_config(cls, data: dict) -> "QuoteConfirmedAutomation":
        return cls(QuoteConfirmedConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        return event.column_id == self.config.status_column

    def vehicle_status(self, days: int | None) -> str:
        if days is not None and days <= self.config.email_now_days:
            return self.config.email_now_label
        return self.config.needed_label

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        cfg = self.config
        quote_status = columns.get_status_label(item, cfg.status_column).text
        if quote_status != cfg.confirmed_label:
            return {"message": "Status not confirmed quote", "currentStatus": quote_status}

        hire_start = columns.get_date(item, cfg.hire_start_column)
        job_number = columns.get_text(item, cfg.job_number_column).text
        client_name = columns.get_text(item, cfg.client_name_column).text
        hirehop_link = columns.get_url(item, cfg.hirehop_link_column).url
        item_type = columns.get_text(item, cfg.item_type_column).text

        days = rules.days_until(hire_start.day, ctx.today()) if not hire_start.is_empty else None
        actions: list[str] = []

        if days is not None and days <= cfg.last_minute_days:
            actions.append(self._alert(item, ctx, {
                "recipient": cfg.alert_recipient,
                "itemName": item.name,
                "jobNumber": job_number,
                "clientName": client_name,
                "hireStartDate": hire_start.display(),
                "hirehopLink": hirehop_link,
                "daysUntilHire": days,
            }))

        if item_type == cfg.vehicle_type_label:
            new_status = self.vehicle_status(days)
            derived = {cfg.vehicle_status_column: ColumnValue.status(new_status)}
            current = {
                cfg.vehicle_status_column: columns.get_status_label(item, cfg.vehicle_status_column),
            }
            decision = self.guard.evaluate(item, derived, current)
            if decision.should_write:
                result = ctx.writer.write(self.board_id, item.id, decision.writes)
                if result.success:
                    actions.append(f"set_{cfg.vehicle_status_column}_{action_slug(new_status)}")
                else:
                    actions.append("status_update_failed")

        logger.info("quote_confirmed.done", item_id=item.id, days_until_hire=days, actions=actions)
        return {
            "success": True,
            "itemId": item.id,
            "itemName": item.name,
            "jobNumber": job_number,
            "clientName": client_name,
            "hireStartDate": hire_start.display(),
            "daysUntilHire": days,
            "itemType": item_type,
            "actions": actions,
        }

    def _alert(self, item: Item, ctx: AutomationContext, payload: dict[str, Any]) -> str:
        try:
            sent = ctx.notifier.send(LAST_MINUTE_ALERT, payload)
        except Exception as e:
            # A failed alert must not block the status update
            logger.error("quote_confirmed.alert_failed", item_id=item.id, error=str(e))
            return "email_failed"
        return "sent_last_minute_email" if sent else "email_failed"
