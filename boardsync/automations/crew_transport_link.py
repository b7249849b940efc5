"""
Crew/transport link automation.

When the HireHop job link of a Q&H item changes, write a link to the
freelancer portal's crew/transport page for that job.
"""

from dataclasses import dataclass
from typing import Any

from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item, WebhookEvent
from boardsync.sync import rules
from boardsync.sync.guard import ConvergenceGuard

from .base import AutomationContext, commit, logger

JOB_URL_HINT = "Expected format: https://myhirehop.com/job.php?id=12345"


@dataclass
class CrewTransportLinkConfig:
    """Board, columns and portal URL for the crew/transport link."""
    board_id: int = 2431480012
    source_column: str = "link"
    target_column: str = "link_mm07k8n4"
    display_text: str = "Transport / crew"
    portal_base_url: str = "https://ooosh-freelancer-portal.netlify.app/staff/crew-transport?job="
    trigger_columns: tuple[str, ...] = ("link",)
    marker_column: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CrewTransportLinkConfig":
        defaults = cls()
        triggers = data.get("trigger_columns")
        return cls(
            board_id=int(data.get("board_id", defaults.board_id)),
            source_column=data.get("source_column", defaults.source_column),
            target_column=data.get("target_column", defaults.target_column),
            display_text=data.get("display_text", defaults.display_text),
            portal_base_url=data.get("portal_base_url", defaults.portal_base_url),
            trigger_columns=tuple(triggers) if triggers else defaults.trigger_columns,
            marker_column=data.get("marker_column") or None,
        )


class CrewTransportLinkAutomation:
    """Turns a HireHop job link into a freelancer portal link."""

    name = "crew-transport-link"

    def __init__(self, config: CrewTransportLinkConfig | None = None):
        self.config = config or CrewTransportLinkConfig()
        self.board_id = self.config.board_id
        self.guard = ConvergenceGuard(self.config.trigger_columns, self.config.marker_column)

    @classmethod
    def from_config(cls, data: dict) -> "CrewTransportLinkAutomation":
        return cls(CrewTransportLinkConfig.from_dict(data))

    def accepts(self, event: WebhookEvent) -> bool:
        return event.column_id == self.config.source_column

    def current_values(self, item: Item) -> dict[str, ColumnValue]:
        current = {self.config.target_column: columns.get_url(item, self.config.target_column)}
        if self.config.marker_column:
            current[self.config.marker_column] = columns.get_text(item, self.config.marker_column)
        return current

    def run(self, event: WebhookEvent, item: Item, ctx: AutomationContext) -> dict[str, Any]:
        source = columns.get_url(item, self.config.source_column)
        if source.is_empty:
            return {"message": "No URL to process"}

        job_id = rules.extract_job_id(source.url)
        if not job_id:
            logger.warning("crew_transport_link.no_job_id", item_id=item.id, url=source.url)
            return {
                "message": "Could not extract job ID from URL",
                "url": source.url,
                "hint": JOB_URL_HINT,
            }

        portal_url = rules.build_portal_url(self.config.portal_base_url, job_id)
        derived = {self.config.target_column: ColumnValue.link(portal_url, self.config.display_text)}

        decision = self.guard.evaluate(item, derived, self.current_values(item))
        decision = commit(ctx, self.board_id, item.id, decision)

        logger.info("crew_transport_link.done", item_id=item.id, job_id=job_id, state=decision.state.value)
        return {
            "success": True,
            "itemId": item.id,
            "jobId": job_id,
            "sourceUrl": source.url,
            "portalUrl": portal_url,
            "displayText": self.config.display_text,
            "state": decision.state.value,
            "reason": decision.reason,
        }
