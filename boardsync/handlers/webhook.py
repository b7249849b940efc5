"""
Webhook dispatcher.

Shared front half of every automation webhook: method checks, payload
parsing, the monday.com challenge handshake, board and column filters and
the item fetch. The automation only ever sees a parsed event and a fetched
item.
"""

import json

from boardsync.automations.base import Automation, AutomationContext
from boardsync.logger import get_logger
from boardsync.monday.types import WebhookEvent

from .http import Request, Response, json_response, method_not_allowed, preflight_response

logger = get_logger("handlers.webhook")


class WebhookDispatcher:
    """
    Runs one automation behind the webhook request state machine.

    Example:
        dispatcher = WebhookDispatcher(DateCopyAutomation(), AutomationContext.for_client(client))
        response = dispatcher.handle(Request.from_raw("POST", body))
    """

    def __init__(self, automation: Automation, ctx: AutomationContext):
        self.automation = automation
        self.ctx = ctx

    def handle(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return preflight_response()
        if request.method != "POST":
            return method_not_allowed()

        try:
            return self._dispatch(request)
        except Exception as e:
            # Configuration, API and unexpected errors alike end the invocation
            logger.error(
                "webhook.failed",
                automation=self.automation.name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return json_response(500, {"error": str(e)})

    def _dispatch(self, request: Request) -> Response:
        try:
            payload = json.loads(request.body) if request.body else None
        except ValueError:
            logger.warning("webhook.invalid_json", automation=self.automation.name, body=request.body[:100])
            return json_response(200, {"message": "Invalid JSON - nothing to process"})

        if not isinstance(payload, dict):
            return json_response(200, {"message": "Invalid JSON - nothing to process"})

        if payload.get("challenge"):
            logger.info("webhook.challenge", automation=self.automation.name)
            return json_response(200, {"challenge": payload["challenge"]})

        raw_event = payload.get("event")
        if not isinstance(raw_event, dict) or not raw_event:
            return json_response(200, {"message": "No event to process"})

        try:
            event = WebhookEvent.from_payload(raw_event)
        except (TypeError, ValueError) as e:
            logger.warning("webhook.bad_event", automation=self.automation.name, error=str(e))
            return json_response(200, {"message": "No event to process"})

        logger.info(
            "webhook.event",
            item_id=event.item_id,
            automation=self.automation.name,
            board_id=event.board_id,
            column_id=event.column_id,
        )

        if event.board_id is not None and event.board_id != self.automation.board_id:
            return json_response(200, {"message": "Board not monitored", "boardId": event.board_id})

        if not self.automation.accepts(event):
            return json_response(200, {"message": "Column not monitored", "columnId": event.column_id})

        item = self.ctx.client.fetch_item(event.item_id)
        if item is None:
            logger.error("webhook.item_missing", item_id=event.item_id, automation=self.automation.name)
            return json_response(500, {"error": "Failed to fetch item details"})

        result = self.automation.run(event, item, self.ctx)
        return json_response(200, result)
