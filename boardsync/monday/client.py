"""
monday.com GraphQL client.

Thin wrapper over the v2 endpoint: bearer auth, version header, bounded
timeout, the shared retry policy, and translation of `{errors: [...]}`
responses into MondayAPIError.
"""

import json
import time
from typing import Any

import requests

from boardsync.config import MondayConfig
from boardsync.errors import MondayAPIError
from boardsync.logger import get_logger
from boardsync.monday.types import Item
from boardsync.retry import RetryPolicy

logger = get_logger("monday.client")


COLUMN_VALUES_FRAGMENT = """
        column_values {
          id
          text
          value
          ... on MirrorValue {
            display_value
          }
        }
"""

ITEM_QUERY = """
query ($ids: [ID!]) {
  items(ids: $ids) {
    id
    name
    board { id }
%s
  }
}
""" % COLUMN_VALUES_FRAGMENT

FIRST_PAGE_QUERY = """
query ($board_id: [ID!], $limit: Int!) {
  boards(ids: $board_id) {
    items_page(limit: $limit) {
      cursor
      items {
        id
        name
%s
      }
    }
  }
}
""" % COLUMN_VALUES_FRAGMENT

NEXT_PAGE_QUERY = """
query ($cursor: String!, $limit: Int!) {
  next_items_page(cursor: $cursor, limit: $limit) {
    cursor
    items {
      id
      name
%s
    }
  }
}
""" % COLUMN_VALUES_FRAGMENT

CHANGE_COLUMNS_MUTATION = """
mutation ($board_id: ID!, $item_id: ID!, $column_values: JSON!) {
  change_multiple_column_values(board_id: $board_id, item_id: $item_id, column_values: $column_values) {
    id
  }
}
"""

ME_QUERY = "query { me { id name } }"


class MondayClient:
    """
    Client for the monday.com GraphQL API.

    Example:
        client = MondayClient(MondayConfig())
        item = client.fetch_item(12345)
        client.change_multiple_column_values(2431480012, 12345, {"text": "hi"})
    """

    def __init__(
        self,
        config: MondayConfig | None = None,
        retry: RetryPolicy | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Endpoint, version header, token variable and timeout
            retry: Retry policy for transient failures (defaults: 3 attempts)
        """
        self.config = config or MondayConfig()
        self.retry = retry or RetryPolicy()

    # --- Transport ---

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run a query or mutation with the retry policy.

        Returns:
            The `data` object of the response

        Raises:
            ConfigurationError: If the API token is missing
            MondayAPIError: For HTTP or GraphQL errors that survive retries
            requests.RequestException: For transport errors that survive retries
        """
        return self.retry.call(self._execute_once, query, variables)

    def _execute_once(self, query: str, variables: dict[str, Any] | None) -> dict[str, Any]:
        token = self.config.resolve_token()

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "API-Version": self.config.api_version,
        }
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        start_time = time.time()
        try:
            response = requests.post(
                self.config.api_url,
                headers=headers,
                json=payload,
                timeout=self.config.timeout_s,
            )
        except requests.Timeout as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            raise requests.Timeout(
                f"monday.com request timed out after {elapsed_ms}ms "
                f"(timeout: {self.config.timeout_s}s)"
            ) from e

        if response.status_code == 401 or response.status_code == 403:
            raise MondayAPIError(
                f"Authentication failed (HTTP {response.status_code}). "
                f"Check your {self.config.token_env} environment variable.",
                status_code=response.status_code,
            )
        if response.status_code == 429:
            raise MondayAPIError(
                "Rate limit exceeded (HTTP 429). Please retry later.",
                status_code=429,
            )

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            detail = _first_error_message(body) if body else response.text[:200]
            raise MondayAPIError(
                f"HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise MondayAPIError("Unexpected response from monday.com (not a JSON object)")

        if body.get("errors") or body.get("error_message"):
            message = _first_error_message(body)
            logger.error("monday.graphql_error", errors=body.get("errors") or message)
            raise MondayAPIError(f"GraphQL error: {message}", status_code=response.status_code)

        return body.get("data") or {}

    # --- Reads ---

    def fetch_item(self, item_id: int) -> Item | None:
        """
        Fetch one item with all column values.

        Returns:
            Item if found, None otherwise
        """
        data = self.execute(ITEM_QUERY, {"ids": [str(item_id)]})
        items = data.get("items") or []
        if not items:
            return None
        return Item.from_api(items[0])

    def fetch_items_page(
        self,
        board_id: int,
        limit: int,
        cursor: str | None = None,
    ) -> tuple[list[Item], str | None]:
        """
        Fetch one page of a board's items.

        Args:
            board_id: Board to page through (used for the first page only)
            limit: Page size
            cursor: Cursor from a previous page; None starts from the top

        Returns:
            (items, next cursor or None when this was the last page)
        """
        if cursor:
            data = self.execute(NEXT_PAGE_QUERY, {"cursor": cursor, "limit": limit})
            page = data.get("next_items_page") or {}
        else:
            data = self.execute(FIRST_PAGE_QUERY, {"board_id": [str(board_id)], "limit": limit})
            boards = data.get("boards") or []
            page = (boards[0].get("items_page") or {}) if boards else {}

        items = [Item.from_api(entry) for entry in page.get("items") or []]
        return items, page.get("cursor") or None

    def me(self) -> dict[str, Any]:
        """Return the authenticated account's `me` record."""
        return self.execute(ME_QUERY).get("me") or {}

    # --- Writes ---

    def change_multiple_column_values(
        self,
        board_id: int,
        item_id: int,
        column_values: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Overwrite several columns of one item in a single mutation.

        Args:
            board_id: Board the item lives on
            item_id: Item to update
            column_values: Column id -> wire-shaped value

        Returns:
            The mutation's `data` object
        """
        variables = {
            "board_id": str(board_id),
            "item_id": str(item_id),
            "column_values": json.dumps(column_values),
        }
        return self.execute(CHANGE_COLUMNS_MUTATION, variables)


def _first_error_message(body: Any) -> str:
    """First error message of a GraphQL error body."""
    if not isinstance(body, dict):
        return "Unknown error"
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            return first.get("message") or "Unknown error"
        return str(first)
    return body.get("error_message") or "Unknown error"
