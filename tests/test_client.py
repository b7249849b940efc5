"""Tests for the monday.com GraphQL client."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from boardsync.config import MondayConfig
from boardsync.errors import ConfigurationError, MondayAPIError
from boardsync.monday.client import MondayClient
from boardsync.retry import RetryPolicy


def api_response(status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    response.text = json.dumps(body) if body is not None else ""
    return response


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def client(sleeps):
    return MondayClient(MondayConfig(), retry=RetryPolicy(sleep=sleeps.append))


ITEM_DATA = {
    "data": {
        "items": [
            {
                "id": "123",
                "name": "Job 13422",
                "board": {"id": "2431480012"},
                "column_values": [
                    {"id": "date_mkzzmse7", "text": "2025-03-30", "value": '{"date":"2025-03-30"}'},
                    {"id": "mirror_14", "text": None, "value": None, "display_value": "a@b.com"},
                ],
            }
        ]
    }
}


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_request_headers_and_variables(mock_post, client):
    """Bearer auth, version header and GraphQL variables are sent."""
    mock_post.return_value = api_response(body=ITEM_DATA)

    client.fetch_item(123)

    kwargs = mock_post.call_args.kwargs
    assert mock_post.call_args.args[0] == "https://api.monday.com/v2"
    assert kwargs["headers"]["Authorization"] == "Bearer tok-123"
    assert kwargs["headers"]["API-Version"] == "2025-04"
    assert kwargs["json"]["variables"] == {"ids": ["123"]}
    assert kwargs["timeout"] == 10.0


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_fetch_item_parses_columns(mock_post, client):
    mock_post.return_value = api_response(body=ITEM_DATA)

    item = client.fetch_item(123)

    assert item.id == 123
    assert item.board_id == 2431480012
    assert item.columns["date_mkzzmse7"].text == "2025-03-30"
    assert item.columns["mirror_14"].display_value == "a@b.com"


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_fetch_item_missing_returns_none(mock_post, client):
    mock_post.return_value = api_response(body={"data": {"items": []}})
    assert client.fetch_item(999) is None


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {}, clear=True)
def test_missing_token_is_configuration_error(mock_post, client, sleeps):
    """A missing token fails immediately with no request and no retry."""
    with pytest.raises(ConfigurationError, match="MONDAY_API_TOKEN"):
        client.fetch_item(1)
    mock_post.assert_not_called()
    assert sleeps == []


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_graphql_errors_raise(mock_post, client, sleeps):
    mock_post.return_value = api_response(body={"errors": [{"message": "Column not found"}]})

    with pytest.raises(MondayAPIError, match="Column not found"):
        client.fetch_item(1)
    assert mock_post.call_count == 1
    assert sleeps == []


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_authentication_failure(mock_post, client):
    mock_post.return_value = api_response(status_code=401, body={"error_message": "Not Authenticated"})

    with pytest.raises(MondayAPIError, match="Authentication failed") as exc:
        client.me()
    assert exc.value.status_code == 401
    assert mock_post.call_count == 1


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_rate_limit_is_retried_with_backoff(mock_post, client, sleeps):
    mock_post.side_effect = [
        api_response(status_code=429),
        api_response(status_code=429),
        api_response(body={"data": {"me": {"id": "1", "name": "Bot"}}}),
    ]

    assert client.me() == {"id": "1", "name": "Bot"}
    assert mock_post.call_count == 3
    assert sleeps == [1.0, 2.0]


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_timeouts_exhaust_attempts(mock_post, client, sleeps):
    mock_post.side_effect = requests.Timeout("read timed out")

    with pytest.raises(requests.Timeout, match="timed out"):
        client.me()
    assert mock_post.call_count == 3
    assert sleeps == [1.0, 2.0]


@patch("boardsync.monday.client.requests.post")
@patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
def test_change_columns_sends_json_string(mock_post, client):
    mock_post.return_value = api_response(
        body={"data": {"change_multiple_column_values": {"id": "5"}}}
    )

    client.change_multiple_column_values(2431480012, 5, {"date4": {"date": "2025-03-29"}})

    variables = mock_post.call_args.kwargs["json"]["variables"]
    assert variables["board_id"] == "2431480012"
    assert variables["item_id"] == "5"
    assert json.loads(variables["column_values"]) == {"date4": {"date": "2025-03-29"}}


class TestPaging:
    """items_page / next_items_page handling."""

    @patch("boardsync.monday.client.requests.post")
    @patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
    def test_first_page_queries_board(self, mock_post, client):
        mock_post.return_value = api_response(body={
            "data": {"boards": [{"items_page": {
                "cursor": "abc",
                "items": [{"id": "1", "name": "One", "column_values": []}],
            }}]}
        })

        items, cursor = client.fetch_items_page(2431480012, 200)

        assert [i.id for i in items] == [1]
        assert cursor == "abc"
        variables = mock_post.call_args.kwargs["json"]["variables"]
        assert variables == {"board_id": ["2431480012"], "limit": 200}
        assert "items_page" in mock_post.call_args.kwargs["json"]["query"]

    @patch("boardsync.monday.client.requests.post")
    @patch.dict("os.environ", {"MONDAY_API_TOKEN": "tok-123"})
    def test_next_page_uses_cursor(self, mock_post, client):
        mock_post.return_value = api_response(body={
            "data": {"next_items_page": {"cursor": None, "items": []}}
        })

        items, cursor = client.fetch_items_page(2431480012, 200, "abc")

        assert items == []
        assert cursor is None
        variables = mock_post.call_args.kwargs["json"]["variables"]
        assert variables == {"cursor": "abc", "limit": 200}
