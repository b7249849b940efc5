"""Tests for the Q&H client-linked automation."""

import pytest

from boardsync.automations.base import AutomationContext
from boardsync.automations.qh_client_linked import QHClientLinkedAutomation
from boardsync.monday.types import WebhookEvent

from helpers import FakeBoardClient, email_col, make_item, mirror_col, text_col


@pytest.fixture
def automation():
    return QHClientLinkedAutomation()


def run(automation, client):
    event = WebhookEvent(item_id=1, board_id=2431480012, column_id="connect_boards7")
    return automation.run(event, client.fetch_item(1), AutomationContext.for_client(client))


def test_copies_mirrored_values(automation):
    client = FakeBoardClient(make_item(
        1, mirror_col("mirror_14", "jane@client.test"), mirror_col("mirror_145", "Jane Doe")
    ))

    result = run(automation, client)

    assert client.writes_for(1) == [{
        "text1": {"email": "jane@client.test", "text": "jane@client.test"},
        "text6": "Jane Doe",
    }]
    assert result["updates"] == {"text1": "jane@client.test", "text6": "Jane Doe"}
    assert result["state"] == "write_performed"


def test_only_changed_column_is_written(automation):
    client = FakeBoardClient(make_item(
        1,
        mirror_col("mirror_14", "jane@client.test"),
        mirror_col("mirror_145", "Jane Doe"),
        email_col("text1", "jane@client.test"),
        text_col("text6", "J Doe"),
    ))

    run(automation, client)

    assert client.writes_for(1) == [{"text6": "Jane Doe"}]


def test_unlinked_clears_copies(automation):
    client = FakeBoardClient(make_item(
        1,
        mirror_col("mirror_14", None),
        mirror_col("mirror_145", None),
        email_col("text1", "old@client.test"),
        text_col("text6", "Old"),
    ))

    run(automation, client)

    assert client.writes_for(1) == [{"text1": "", "text6": ""}]


def test_accepts_only_connect_column(automation):
    assert automation.accepts(WebhookEvent(item_id=1, column_id="connect_boards7"))
    assert not automation.accepts(WebhookEvent(item_id=1, column_id="text1"))
