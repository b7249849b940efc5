"""Tests for the crew/transport link automation."""

import pytest

from boardsync.automations.base import AutomationContext
from boardsync.automations.crew_transport_link import CrewTransportLinkAutomation
from boardsync.monday.types import RawColumn, WebhookEvent

from helpers import FakeBoardClient, link_col, make_item

PORTAL = "https://ooosh-freelancer-portal.netlify.app/staff/crew-transport?job="


@pytest.fixture
def automation():
    return CrewTransportLinkAutomation()


def run(automation, client, item_id=1):
    ctx = AutomationContext.for_client(client)
    event = WebhookEvent(item_id=item_id, board_id=2431480012, column_id="link")
    return automation.run(event, client.fetch_item(item_id), ctx)


def test_writes_portal_link(automation):
    client = FakeBoardClient(make_item(1, link_col("link", "https://myhirehop.com/job.php?id=13422", "Job 13422")))

    result = run(automation, client)

    assert client.writes_for(1) == [
        {"link_mm07k8n4": {"url": PORTAL + "13422", "text": "Transport / crew"}}
    ]
    assert result["jobId"] == "13422"
    assert result["portalUrl"] == PORTAL + "13422"
    assert result["displayText"] == "Transport / crew"


def test_link_from_rendered_text_only(automation):
    raw = RawColumn("link", text="https://myhirehop.com/job.php?id=55", value=None)
    client = FakeBoardClient(make_item(1, raw))

    assert run(automation, client)["jobId"] == "55"


def test_no_url(automation):
    client = FakeBoardClient(make_item(1, link_col("link", None)))
    assert run(automation, client) == {"message": "No URL to process"}
    assert client.writes == []


def test_url_without_job_id(automation):
    client = FakeBoardClient(make_item(1, link_col("link", "https://myhirehop.com/calendar.php")))

    result = run(automation, client)

    assert result["message"] == "Could not extract job ID from URL"
    assert result["url"] == "https://myhirehop.com/calendar.php"
    assert "hint" in result
    assert client.writes == []


def test_unchanged_link_not_rewritten(automation):
    client = FakeBoardClient(make_item(
        1,
        link_col("link", "https://myhirehop.com/job.php?id=13422"),
        link_col("link_mm07k8n4", PORTAL + "13422", "Transport / crew"),
    ))

    result = run(automation, client)

    assert result["state"] == "not_needed"
    assert client.writes == []


def test_accepts_only_source_column(automation):
    assert automation.accepts(WebhookEvent(item_id=1, column_id="link"))
    assert not automation.accepts(WebhookEvent(item_id=1, column_id="link_mm07k8n4"))
