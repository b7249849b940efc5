"""Tests for application wiring and routing."""

import json

import pytest

from boardsync.app import (
    BACKFILL_ROUTE,
    DEPENDENCY_ROUTE,
    HEALTH_ROUTE,
    build_client,
    build_routes,
    dispatch,
    route_name,
)
from boardsync.automations import list_automations
from boardsync.handlers.backfill import BackfillHandler
from boardsync.handlers.http import Request
from boardsync.handlers.webhook import WebhookDispatcher

from helpers import FakeBoardClient, date_col, make_item


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/.netlify/functions/date-copy-automation", "date-copy-automation"),
        ("/health-check", "health-check"),
        ("/bulk-date-migration/?execute=true", "bulk-date-migration"),
        ("/", ""),
    ],
)
def test_route_name(path, expected):
    assert route_name(path) == expected


def test_all_automations_registered():
    assert set(list_automations()) == {
        "date-copy-automation",
        "crew-transport-link",
        "crew-email-copy",
        "address-book-item-created",
        "address-book-updates",
        "qh-client-linked",
        "quote-confirmed-automation",
    }


class TestRoutes:
    @pytest.fixture
    def client(self):
        return FakeBoardClient(make_item(1, date_col("date_mkzzmse7", "2025-03-30")))

    @pytest.fixture
    def routes(self, client):
        return build_routes({}, client=client)

    def test_every_endpoint_routed(self, routes):
        for name in list_automations():
            assert isinstance(routes[name], WebhookDispatcher)
        assert isinstance(routes[BACKFILL_ROUTE], BackfillHandler)
        assert HEALTH_ROUTE in routes
        assert DEPENDENCY_ROUTE in routes

    def test_unknown_function_is_404(self, routes):
        response = dispatch(routes, "/.netlify/functions/nope", Request.from_raw("POST", "{}"))
        assert response.status == 404
        assert response.json() == {"error": "Unknown function: nope"}

    def test_webhook_through_prefixed_path(self, routes, client):
        body = json.dumps({"event": {"pulseId": 1, "boardId": 2431480012, "columnId": "date_mkzzmse7"}})

        response = dispatch(routes, "/.netlify/functions/date-copy-automation", Request.from_raw("POST", body))

        assert response.status == 200
        assert client.writes_for(1) == [{"dup__of_hire_starts": {"date": "2025-03-29"}}]

    def test_automation_config_sections_applied(self, client):
        routes = build_routes(
            {"automations": {"date-copy-automation": {"direction": 1}}},
            client=client,
        )
        assert routes["date-copy-automation"].automation.config.direction == 1


def test_health_client_is_single_attempt():
    client = build_client({"retry": {"max_attempts": 5}}, single_attempt=True)
    assert client.retry.max_attempts == 1
    assert build_client({"retry": {"max_attempts": 5}}).retry.max_attempts == 5


def test_dependency_lookups_use_configured_retry():
    routes = build_routes({"retry": {"max_attempts": 4, "base_delay_s": 0.5}}, client=FakeBoardClient())
    retry = routes[DEPENDENCY_ROUTE].checker.retry
    assert retry.max_attempts == 4
    assert retry.base_delay_s == 0.5
