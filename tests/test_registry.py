"""Tests for the automation registry."""

import pytest

from boardsync.automations import DateCopyAutomation, get_automation
from boardsync.automations.base import Automation
from boardsync.automations.registry import AutomationRegistry, build_all


def test_register_and_build():
    registry = AutomationRegistry()
    registry.register("date-copy", DateCopyAutomation.from_config)

    automation = registry.build("date-copy", {"board_id": 42})

    assert registry.list() == ["date-copy"]
    assert automation.board_id == 42
    assert isinstance(automation, Automation)


def test_unknown_name_lists_available():
    registry = AutomationRegistry()
    registry.register("date-copy", DateCopyAutomation.from_config)

    with pytest.raises(ValueError, match="Available automations: date-copy"):
        registry.build("missing")


def test_empty_registry_message():
    with pytest.raises(ValueError, match="none"):
        AutomationRegistry().build("x")


def test_global_registry_defaults():
    automation = get_automation("crew-email-copy")
    assert automation.board_id == 18398014629


def test_build_all_uses_sections():
    automations = build_all({"qh-client-linked": {"board_id": "7"}})
    assert automations["qh-client-linked"].board_id == 7
    assert automations["date-copy-automation"].board_id == 2431480012
