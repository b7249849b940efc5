"""Automation registration and lookup."""

from typing import Any, Callable, Dict

from .base import Automation

# Builds an automation from its config section
AutomationFactory = Callable[[dict], Automation]


class AutomationRegistry:
    """Registry of automation factories keyed by webhook name."""

    def __init__(self):
        self._factories: Dict[str, AutomationFactory] = {}

    def register(self, name: str, factory: AutomationFactory) -> None:
        """Register an automation factory.

        Args:
            name: Webhook name (the URL path segment)
            factory: Callable taking the automation's config section
        """
        self._factories[name] = factory

    def build(self, name: str, config: dict | None = None) -> Automation:
        """Build an automation from its config section.

        Raises:
            ValueError: If no automation is registered under name
        """
        if name not in self._factories:
            available = ", ".join(self._factories.keys())
            raise ValueError(
                f"Automation '{name}' not found. "
                f"Available automations: {available or 'none'}"
            )
        return self._factories[name](config or {})

    def list(self) -> list[str]:
        """List all registered automation names."""
        return list(self._factories.keys())


# Global registry instance
_registry = AutomationRegistry()


def register_automation(name: str, factory: AutomationFactory) -> None:
    """Register an automation in the global registry."""
    _registry.register(name, factory)


def get_automation(name: str, config: dict | None = None) -> Automation:
    """Build an automation from the global registry."""
    return _registry.build(name, config)


def list_automations() -> list[str]:
    """List all registered automation names."""
    return _registry.list()


def build_all(automations_config: dict[str, Any]) -> dict[str, Automation]:
    """Build every registered automation, each from its own config section."""
    return {
        name: get_automation(name, automations_config.get(name) or {})
        for name in list_automations()
    }
