"""
Webhook automations.

Each automation is registered under the webhook name it is served at and is
built from its own `automations.<name>` config section.
"""

from .address_book import AddressBookItemCreatedAutomation, AddressBookUpdatesAutomation
from .base import Automation, AutomationContext, LoggingNotifier, Notifier, commit
from .crew_email_copy import CrewEmailCopyAutomation
from .crew_transport_link import CrewTransportLinkAutomation
from .date_copy import DateCopyAutomation
from .qh_client_linked import QHClientLinkedAutomation
from .quote_confirmed import QuoteConfirmedAutomation
from .registry import build_all, get_automation, list_automations, register_automation

for _automation in (
    DateCopyAutomation,
    CrewTransportLinkAutomation,
    CrewEmailCopyAutomation,
    AddressBookItemCreatedAutomation,
    AddressBookUpdatesAutomation,
    QHClientLinkedAutomation,
    QuoteConfirmedAutomation,
):
    register_automation(_automation.name, _automation.from_config)

__all__ = [
    "Automation",
    "AutomationContext",
    "LoggingNotifier",
    "Notifier",
    "commit",
    "build_all",
    "get_automation",
    "list_automations",
    "register_automation",
    "DateCopyAutomation",
    "CrewTransportLinkAutomation",
    "CrewEmailCopyAutomation",
    "AddressBookItemCreatedAutomation",
    "AddressBookUpdatesAutomation",
    "QHClientLinkedAutomation",
    "QuoteConfirmedAutomation",
]
