"""HTTP handlers: automation webhooks, backfill, health and dependency reports."""

from .backfill import BackfillConfig, BackfillHandler, BackfillRunner
from .dependencies import DependencyChecker, DependencyConfig, DependencyHandler
from .health import HealthChecker, HealthConfig, HealthHandler
from .http import CORS_HEADERS, Request, Response, json_response
from .webhook import WebhookDispatcher

__all__ = [
    "BackfillConfig",
    "BackfillHandler",
    "BackfillRunner",
    "DependencyChecker",
    "DependencyConfig",
    "DependencyHandler",
    "HealthChecker",
    "HealthConfig",
    "HealthHandler",
    "CORS_HEADERS",
    "Request",
    "Response",
    "json_response",
    "WebhookDispatcher",
]
