"""
Application wiring.

Builds every HTTP handler from a loaded config and routes request paths to
them. Used by webhook_server.py and by the backfill CLI.
"""

from typing import Any, Protocol

from boardsync.automations import AutomationContext, LoggingNotifier, Notifier, build_all
from boardsync.config import MondayConfig, RetryConfig, get_section
from boardsync.handlers.backfill import BackfillConfig, BackfillHandler, BackfillRunner
from boardsync.handlers.dependencies import DependencyChecker, DependencyConfig, DependencyHandler
from boardsync.handlers.health import HealthChecker, HealthConfig, HealthHandler
from boardsync.handlers.http import Request, Response, json_response
from boardsync.handlers.webhook import WebhookDispatcher
from boardsync.monday.client import MondayClient
from boardsync.retry import RetryPolicy

FUNCTIONS_PREFIX = "/.netlify/functions/"

BACKFILL_ROUTE = "bulk-date-migration"
HEALTH_ROUTE = "health-check"
DEPENDENCY_ROUTE = "dependency-check"


class Handler(Protocol):
    def handle(self, request: Request) -> Response:
        ...


def build_retry(config: dict[str, Any]) -> RetryPolicy:
    """Retry policy shared by the GraphQL client and the REST lookups."""
    return RetryPolicy.from_config(RetryConfig.from_dict(get_section(config, "retry")))


def build_client(config: dict[str, Any], single_attempt: bool = False) -> MondayClient:
    """monday.com client with the configured retry policy."""
    retry = build_retry(config)
    if single_attempt:
        retry.max_attempts = 1
    return MondayClient(MondayConfig.from_dict(get_section(config, "monday")), retry)


def build_backfill_runner(config: dict[str, Any], client: MondayClient | None = None) -> BackfillRunner:
    return BackfillRunner(
        client or build_client(config),
        BackfillConfig.from_dict(get_section(config, "backfill")),
    )


def build_routes(
    config: dict[str, Any],
    client: MondayClient | None = None,
    notifier: Notifier | None = None,
) -> dict[str, Handler]:
    """
    Route name -> handler for every endpoint.

    Args:
        config: Loaded configuration (see config/boardsync.yaml)
        client: monday.com client override
        notifier: Alert channel override (defaults to logging only)
    """
    client = client or build_client(config)
    notifier = notifier or LoggingNotifier()
    ctx = AutomationContext.for_client(client, notifier)

    routes: dict[str, Handler] = {
        name: WebhookDispatcher(automation, ctx)
        for name, automation in build_all(get_section(config, "automations")).items()
    }
    routes[BACKFILL_ROUTE] = BackfillHandler(build_backfill_runner(config, client))
    routes[HEALTH_ROUTE] = HealthHandler(
        HealthChecker(
            build_client(config, single_attempt=True),
            HealthConfig.from_dict(get_section(config, "health")),
        )
    )
    routes[DEPENDENCY_ROUTE] = DependencyHandler(
        DependencyChecker(
            DependencyConfig.from_dict(get_section(config, "dependencies")),
            retry=build_retry(config),
        ),
        notifier,
    )
    return routes


def route_name(path: str) -> str:
    """'/.netlify/functions/date-copy-automation?x=1' -> 'date-copy-automation'"""
    path = path.split("?", 1)[0]
    if path.startswith(FUNCTIONS_PREFIX):
        path = path[len(FUNCTIONS_PREFIX):]
    return path.strip("/")


def dispatch(routes: dict[str, Handler], path: str, request: Request) -> Response:
    handler = routes.get(route_name(path))
    if handler is None:
        return json_response(404, {"error": f"Unknown function: {route_name(path) or '/'}"})
    return handler.handle(request)
