"""
Service health checks.

Probes every external service the webhooks depend on and rolls the results
up into healthy / degraded / critical.

Usage:
    GET /health-check
"""

import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import requests

from boardsync.errors import ConfigurationError
from boardsync.logger import get_logger

from .http import Request, Response, json_response, method_not_allowed, preflight_response

logger = get_logger("handlers.health")

ALLOW_METHODS = "GET, OPTIONS"

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class HealthConfig:
    """
    Health check settings.

    Attributes:
        timeout_s: Per-service request timeout
        required_env_vars: Variables that must be set
        critical_services: Services whose failure makes the system critical
        hirehop_token_env: Variable holding the HireHop API token
        hirehop_domain_env: Variable overriding the HireHop domain
    """
    timeout_s: float = 10.0
    required_env_vars: tuple[str, ...] = ("MONDAY_API_TOKEN", "HIREHOP_API_TOKEN")
    critical_services: tuple[str, ...] = ("monday", "smtp")
    hirehop_token_env: str = "HIREHOP_API_TOKEN"
    hirehop_domain_env: str = "HIREHOP_DOMAIN"
    smtp_env_vars: tuple[str, ...] = ("SMTP_HOST", "SMTP_USER", "SMTP_PASS")

    @classmethod
    def from_dict(cls, data: dict) -> "HealthConfig":
        defaults = cls()
        return cls(
            timeout_s=float(data.get("timeout_s", defaults.timeout_s)),
            required_env_vars=tuple(data.get("required_env_vars") or defaults.required_env_vars),
            critical_services=tuple(data.get("critical_services") or defaults.critical_services),
            hirehop_token_env=data.get("hirehop_token_env", defaults.hirehop_token_env),
            hirehop_domain_env=data.get("hirehop_domain_env", defaults.hirehop_domain_env),
            smtp_env_vars=tuple(data.get("smtp_env_vars") or defaults.smtp_env_vars),
        )


@dataclass
class ServiceHealth:
    """Health status for one service."""

    name: str
    status: str = "unknown"
    latency_ms: int | None = None
    message: str = ""
    checked_at: str = field(default_factory=_now)

    @property
    def healthy(self) -> bool:
        return self.status == HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "latencyMs": self.latency_ms,
            "message": self.message,
            "checkedAt": self.checked_at,
        }


@dataclass
class EnvironmentHealth:
    """Presence of the required environment variables."""

    present: list[str]
    missing: list[str]
    checked_at: str = field(default_factory=_now)

    @property
    def healthy(self) -> bool:
        return not self.missing

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": HEALTHY if self.healthy else UNHEALTHY,
            "present": self.present,
            "missing": self.missing,
            "message": (
                "All required variables configured"
                if self.healthy
                else f"Missing: {', '.join(self.missing)}"
            ),
            "checkedAt": self.checked_at,
        }


@dataclass
class HealthReport:
    """Overall health check result."""

    services: dict[str, ServiceHealth]
    environment: EnvironmentHealth
    overall: str
    duration_ms: int
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        healthy_count = sum(1 for s in self.services.values() if s.healthy)
        return {
            "timestamp": self.timestamp,
            "overall": self.overall,
            "services": {key: s.to_dict() for key, s in self.services.items()},
            "environment": self.environment.to_dict(),
            "summary": {
                "total": len(self.services),
                "healthy": healthy_count,
                "unhealthy": len(self.services) - healthy_count,
            },
            "checkDurationMs": self.duration_ms,
        }


def overall_status(services: dict[str, ServiceHealth], critical: tuple[str, ...]) -> str:
    """critical if a critical service is down, degraded if any other is, else healthy."""
    if any(not services[key].healthy for key in critical if key in services):
        return "critical"
    if any(not s.healthy for s in services.values()):
        return "degraded"
    return HEALTHY


class HealthChecker:
    """
    Runs every service check.

    Example:
        checker = HealthChecker(MondayClient(retry=RetryPolicy(max_attempts=1)))
        report = checker.run()
    """

    def __init__(self, monday_client, config: HealthConfig | None = None):
        self.monday_client = monday_client
        self.config = config or HealthConfig()

    def check_monday(self) -> ServiceHealth:
        result = ServiceHealth(name="Monday.com API")
        start_time = time.time()
        try:
            me = self.monday_client.me()
        except ConfigurationError as e:
            result.status = UNHEALTHY
            result.message = str(e)
            return result
        except requests.Timeout:
            result.status = UNHEALTHY
            result.message = f"Request timeout (>{self.config.timeout_s:g}s)"
            return result
        except Exception as e:
            result.status = UNHEALTHY
            result.message = str(e)
            return result
        finally:
            result.latency_ms = int((time.time() - start_time) * 1000)

        if me.get("id"):
            result.status = HEALTHY
            result.message = "API responding normally"
        else:
            result.status = UNHEALTHY
            result.message = "Unexpected response structure"
        return result

    def check_hirehop(self) -> ServiceHealth:
        """
        HireHop token check.

        job_refresh.php for a job that does not exist answers JSON when the
        token is valid and an HTML login page when it is not.
        """
        result = ServiceHealth(name="HireHop API")
        token = os.environ.get(self.config.hirehop_token_env, "")
        if not token:
            result.status = UNHEALTHY
            result.message = f"{self.config.hirehop_token_env} not configured"
            return result

        domain = os.environ.get(self.config.hirehop_domain_env) or "myhirehop.com"
        url = f"https://{domain}/php_functions/job_refresh.php"
        start_time = time.time()
        try:
            response = requests.get(
                url,
                params={"job": 0, "token": token},
                timeout=self.config.timeout_s,
            )
        except requests.Timeout:
            result.status = UNHEALTHY
            result.message = f"Request timeout (>{self.config.timeout_s:g}s)"
            return result
        except requests.RequestException as e:
            result.status = UNHEALTHY
            result.message = str(e)
            return result
        finally:
            result.latency_ms = int((time.time() - start_time) * 1000)

        text = response.text.strip()
        if text.startswith("<"):
            result.status = UNHEALTHY
            result.message = "Invalid token (HTML response)"
            return result
        try:
            response.json()
        except ValueError:
            result.status = UNHEALTHY
            result.message = "Invalid response format"
            return result

        result.status = HEALTHY
        result.message = "API responding (token valid)"
        return result

    def check_smtp(self) -> ServiceHealth:
        # Configuration presence only; a real check would send mail
        result = ServiceHealth(name="SMTP Email", latency_ms=0)
        if all(os.environ.get(name) for name in self.config.smtp_env_vars):
            result.status = HEALTHY
            result.message = "SMTP configured"
        else:
            result.status = UNHEALTHY
            result.message = "SMTP configuration incomplete"
        return result

    def check_environment(self) -> EnvironmentHealth:
        present = [name for name in self.config.required_env_vars if os.environ.get(name)]
        missing = [name for name in self.config.required_env_vars if not os.environ.get(name)]
        return EnvironmentHealth(present=present, missing=missing)

    def run(self) -> HealthReport:
        started = time.time()
        services = {
            "monday": self.check_monday(),
            "smtp": self.check_smtp(),
            "hirehop": self.check_hirehop(),
        }
        environment = self.check_environment()
        overall = overall_status(services, self.config.critical_services)

        for key, service in services.items():
            if not service.healthy:
                logger.warning("health.service_unhealthy", service=key, detail=service.message)

        return HealthReport(
            services=services,
            environment=environment,
            overall=overall,
            duration_ms=int((time.time() - started) * 1000),
        )


class HealthHandler:
    """HTTP front end: 200 when healthy, 503 otherwise."""

    def __init__(self, checker: HealthChecker):
        self.checker = checker

    def handle(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return preflight_response(ALLOW_METHODS)
        if request.method != "GET":
            return method_not_allowed(ALLOW_METHODS)

        report = self.checker.run()
        logger.info("health.checked", overall=report.overall, duration_ms=report.duration_ms)
        status = 200 if report.overall == HEALTHY else 503
        return json_response(status, report.to_dict(), ALLOW_METHODS)
