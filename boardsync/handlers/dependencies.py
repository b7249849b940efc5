"""
Dependency and version monitoring.

Weekly report covering:
- runtime end-of-life status (endoflife.date)
- npm dependency drift for each monitored GitHub repository
- sunset dates of the third-party API versions in use

Usage:
    GET /dependency-check
    GET /dependency-check?sendReport=true
"""

import base64
import json
import os
import re
import sys
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import requests

from boardsync.errors import UpstreamHTTPError
from boardsync.logger import get_logger
from boardsync.retry import RetryPolicy

from .http import Request, Response, json_response, method_not_allowed, preflight_response

logger = get_logger("handlers.dependencies")

ALLOW_METHODS = "GET, POST, OPTIONS"

EOL_WARNING_DAYS = 90
SUNSET_WARNING_DAYS = 60

STATUS_RANK = {"healthy": 0, "warning": 1, "critical": 2}


@dataclass
class RepoConfig:
    name: str
    repo: str
    description: str = ""


@dataclass
class ApiVersionConfig:
    name: str
    current_version: str
    sunset: str | None = None


@dataclass
class DependencyConfig:
    """
    Dependency check settings.

    Attributes:
        runtime_product: endoflife.date product slug
        runtime_version: Release cycle to look up (defaults to the running interpreter)
        repos: Repositories whose package.json is checked
        api_versions: Third-party API versions with their sunset dates
        advisories: Standing notes copied into every report
    """
    runtime_product: str = "python"
    runtime_version: str = field(default_factory=lambda: f"{sys.version_info.major}.{sys.version_info.minor}")
    eol_api_url: str = "https://endoflife.date/api"
    github_api_url: str = "https://api.github.com"
    npm_registry_url: str = "https://registry.npmjs.org"
    github_token_env: str = "GITHUB_TOKEN"
    github_owner_env: str = "GITHUB_OWNER"
    timeout_s: float = 10.0
    repos: list[RepoConfig] = field(default_factory=list)
    api_versions: list[ApiVersionConfig] = field(
        default_factory=lambda: [ApiVersionConfig("Monday.com API", "2025-04")]
    )
    advisories: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DependencyConfig":
        config = cls()
        for key in ("runtime_product", "eol_api_url", "github_api_url", "npm_registry_url",
                    "github_token_env", "github_owner_env"):
            if data.get(key):
                setattr(config, key, data[key])
        if data.get("runtime_version"):
            config.runtime_version = str(data["runtime_version"])
        if "timeout_s" in data:
            config.timeout_s = float(data["timeout_s"])
        if data.get("repos"):
            config.repos = [RepoConfig(**entry) for entry in data["repos"]]
        if data.get("api_versions"):
            config.api_versions = [
                ApiVersionConfig(
                    name=entry["name"],
                    current_version=str(entry["current_version"]),
                    sunset=str(entry["sunset"]) if entry.get("sunset") else None,
                )
                for entry in data["api_versions"]
            ]
        if data.get("advisories"):
            config.advisories = list(data["advisories"])
        return config


def parse_version(version: str | None) -> tuple[int, int, int]:
    """
    "^18.2.0" -> (18, 2, 0); "~1.0" -> (1, 0, 0); pre-release tags ignored.
    """
    clean = re.sub(r"[\^~>=<\s]", "", version or "").split("-")[0]
    parts = []
    for piece in clean.split(".")[:3]:
        match = re.match(r"\d+", piece)
        parts.append(int(match.group(0)) if match else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def classify_update(current: str, latest: str | None) -> str:
    """none / patch / minor / major, comparing the most significant differing part."""
    if not latest:
        return "none"
    cur = parse_version(current)
    new = parse_version(latest)
    if new[0] != cur[0]:
        return "major" if new[0] > cur[0] else "none"
    if new[1] != cur[1]:
        return "minor" if new[1] > cur[1] else "none"
    if new[2] > cur[2]:
        return "patch"
    return "none"


def _to_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


class DependencyChecker:
    """Builds the dependency report."""

    def __init__(
        self,
        config: DependencyConfig | None = None,
        today=date.today,
        retry: RetryPolicy | None = None,
    ):
        self.config = config or DependencyConfig()
        self.today = today
        self.retry = retry or RetryPolicy()

    # --- HTTP ---

    def _get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        """
        GET a JSON document, retrying transient failures.

        Raises:
            UpstreamHTTPError: Once retries are exhausted, or at once for a
                non-transient failure such as a 404
        """
        try:
            return self.retry.call(self._get_json_once, url, headers or {})
        except requests.Timeout as e:
            raise UpstreamHTTPError(f"Request to {url} timed out") from e
        except requests.RequestException as e:
            raise UpstreamHTTPError(f"Request to {url} failed: {e}") from e

    def _get_json_once(self, url: str, headers: dict[str, str]) -> Any:
        response = requests.get(url, headers=headers, timeout=self.config.timeout_s)
        if response.status_code >= 400:
            raise UpstreamHTTPError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamHTTPError(f"Invalid JSON from {url}") from e

    # --- Runtime ---

    def check_runtime(self) -> dict[str, Any]:
        """End-of-life status of the configured runtime release cycle."""
        cfg = self.config
        result: dict[str, Any] = {
            "product": cfg.runtime_product,
            "currentVersion": cfg.runtime_version,
            "status": "healthy",
            "eolDate": None,
            "message": "",
        }
        try:
            cycles = self._get_json(f"{cfg.eol_api_url}/{cfg.runtime_product}.json")
        except UpstreamHTTPError as e:
            logger.warning("dependencies.eol_unavailable", error=str(e))
            result["message"] = "Could not check EOL status"
            return result

        cycle = next(
            (c for c in cycles if isinstance(c, dict) and str(c.get("cycle")) == cfg.runtime_version),
            None,
        )
        if cycle is None:
            result["message"] = f"Release {cfg.runtime_version} not listed"
            return result

        eol = cycle.get("eol")
        result["eolDate"] = eol
        result["lts"] = cycle.get("lts", False)
        eol_day = _to_date(eol)
        if eol is True:
            result["status"] = "critical"
            result["message"] = f"{cfg.runtime_product} {cfg.runtime_version} is END OF LIFE! Upgrade immediately."
        elif eol_day is None:
            result["message"] = "No end-of-life date announced"
        else:
            days_left = (eol_day - self.today()).days
            if days_left < 0:
                result["status"] = "critical"
                result["message"] = f"{cfg.runtime_product} {cfg.runtime_version} is END OF LIFE! Upgrade immediately."
            elif days_left < EOL_WARNING_DAYS:
                result["status"] = "warning"
                result["message"] = f"{cfg.runtime_product} {cfg.runtime_version} EOL approaching: {eol}"
            else:
                result["message"] = f"Supported until {eol}"
        return result

    # --- Repositories ---

    def fetch_package_json(self, repo: str) -> dict[str, Any]:
        """
        Read package.json from a GitHub repository.

        Raises:
            UpstreamHTTPError: If GitHub is unreachable or the file is missing
        """
        token = os.environ.get(self.config.github_token_env, "")
        owner = os.environ.get(self.config.github_owner_env, "")
        if not token or not owner:
            raise UpstreamHTTPError(
                f"{self.config.github_token_env} and {self.config.github_owner_env} must be set"
            )

        url = f"{self.config.github_api_url}/repos/{owner}/{repo}/contents/package.json"
        data = self._get_json(url, {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "boardsync-dependency-monitor",
        })
        try:
            content = base64.b64decode(data["content"]).decode("utf-8")
            return json.loads(content)
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamHTTPError(f"Unreadable package.json in {repo}") from e

    def check_package(self, name: str, version: str) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": name,
            "current": re.sub(r"^[\^~]", "", version or ""),
            "latest": None,
            "updateType": "none",
        }
        try:
            data = self._get_json(f"{self.config.npm_registry_url}/{name}/latest")
        except UpstreamHTTPError as e:
            # One unreachable package does not spoil the repo report
            logger.debug("dependencies.package_unavailable", package=name, error=str(e))
            return result
        result["latest"] = data.get("version") if isinstance(data, dict) else None
        result["updateType"] = classify_update(result["current"], result["latest"])
        return result

    def check_repository(self, repo: RepoConfig) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": repo.name,
            "repo": repo.repo,
            "description": repo.description,
            "status": "healthy",
            "packageJson": None,
            "packages": {
                "total": 0,
                "upToDate": 0,
                "minorUpdates": 0,
                "majorUpdates": 0,
                "details": [],
            },
            "errors": [],
        }
        try:
            manifest = self.fetch_package_json(repo.repo)
        except UpstreamHTTPError as e:
            logger.warning("dependencies.repo_failed", repo=repo.repo, error=str(e))
            result["status"] = "error"
            result["errors"].append(str(e))
            return result

        result["packageJson"] = {"name": manifest.get("name"), "version": manifest.get("version")}
        dependencies = manifest.get("dependencies") or {}
        dev_dependencies = manifest.get("devDependencies") or {}
        packages = result["packages"]
        packages["total"] = len({**dependencies, **dev_dependencies})

        # Runtime dependencies only; dev tooling drift is not reported
        for name, version in dependencies.items():
            status = self.check_package(name, version)
            if status["updateType"] == "major":
                packages["majorUpdates"] += 1
                packages["details"].append(status)
            elif status["updateType"] in ("minor", "patch"):
                packages["minorUpdates"] += 1
                packages["details"].append(status)
            else:
                packages["upToDate"] += 1

        result["status"] = "warning" if packages["majorUpdates"] else "healthy"
        return result

    # --- Shared services ---

    def check_api_versions(self) -> list[dict[str, Any]]:
        services = []
        for api in self.config.api_versions:
            entry = {
                "name": api.name,
                "currentVersion": api.current_version,
                "status": "healthy",
                "message": "",
            }
            sunset = _to_date(api.sunset)
            if sunset is None:
                entry["message"] = "No known deprecation"
            elif (sunset - self.today()).days < SUNSET_WARNING_DAYS:
                entry["status"] = "warning"
                entry["message"] = f"Version {api.current_version} sunset: {api.sunset}. Check for newer version."
            else:
                entry["message"] = f"Version {api.current_version} active until {api.sunset}"
            services.append(entry)
        return services

    # --- Report ---

    def run(self) -> dict[str, Any]:
        started = time.time()
        report: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "overall": "healthy",
            "runtime": self.check_runtime(),
            "repos": [self.check_repository(repo) for repo in self.config.repos],
            "sharedServices": self.check_api_versions(),
            "standingAdvisories": self.config.advisories,
        }
        report["recommendations"] = compile_recommendations(report)
        report["overall"] = overall_status(report)
        report["checkDurationMs"] = int((time.time() - started) * 1000)
        return report


def compile_recommendations(report: dict[str, Any]) -> list[dict[str, str]]:
    """Prioritized follow-ups derived from a report."""
    recommendations = []
    runtime = report["runtime"]
    if runtime["status"] == "critical":
        recommendations.append({
            "priority": "critical",
            "action": f"Upgrade {runtime['product']} immediately - version {runtime['currentVersion']} is end of life",
        })
    elif runtime["status"] == "warning":
        recommendations.append({
            "priority": "high",
            "action": f"Plan {runtime['product']} upgrade - EOL approaching: {runtime['eolDate']}",
        })

    for repo in report["repos"]:
        packages = repo["packages"]
        if packages["majorUpdates"]:
            majors = [
                f"{p['name']} ({p['current']} -> {p['latest']})"
                for p in packages["details"]
                if p["updateType"] == "major"
            ][:3]
            more = "..." if packages["majorUpdates"] > 3 else ""
            recommendations.append({
                "priority": "medium",
                "action": f"{repo['name']}: {packages['majorUpdates']} major updates available: {', '.join(majors)}{more}",
            })
        if repo["status"] == "error":
            recommendations.append({
                "priority": "low",
                "action": f"{repo['name']}: could not check dependencies ({'; '.join(repo['errors'])})",
            })

    for service in report["sharedServices"]:
        if service["status"] == "warning":
            recommendations.append({"priority": "high", "action": service["message"]})

    if not recommendations:
        recommendations.append({
            "priority": "none",
            "action": "No actions required this week - all systems healthy",
        })
    return recommendations


def overall_status(report: dict[str, Any]) -> str:
    """Worst of runtime, repositories and shared services (repo errors do not count)."""
    statuses = [report["runtime"]["status"]]
    statuses.extend(repo["status"] for repo in report["repos"])
    statuses.extend(service["status"] for service in report["sharedServices"])
    ranked = [STATUS_RANK[s] for s in statuses if s in STATUS_RANK]
    worst = max(ranked, default=0)
    return next(name for name, rank in STATUS_RANK.items() if rank == worst)


class DependencyHandler:
    """HTTP front end; optionally hands the report to the notifier."""

    def __init__(self, checker: DependencyChecker, notifier=None):
        self.checker = checker
        self.notifier = notifier

    def handle(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return preflight_response(ALLOW_METHODS)
        if request.method not in ("GET", "POST"):
            return method_not_allowed(ALLOW_METHODS)

        try:
            report = self.checker.run()
            if request.query.get("sendReport", "").lower() == "true" and self.notifier is not None:
                report["reportSent"] = bool(self.notifier.send("dependency_report", report))
        except Exception as e:
            logger.error("dependencies.failed", error=str(e), exc_info=True)
            return json_response(500, {"error": str(e)}, ALLOW_METHODS)

        logger.info("dependencies.checked", overall=report["overall"], repos=len(report["repos"]))
        return json_response(200, report, ALLOW_METHODS)
