"""Transport-neutral request/response types shared by every handler."""

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Content-Type": "application/json",
}


@dataclass
class Request:
    """
    One inbound HTTP request.

    Attributes:
        method: HTTP method, upper case
        body: Raw request body
        query: Query string parameters (first value of each)
    """
    method: str
    body: str = ""
    query: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, method: str, body: str = "", query_string: str = "") -> "Request":
        query = {key: values[0] for key, values in parse_qs(query_string).items() if values}
        return cls(method=method.upper(), body=body, query=query)


@dataclass
class Response:
    """One outbound HTTP response."""
    status: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


def cors_headers(allow_methods: str | None = None) -> dict[str, str]:
    headers = dict(CORS_HEADERS)
    if allow_methods:
        headers["Access-Control-Allow-Methods"] = allow_methods
    return headers


def json_response(status: int, payload: Any, allow_methods: str | None = None) -> Response:
    """JSON body with the CORS headers."""
    return Response(
        status=status,
        body=json.dumps(payload, default=str),
        headers=cors_headers(allow_methods),
    )


def preflight_response(allow_methods: str | None = None) -> Response:
    """Empty 200 answering a CORS preflight."""
    return Response(status=200, headers=cors_headers(allow_methods))


def method_not_allowed(allow_methods: str | None = None) -> Response:
    return json_response(405, {"error": "Method not allowed"}, allow_methods)
