#!/usr/bin/env python3
"""
boardsync Webhook Server

Serves the monday.com automation webhooks plus the backfill, health and
dependency endpoints. Each endpoint answers at /<name> and at
/.netlify/functions/<name>.

Usage:
    python webhook_server.py
    python webhook_server.py --port 5000 --config config/boardsync.yaml
"""

import argparse
import sys
from http.server import HTTPServer, BaseHTTPRequestHandler
from urllib.parse import urlsplit

from dotenv import load_dotenv

from boardsync.app import build_routes, dispatch
from boardsync.config import load_config
from boardsync.errors import ConfigurationError
from boardsync.handlers.http import Request
from boardsync.logger import get_logger

load_dotenv()

logger = get_logger("server")


class WebhookHandler(BaseHTTPRequestHandler):
    """Adapts http.server requests to the boardsync handlers."""

    routes: dict = {}

    def handle(self):
        try:
            super().handle()
        except BrokenPipeError:
            pass

    def finish(self):
        try:
            super().finish()
        except BrokenPipeError:
            pass

    def _serve(self):
        content_length = int(self.headers.get('Content-Length', 0) or 0)
        body = self.rfile.read(content_length).decode('utf-8') if content_length else ""
        parts = urlsplit(self.path)

        request = Request.from_raw(self.command, body, parts.query)
        response = dispatch(self.routes, parts.path, request)

        payload = response.body.encode('utf-8')
        try:
            self.send_response(response.status)
            for name, value in response.headers.items():
                self.send_header(name, value)
            self.send_header('Content-Length', str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)
        except BrokenPipeError:
            return

    do_GET = _serve
    do_POST = _serve
    do_OPTIONS = _serve
    do_PUT = _serve
    do_DELETE = _serve

    def log_message(self, format, *args):
        """Route access logs through the structured logger."""
        logger.debug("server.request", detail=format % args)


class QuietHTTPServer(HTTPServer):
    """HTTP server that suppresses BrokenPipeError noise."""

    def handle_error(self, request, client_address):
        exc_type, exc, _ = sys.exc_info()
        if isinstance(exc, BrokenPipeError):
            return
        super().handle_error(request, client_address)


def run_server(port: int = 5000, config_path: str | None = None):
    """Run the webhook server."""
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    WebhookHandler.routes = build_routes(config)
    server = QuietHTTPServer(('0.0.0.0', port), WebhookHandler)

    print(f"boardsync Webhook Server")
    print(f"Listening on http://0.0.0.0:{port}")
    print(f"")
    print(f"Endpoints:")
    for name in WebhookHandler.routes:
        print(f"  - /{name}")
    print(f"")
    print(f"Press Ctrl+C to stop.\n")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
        server.shutdown()


def main():
    parser = argparse.ArgumentParser(description="boardsync Webhook Server")
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=5000,
        help="Port to listen on (default: 5000)"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to boardsync.yaml (default: $BOARDSYNC_CONFIG or config/boardsync.yaml)"
    )
    args = parser.parse_args()

    run_server(port=args.port, config_path=args.config)


if __name__ == "__main__":
    main()
