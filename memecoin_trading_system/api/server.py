"""Minimal read-only HTTP endpoint exposing pipeline status."""

from __future__ import annotations

import json
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, List, Tuple
from urllib.parse import parse_qs, urlparse

StatusPayload = Dict[str, object]
StatusProvider = Callable[[], StatusPayload]
NotificationProvider = Callable[[int], List[Dict[str, object]]]


def _make_handler(
    status_provider: StatusProvider,
    notification_provider: NotificationProvider,
) -> type[BaseHTTPRequestHandler]:
    class StatusHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler contract)
            parsed = urlparse(self.path)
            path = parsed.path.rstrip('/')
            if path == '/api/status':
                payload: object = status_provider()
            elif path == '/api/notifications':
                query = parse_qs(parsed.query)
                try:
                    limit = int(query.get('limit', ['20'])[0])
                except ValueError:
                    self.send_error(HTTPStatus.BAD_REQUEST, 'limit must be an integer')
                    return
                payload = {'notifications': notification_provider(limit)}
            else:
                self.send_error(HTTPStatus.NOT_FOUND)
                return
            body = json.dumps(payload, default=str).encode('utf-8')
            self.send_response(HTTPStatus.OK)
            self.send_header('Content-Type', 'application/json')
            self.send_header('Content-Length', str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args) -> None:  # noqa: A003 (shadow builtins)
            return

    return StatusHandler


def serve_status_api(
    status_provider: StatusProvider,
    notification_provider: NotificationProvider,
    host: str = '127.0.0.1',
    port: int = 8000,
) -> Tuple[ThreadingHTTPServer, threading.Thread]:
    """Start the status API in a background thread."""
    handler = _make_handler(status_provider, notification_provider)
    server = ThreadingHTTPServer((host, port), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, thread


__all__ = ['serve_status_api']
