"""HTTP entry point -- ``GET <route>`` returns a fresh token to browser callers.

Routing rules:

- ``OPTIONS`` on any path: CORS preflight, ``204`` with the allow headers.
- ``GET`` on ``settings.route``: :func:`~tokenbroker.service.issue_token`
  rendered as JSON.
- ``GET`` elsewhere: ``404``.
- Any other method: ``405``.

Every response carries ``Access-Control-Allow-Origin`` so that a page on
another origin can read it. The server is a
:class:`~http.server.ThreadingHTTPServer`; acquisitions share no state, so
concurrent callers are independent.
"""

from __future__ import annotations

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from tokenbroker.broker import TokenBroker
from tokenbroker.models import BrokerSettings
from tokenbroker.service import issue_token

logger = logging.getLogger(__name__)

ALLOW_METHODS = "GET,OPTIONS"
ALLOW_HEADERS = "Content-Type,Authorization"


def create_server(
    settings: BrokerSettings,
    host: str = "127.0.0.1",
    port: int = 8888,
    broker: Optional[TokenBroker] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ThreadingHTTPServer:
    """Build (but do not start) the token server.

    Args:
        settings: Resolved broker settings.
        host: Interface to bind.
        port: TCP port; ``0`` picks a free one.
        broker: Broker shared by all requests; built from *settings* when
            ``None``.
        env: Environment mapping for credential sources.

    Returns:
        A bound :class:`~http.server.ThreadingHTTPServer`. Call
        ``serve_forever()`` to run it.
    """
    token_broker = broker if broker is not None else TokenBroker(settings)

    class TokenHandler(BaseHTTPRequestHandler):
        def do_OPTIONS(self) -> None:
            self.send_response(204)
            self._send_cors_headers()
            self.send_header("Access-Control-Allow-Methods", ALLOW_METHODS)
            self.send_header("Access-Control-Allow-Headers", ALLOW_HEADERS)
            self.send_header("Content-Length", "0")
            self.end_headers()

        def do_GET(self) -> None:
            if urlparse(self.path).path != settings.route:
                self._send_json(404, {"error": "Not found"})
                return
            response = issue_token(settings, broker=token_broker, env=env)
            self._send_json(response.status_code, response.body)

        def do_POST(self) -> None:
            self._method_not_allowed()

        def do_PUT(self) -> None:
            self._method_not_allowed()

        def do_PATCH(self) -> None:
            self._method_not_allowed()

        def do_DELETE(self) -> None:
            self._method_not_allowed()

        def _method_not_allowed(self) -> None:
            self._send_json(405, {"error": "Method not allowed"}, allow=ALLOW_METHODS)

        def _send_cors_headers(self) -> None:
            self.send_header("Access-Control-Allow-Origin", settings.allow_origin)

        def _send_json(
            self, status: int, body: dict[str, Any], allow: Optional[str] = None
        ) -> None:
            payload = json.dumps(body).encode("utf-8")
            self.send_response(status)
            self._send_cors_headers()
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            if allow:
                self.send_header("Allow", allow)
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format: str, *args: Any) -> None:
            logger.info("%s - %s", self.address_string(), format % args)

    server = ThreadingHTTPServer((host, port), TokenHandler)
    server.daemon_threads = True
    return server


def serve(
    settings: BrokerSettings,
    host: str = "127.0.0.1",
    port: int = 8888,
) -> None:
    """Run the token server until interrupted."""
    server = create_server(settings, host=host, port=port)
    bound_host, bound_port = server.server_address[:2]
    logger.info("Serving tokens on http://%s:%s%s", bound_host, bound_port, settings.route)
    try:
        server.serve_forever()
    finally:
        server.server_close()
