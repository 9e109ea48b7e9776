"""Standalone HTTP server for the broker API.

Runs the same routes as the Lambda handler on a plain host, backed by the
JSON-file state store. Requests are served on worker threads.
"""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from service_broker.core.dispatch import route_request
from service_broker.core.interfaces import CloudClient, StateStore

logger = logging.getLogger(__name__)


class BrokerRequestHandler(BaseHTTPRequestHandler):
    server: BrokerHTTPServer

    def do_GET(self):
        self._dispatch()

    def do_PUT(self):
        self._dispatch()

    def do_DELETE(self):
        self._dispatch()

    def do_POST(self):
        self._dispatch()

    def do_PATCH(self):
        self._dispatch()

    def _dispatch(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length) if content_length else b""
        path = self.path.split("?", 1)[0]

        result = route_request(
            self.command,
            path,
            body,
            dict(self.headers.items()),
            self.server.state,
            self.server.cloud,
            catalog_path=self.server.catalog_path,
            dashboard_url=self.server.dashboard_url,
            username=self.server.username,
            password=self.server.password,
        )
        self._respond(result["status_code"], result["body"], result.get("headers"))

    def _respond(self, status: int, body: dict, headers: dict | None = None):
        payload = json.dumps(body).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)


class BrokerHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(
        self,
        state: StateStore,
        cloud: CloudClient,
        catalog_path: str,
        host: str = "127.0.0.1",
        port: int = 0,
        dashboard_url: str = "http://dashbaord_url",
        username: str = "",
        password: str = "",
    ):
        super().__init__((host, port), BrokerRequestHandler)
        self.state = state
        self.cloud = cloud
        self.catalog_path = catalog_path
        self.dashboard_url = dashboard_url
        self.username = username
        self.password = password
        self.host = host
        self.port = self.server_address[1]  # actual port (0 = auto-assign)
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self):
        """Serve in a background thread."""
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._thread.start()

    def stop(self):
        self.shutdown()
        self.server_close()
        if self._thread:
            self._thread.join(timeout=5)
