"""
HTTP(S) listener for the admission webhook.

Routes:
    POST /mutate (or /)  AdmissionReview in, AdmissionReview out
    GET  /healthz        health check
    GET  /metrics        request counters
"""
import json
import logging
import ssl
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional

from prometheus_client import CONTENT_TYPE_LATEST

from .handler import Handler
from .metrics import Metrics

logger = logging.getLogger(__name__)

MUTATE_PATHS = ("/", "/mutate")


class InjectHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, server_address, handler: Handler, metrics: Metrics):
        super().__init__(server_address, AdmissionWebhookHandler)
        self.handler = handler
        self.metrics = metrics


class AdmissionWebhookHandler(BaseHTTPRequestHandler):
    """HTTP handler for Kubernetes admission webhook requests."""

    server: InjectHTTPServer

    def log_message(self, format, *args):
        """Override to use proper logging."""
        logger.info(format % args)

    def do_GET(self):
        if self.path == "/healthz":
            self._send(200, b"ok", "text/plain")
        elif self.path == "/metrics":
            self._send(200, self.server.metrics.metrics_text(), CONTENT_TYPE_LATEST)
        else:
            self._send_json(404, {"error": f"Not found: {self.path}"})

    def do_POST(self):
        """Handle POST requests with AdmissionReview."""
        if self.path not in MUTATE_PATHS:
            self._send_json(404, {"error": f"Not found: {self.path}"})
            return

        raw_length = self.headers.get("Content-Length")
        try:
            content_length = int(raw_length or 0)
        except ValueError:
            logger.warning(f"Rejecting call: invalid Content-Length {raw_length!r}")
            status, response = 400, {"error": f"Invalid Content-Length header: {raw_length!r}"}
            self.server.metrics.record(status, response)
            self._send_json(status, response)
            return
        body = self.rfile.read(content_length) if content_length > 0 else b""

        status, response = self.server.handler.handle(body, self.headers.get("Content-Type"))
        self.server.metrics.record(status, response)
        self._send_json(status, response)

        if status == 200:
            logger.info(
                f"Sent response for {response['response']['uid']}: "
                f"allowed={response['response']['allowed']}"
            )

    def _send_json(self, status: int, document: dict[str, Any]):
        self._send(status, json.dumps(document).encode(), "application/json")

    def _send(self, status: int, payload: bytes, content_type: str):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)


class WebhookServer:
    """Manages the webhook server lifecycle."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 8080,
        cert_file: Optional[str] = None,
        key_file: Optional[str] = None,
        handler: Optional[Handler] = None,
        metrics: Optional[Metrics] = None,
    ):
        self.host = host
        self.port = port
        self.cert_file = cert_file
        self.key_file = key_file
        self.handler = handler or Handler()
        self.metrics = metrics or Metrics()
        self.server: Optional[InjectHTTPServer] = None
        self.thread: Optional[threading.Thread] = None

    def _bind(self) -> InjectHTTPServer:
        server = InjectHTTPServer((self.host, self.port), self.handler, self.metrics)
        # Port 0 asks the OS for a free port.
        self.port = server.server_address[1]

        if self.cert_file and self.key_file:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            context.load_cert_chain(self.cert_file, self.key_file)
            server.socket = context.wrap_socket(server.socket, server_side=True)
            logger.info("Webhook server configured with SSL")
        return server

    def start(self):
        """Start the webhook server in a background thread."""
        self.server = self._bind()
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        logger.info(f"Webhook server started on {self.host}:{self.port}")

    def serve_forever(self):
        """Run the webhook server in the calling thread until interrupted."""
        self.server = self._bind()
        logger.info(f"Listening on {self.url}")
        try:
            self.server.serve_forever()
        finally:
            self.server.server_close()

    def stop(self):
        """Stop the webhook server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            logger.info("Webhook server stopped")

    @property
    def url(self) -> str:
        """Get the server URL."""
        protocol = "https" if self.cert_file else "http"
        return f"{protocol}://{self.host}:{self.port}"
