"""
HTTPS listener for the admission webhook.

Each connection is served on its own thread; the only state shared between
them is the handler's read-only policy and codec.
"""

from __future__ import annotations

import logging
import ssl
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from .config import DEFAULT_MAX_BODY_BYTES, Settings
from .handler import BAD_REQUEST, AdmissionHandler, HandlerResponse

logger = logging.getLogger(__name__)

REQUEST_ENTITY_TOO_LARGE = 413
READ_CHUNK_BYTES = 64 * 1024


class BodyTooLarge(Exception):
    """The request body exceeds the configured limit."""


class AdmissionRequestHandler(BaseHTTPRequestHandler):
    """HTTP handler passing POSTed AdmissionReviews to an AdmissionHandler."""

    admission_handler: AdmissionHandler
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    def log_message(self, format, *args):
        """Override to use proper logging."""
        logger.info(format % args)

    def _discard(self, length: int):
        while length > 0:
            chunk = self.rfile.read(min(length, READ_CHUNK_BYTES))
            if not chunk:
                return
            length -= len(chunk)

    def _read_chunked(self) -> bytes:
        """Read a Transfer-Encoding: chunked body, draining it when too large."""
        parts = []
        size = 0
        while True:
            line = self.rfile.readline(READ_CHUNK_BYTES)
            chunk_size = int(line.split(b";", 1)[0].strip() or b"0", 16)
            if chunk_size == 0:
                # trailer section ends with an empty line
                while self.rfile.readline(READ_CHUNK_BYTES).strip():
                    pass
                break
            size += chunk_size
            if size > self.max_body_bytes:
                self._discard(chunk_size)
            else:
                parts.append(self.rfile.read(chunk_size))
            self.rfile.readline(READ_CHUNK_BYTES)
        if size > self.max_body_bytes:
            raise BodyTooLarge(size)
        return b"".join(parts)

    def _read_body(self) -> bytes:
        if "chunked" in self.headers.get("Transfer-Encoding", "").lower():
            return self._read_chunked()
        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            return b""
        if length <= 0:
            return b""
        if length > self.max_body_bytes:
            self._discard(length)
            raise BodyTooLarge(length)
        return self.rfile.read(length)

    def _write(self, result: HandlerResponse):
        self.send_response(result.status)
        self.send_header("Content-Type", result.content_type)
        self.send_header("Content-Length", str(len(result.body)))
        self.end_headers()
        try:
            self.wfile.write(result.body)
        except OSError as e:
            logger.error("Can't write response: %s", e)

    def do_POST(self):
        try:
            body = self._read_body()
        except BodyTooLarge as e:
            logger.error("request body of %s bytes exceeds limit of %s", e, self.max_body_bytes)
            self._write(
                HandlerResponse.error(
                    REQUEST_ENTITY_TOO_LARGE,
                    f"request body exceeds {self.max_body_bytes} bytes",
                )
            )
            return
        except ValueError as e:
            logger.error("malformed chunked body: %s", e)
            self._write(HandlerResponse.error(BAD_REQUEST, "malformed chunked body"))
            return
        self._write(self.admission_handler.handle(self.command, self.path, self.headers, body))


def _request_handler_class(
    admission_handler: AdmissionHandler, max_body_bytes: int
) -> type[AdmissionRequestHandler]:
    return type(
        "BoundAdmissionRequestHandler",
        (AdmissionRequestHandler,),
        {"admission_handler": admission_handler, "max_body_bytes": max_body_bytes},
    )


class WebhookServer:
    """Manages the webhook server lifecycle."""

    def __init__(self, settings: Settings, admission_handler: AdmissionHandler):
        self.settings = settings
        self.admission_handler = admission_handler
        self.server: Optional[ThreadingHTTPServer] = None
        self.thread: Optional[threading.Thread] = None

    def _bind(self) -> ThreadingHTTPServer:
        server = ThreadingHTTPServer(
            (self.settings.host, self.settings.port),
            _request_handler_class(self.admission_handler, self.settings.max_body_bytes),
        )
        if self.settings.tls_enabled:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            context.load_cert_chain(self.settings.cert_file, self.settings.key_file)
            server.socket = context.wrap_socket(server.socket, server_side=True)
            logger.info("Webhook server configured with TLS")
        else:
            logger.warning("No TLS certificate configured, serving plain HTTP")
        self.server = server
        return server

    def start(self):
        """Start the webhook server in a background thread."""
        server = self._bind()
        self.thread = threading.Thread(target=server.serve_forever, daemon=True)
        self.thread.start()
        logger.info("Webhook server started on %s", self.url)

    def serve_forever(self):
        """Serve in the calling thread until interrupted."""
        server = self._bind()
        logger.info("Webhook server listening on %s", self.url)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Received interrupt, shutting down")
        finally:
            server.server_close()

    def stop(self):
        """Stop the webhook server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            logger.info("Webhook server stopped")
        if self.thread:
            self.thread.join()

    @property
    def port(self) -> int:
        if self.server is not None:
            return self.server.server_address[1]
        return self.settings.port

    @property
    def url(self) -> str:
        """Get the server URL."""
        protocol = "https" if self.settings.tls_enabled else "http"
        return f"{protocol}://{self.settings.host}:{self.port}"
