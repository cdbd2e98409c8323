import json
import threading
import time
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler
from typing import Self

from requests.structures import CaseInsensitiveDict

from src.utils.crypto import verify_signature
from src.webhook_client.signer import SIGNATURE_HEADER


class _WebhookHandler(BaseHTTPRequestHandler):
    """HTTP request handler for receiving webhooks and answering the OPTIONS handshake."""

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)

        server_config = self.server.config  # type: ignore[attr-defined]

        if server_config["trickle"]:
            self._record(server_config, "POST", body)
            self._trickle(**server_config["trickle"])
            return

        # Simulate slow response
        if server_config["response_delay"] > 0:
            time.sleep(server_config["response_delay"])

        # Signature verification
        if server_config["signature_secret"]:
            sig = self.headers.get(SIGNATURE_HEADER, "")
            if not sig:
                self._send_json(401, {"error": "missing signature"})
                return
            if not verify_signature("sha256", server_config["signature_secret"], body, sig):
                self._send_json(401, {"error": "invalid signature"})
                return

        self._record(server_config, "POST", body)

        code = server_config["response_code"]
        if 200 <= code < 300 and code != 204:
            self._send_json(code, {"status": "ok"})
        else:
            self.send_response(code)
            self.end_headers()

    def do_OPTIONS(self):
        server_config = self.server.config  # type: ignore[attr-defined]

        if server_config["response_delay"] > 0:
            time.sleep(server_config["response_delay"])

        self._record(server_config, "OPTIONS", b"")

        self.send_response(server_config["options_response_code"])
        for name, value in server_config["handshake_headers"].items():
            if value is not None:
                self.send_header(name, value)
        self.end_headers()

    def _record(self, server_config: dict, method: str, body: bytes) -> None:
        with server_config["lock"]:
            server_config["received_requests"].append({
                "method": method,
                "headers": CaseInsensitiveDict(self.headers.items()),
                "body": body,
            })

    def _trickle(self, interval: float, count: int, phase: str) -> None:
        """Answer 200 one byte or header line at a time, each within ``interval``."""
        try:
            self.send_response(200)
            if phase == "headers":
                for _ in range(count):
                    self.flush_headers()
                    time.sleep(interval)
                    self.send_header("X-Pad", "x")
                self.end_headers()
            else:
                self.send_header("Content-Length", str(count))
                self.end_headers()
                for _ in range(count):
                    time.sleep(interval)
                    self.wfile.write(b"x")
        except OSError:
            # Client hung up mid-response
            return

    def _send_json(self, code: int, payload: dict) -> None:
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


class WebhookReceiverServer:
    """Configurable HTTP server that plays the webhook endpoint."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, secret: bytes | None = None):
        self._host = host
        self._port = port
        self._config = {
            "response_code": 200,
            "options_response_code": 200,
            "response_delay": 0,
            "trickle": None,
            "signature_secret": secret,
            "handshake_headers": {
                "WebHook-Allowed-Origin": "*",
                "WebHook-Allowed-Rate": None,
                "Allow": "POST, OPTIONS",
            },
            "received_requests": [],
            "lock": threading.Lock(),
        }
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def set_response_code(self, code: int) -> Self:
        self._config["response_code"] = code
        return self

    def set_options_response_code(self, code: int) -> Self:
        self._config["options_response_code"] = code
        return self

    def set_response_delay(self, seconds: float) -> Self:
        self._config["response_delay"] = seconds
        return self

    def set_trickle(self, interval: float | None, count: int = 10, phase: str = "headers") -> Self:
        """Answer POSTs slowly: ``count`` header lines (or body bytes, with phase="body"), one per ``interval``.

        An ``interval`` of None restores normal responses.
        """
        if interval is None:
            self._config["trickle"] = None
        else:
            self._config["trickle"] = {"interval": interval, "count": count, "phase": phase}
        return self

    def set_handshake_header(self, name: str, value: str | None) -> Self:
        """Set (or with None, omit) a header returned from OPTIONS."""
        self._config["handshake_headers"][name] = value
        return self

    def enable_signature_verification(self, secret: bytes) -> Self:
        self._config["signature_secret"] = secret
        return self

    def start(self) -> None:
        self._server = ThreadingHTTPServer((self._host, self._port), _WebhookHandler)
        self._server.config = self._config  # type: ignore[attr-defined]
        # Get the actual port (useful when port=0)
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}/webhook"

    @property
    def port(self) -> int:
        return self._port

    def get_received_requests(self, method: str | None = None) -> list[dict]:
        with self._config["lock"]:
            received = list(self._config["received_requests"])
        if method is None:
            return received
        return [r for r in received if r["method"] == method]

    def get_processed_count(self) -> int:
        return len(self.get_received_requests("POST"))

    def clear(self) -> None:
        with self._config["lock"]:
            self._config["received_requests"].clear()
