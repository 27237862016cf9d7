"""Raw HTTP/1.1 client for the Docker engine Unix socket.

One connection per call: the request asks the engine to close the
connection after responding, and EOF marks the end of the response. No
keep-alive, no Content-Length framing on our side.
"""

import logging
import socket
from pathlib import Path
from typing import Any

from docker_control.domain.errors import TransportError
from docker_control.services.response_parser import parse_response

logger = logging.getLogger(__name__)

_BUFFER_SIZE = 4096
_DEFAULT_TIMEOUT = 30.0  # seconds


class EngineSocketClient:
    def __init__(
        self,
        socket_path: str | Path,
        api_version: str = "v1.41",
        timeout: float | None = _DEFAULT_TIMEOUT,
    ):
        self.socket_path = Path(socket_path)
        self.api_version = api_version.strip("/")
        self.timeout = timeout

    def build_request(self, path: str, method: str = "GET") -> bytes:
        request = (
            f"{method.upper()} /{self.api_version}{path} HTTP/1.1\r\n"
            "Host: localhost\r\n"
            "Connection: close\r\n"
            "\r\n"
        )
        return request.encode("latin-1")

    def send(
        self,
        path: str,
        method: str = "GET",
        *,
        expect_empty_response: bool = False,
        raw_response: bool = False,
    ) -> Any:
        """Send one request to the engine and return its decoded body.

        Args:
            path: Engine path without the version prefix, e.g. ``/containers/json``.
            method: HTTP method.
            expect_empty_response: The endpoint answers without content
                (start/stop/restart); the body is not parsed.
            raw_response: Return the body as text (logs) instead of JSON.

        Returns:
            ``{}`` for empty responses, a ``str`` for raw responses, the
            decoded JSON value otherwise.

        Raises:
            TransportError: If the socket cannot be reached or returns nothing.
            ProtocolError: If the response cannot be decoded.
        """
        logger.debug("%s %s via %s", method, path, self.socket_path)
        raw = self._send_raw(self.build_request(path, method))
        return parse_response(
            raw,
            expect_empty_response=expect_empty_response,
            raw_response=raw_response,
        )

    def _send_raw(self, data: bytes) -> bytes:
        chunks = []
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            try:
                sock.connect(str(self.socket_path))
            except OSError as e:
                raise TransportError(
                    f"Cannot connect to Docker socket at {self.socket_path}: {e}"
                ) from e

            try:
                sock.sendall(data)
                while True:
                    chunk = sock.recv(_BUFFER_SIZE)
                    if not chunk:
                        break
                    chunks.append(chunk)
            except socket.timeout as e:
                raise TransportError(
                    f"Docker socket timed out after {self.timeout}s"
                ) from e
            except OSError as e:
                raise TransportError(f"Docker socket I/O failed: {e}") from e
        finally:
            sock.close()

        raw = b"".join(chunks)
        if not raw:
            raise TransportError("Failed to read from Docker socket")
        return raw
