"""Decoding of raw HTTP/1.1 responses read from the engine socket."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from docker_control.domain.errors import ProtocolError

logger = logging.getLogger(__name__)

_SEPARATOR = b"\r\n\r\n"
_CRLF = b"\r\n"


@dataclass
class RawResponse:
    """One response as read off the socket, split at the first blank line.

    Attributes:
        status_line: First line of the header block, e.g. ``HTTP/1.1 200 OK``.
        status: Status code from the status line, ``0`` if it is malformed.
        headers: Header fields, names lower-cased.
        body: Everything after the blank line, still transfer-encoded.
    """

    status_line: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_chunked(self) -> bool:
        return "chunked" in self.headers.get("transfer-encoding", "").lower()


def split_response(raw: bytes) -> RawResponse:
    sep_idx = raw.find(_SEPARATOR)
    if sep_idx == -1:
        raise ProtocolError(
            "Invalid response from Docker API",
            body=raw.decode("utf-8", errors="replace"),
        )

    header_text = raw[:sep_idx].decode("latin-1")
    lines = header_text.split("\r\n")
    status_line = lines[0]

    status_parts = status_line.split(" ", 2)
    try:
        status = int(status_parts[1])
    except (IndexError, ValueError):
        status = 0

    headers = {}
    for line in lines[1:]:
        if ":" in line:
            key, value = line.split(":", 1)
            headers[key.strip().lower()] = value.strip()

    return RawResponse(
        status_line=status_line,
        status=status,
        headers=headers,
        body=raw[sep_idx + len(_SEPARATOR):],
    )


def decode_chunked(data: bytes) -> bytes:
    """Decode an HTTP chunked transfer-encoded body.

    Best effort: decoding stops at the terminal zero-size chunk, at a chunk
    that runs past the end of ``data`` (the bytes decoded so far are
    returned), or at a size line that cannot be parsed after the first chunk.

    Raises:
        ValueError: If the very first size line is not hexadecimal, i.e. the
            body is not chunked at all.
    """
    decoded = bytearray()
    pos = 0
    while pos < len(data):
        crlf = data.find(_CRLF, pos)
        if crlf == -1:
            break

        # Chunk extensions (";name=value") are ignored
        size_str = data[pos:crlf].split(b";")[0].strip()
        try:
            chunk_size = int(size_str, 16)
        except ValueError:
            if pos == 0:
                raise ValueError(f"invalid chunk size line: {size_str[:32]!r}")
            logger.warning("Stopping chunked decode at unparsable size line %r", size_str[:32])
            break
        if chunk_size <= 0:
            break

        chunk_start = crlf + len(_CRLF)
        chunk_end = chunk_start + chunk_size
        if chunk_end > len(data):
            logger.warning(
                "Chunk of %d bytes truncated at %d bytes, returning %d decoded bytes",
                chunk_size, len(data) - chunk_start, len(decoded),
            )
            break

        decoded.extend(data[chunk_start:chunk_end])
        pos = chunk_end + len(_CRLF)

    return bytes(decoded)


def extract_json(body: str) -> Any:
    """Parse the JSON document in ``body``, skipping anything before it.

    A blank body is an empty object. Leading bytes before the first ``{``
    or ``[`` are dropped.
    """
    if body.strip() == "":
        return {}

    document = body
    starts = [idx for idx in (body.find("{"), body.find("[")) if idx >= 0]
    if starts:
        document = body[min(starts):]

    try:
        return json.loads(document)
    except json.JSONDecodeError as e:
        logger.error("Error parsing JSON from Docker API: %s. Body: %r", e, body)
        raise ProtocolError(f"Invalid JSON from Docker API: {e}", body=body) from e


def parse_response(
    raw: bytes,
    *,
    expect_empty_response: bool = False,
    raw_response: bool = False,
) -> Any:
    """Turn a full raw response into a JSON value or text.

    Args:
        raw: The complete bytes read from the socket.
        expect_empty_response: Return ``{}`` without looking at the body.
        raw_response: Return the body as text instead of parsing JSON.

    Raises:
        ProtocolError: On a missing header/body separator, a body that is
            not chunked although announced as such, or invalid JSON.
    """
    response = split_response(raw)
    if response.status >= 400:
        logger.warning("Docker API answered %r", response.status_line)

    if expect_empty_response or response.status == 204:
        return {}

    body = response.body
    if response.is_chunked:
        try:
            body = decode_chunked(body)
        except ValueError as e:
            logger.error("Error parsing chunked response: %s", e)
            raise ProtocolError(
                "Failed to parse chunked response",
                body=body.decode("utf-8", errors="replace"),
            ) from e

    text = body.decode("utf-8", errors="replace")
    if raw_response:
        return text

    return extract_json(text)
