"""Error hierarchy for Docker Control.

Each error maps to one HTTP status at the API boundary (see ``main.py``):

- TransportError: 500, the engine socket could not be used
- ProtocolError: 500, the engine answered something we cannot decode
- NotFoundError: 404
- InvalidAssociationError: 400
- RateLimitedError: 429
- UnauthorizedError: 401
"""

from typing import Optional


class DockerControlError(Exception):
    """Base error for all Docker Control errors."""

    status_code: int = 500


class TransportError(DockerControlError):
    """The engine socket is unreachable, timed out, or sent nothing back."""


class ProtocolError(DockerControlError):
    """The engine response could not be framed or decoded.

    Attributes:
        body: The offending response body, kept for diagnosis. Never sent
            to API callers.
    """

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message)
        self.body = body


class NotFoundError(DockerControlError):
    status_code = 404


class InvalidAssociationError(DockerControlError):
    status_code = 400

    def __init__(self, association: str):
        super().__init__("Invalid association parameter. Use 'id' or 'name'.")
        self.association = association


class RateLimitedError(DockerControlError):
    status_code = 429

    def __init__(self, identity: str):
        super().__init__("Too Many Requests")
        self.identity = identity


class UnauthorizedError(DockerControlError):
    status_code = 401

    def __init__(self):
        super().__init__("Unauthorized")
