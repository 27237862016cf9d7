"""Shared services and FastAPI dependencies for the control API."""

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docker_control.core.config import Settings, get_settings
from docker_control.domain.errors import RateLimitedError, UnauthorizedError
from docker_control.services.container_service import ContainerService
from docker_control.services.docker_runtime import SocketDockerRuntime
from docker_control.services.engine_client import EngineSocketClient
from docker_control.services.rate_limiter import RateLimiter

security = HTTPBearer(auto_error=False)


@lru_cache
def get_container_service() -> ContainerService:
    settings = get_settings()
    client = EngineSocketClient(
        settings.SOCKET,
        api_version=settings.API_VERSION,
        timeout=settings.SOCKET_TIMEOUT,
    )
    return ContainerService(SocketDockerRuntime(client))


@lru_cache
def get_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(limit=settings.RATE_LIMIT, period=settings.RATE_PERIOD)


def client_identity(request: Request, header: str) -> str:
    """Peer address plus the identifying header, so clients behind one NAT differ."""
    address = request.client.host if request.client else "unknown"
    return f"{address}|{request.headers.get(header, '')}"


async def check_rate_limit(
    request: Request,
    settings: Settings = Depends(get_settings),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    identity = client_identity(request, settings.RATE_LIMIT_HEADER)
    if not rate_limiter.admit(identity):
        raise RateLimitedError(identity)


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    if credentials is None or not settings.TOKEN:
        raise UnauthorizedError()
    if not secrets.compare_digest(credentials.credentials.encode(), settings.TOKEN.encode()):
        raise UnauthorizedError()
