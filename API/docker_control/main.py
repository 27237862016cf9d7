import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from docker_control.api import containers
from docker_control.api.dependencies import check_rate_limit, get_rate_limiter, verify_token
from docker_control.core.config import get_settings
from docker_control.domain.errors import (
    DockerControlError,
    InvalidAssociationError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)

logger = logging.getLogger("docker_control")


# ---------- Startup / Shutdown ----------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    rate_limiter = get_rate_limiter()
    rate_limiter.start_eviction_loop(settings.RATE_SWEEP_INTERVAL)
    logger.info("Docker Control using engine socket %s", settings.SOCKET)
    yield
    await rate_limiter.stop_eviction_loop()


app = FastAPI(
    title="Docker Control",
    lifespan=lifespan,
    dependencies=[Depends(check_rate_limit), Depends(verify_token)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(containers.router)


# Registered last so unknown paths pass through auth and rate limiting too
@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"],
    include_in_schema=False,
)
async def unknown_path(request: Request):
    return PlainTextResponse(f"API path '{request.url.path}' not found", status_code=404)


# ---------- Error mapping ----------

@app.exception_handler(RateLimitedError)
async def rate_limited_handler(request: Request, exc: RateLimitedError):
    return PlainTextResponse("Too Many Requests", status_code=exc.status_code)


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    return PlainTextResponse("Unauthorized", status_code=exc.status_code)


@app.exception_handler(InvalidAssociationError)
@app.exception_handler(NotFoundError)
async def lookup_error_handler(request: Request, exc: DockerControlError):
    logger.info("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


@app.exception_handler(DockerControlError)
async def docker_control_error_handler(request: Request, exc: DockerControlError):
    body = getattr(exc, "body", None)
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    if body is not None:
        logger.error("Offending Docker API body: %r", body)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return PlainTextResponse(f"API path '{request.url.path}' not found", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def run() -> None:
    """Console entry point: check the environment, then serve with uvicorn."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    if not settings.TOKEN:
        logger.error("DOCKER_CONTROL_TOKEN is not set in the environment variables.")
        sys.exit(1)
    if not settings.SOCKET.exists():
        logger.error("Socket not found at %s", settings.SOCKET)
        sys.exit(1)

    logger.info("Docker Control is running at http://127.0.0.1:%d", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
