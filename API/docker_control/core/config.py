from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    TOKEN: str = Field(
        default="",
        description="Bearer token every request must present"
    )

    HOST: str = "0.0.0.0"
    PORT: int = 54320

    SOCKET: Path = Field(
        default=Path("/var/run/docker.sock"),
        description="Unix socket of the Docker engine"
    )

    API_VERSION: str = Field(
        default="v1.41",
        description="Engine API version used as path prefix"
    )

    SOCKET_TIMEOUT: float = Field(
        default=30.0,
        description="Connect/read timeout on the engine socket, in seconds"
    )

    RATE_LIMIT: int = 12  # one request every 5 seconds
    RATE_PERIOD: float = 60.0
    RATE_SWEEP_INTERVAL: float | None = Field(
        default=None,
        description="Seconds between sweeps of idle clients, defaults to RATE_PERIOD"
    )
    RATE_LIMIT_HEADER: str = Field(
        default="x-forwarded-for",
        description="Header combined with the peer address into the client identity"
    )

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DOCKER_CONTROL_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
