# docker_control/services/container_service.py
import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from docker_control.domain.container import NEVER_STARTED, Container
from docker_control.domain.errors import (
    DockerControlError,
    InvalidAssociationError,
    NotFoundError,
)
from docker_control.domain.ports import DockerRuntime

logger = logging.getLogger(__name__)

ASSOCIATIONS = ("id", "name")

# The engine reports nanoseconds, datetime stops at microseconds
_FRACTION = re.compile(r"\.(\d+)")


def parse_started_at(value: Optional[str]) -> Optional[int]:
    """Convert an engine ``StartedAt`` timestamp to epoch milliseconds.

    Returns None for a missing value, the never-started sentinel, or a
    timestamp that cannot be parsed.
    """
    if not value or value == NEVER_STARTED:
        return None
    normalized = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        started = datetime.fromisoformat(normalized)
    except ValueError:
        logger.warning("Unparsable StartedAt timestamp %r", value)
        return None
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return int(started.timestamp() * 1000)


class ContainerService:
    def __init__(self, docker_runtime: DockerRuntime):
        self.docker_runtime = docker_runtime

    # -------------------------------
    # Listing
    # -------------------------------
    async def list_containers(self) -> List[Dict[str, Any]]:
        """Engine listing, passed through as returned."""
        return await self.docker_runtime.list_containers()

    async def get_containers(self) -> List[Container]:
        return [Container.from_engine(c) for c in await self.docker_runtime.list_containers()]

    async def container_names(self) -> List[str]:
        return [c.name for c in await self.get_containers()]

    async def containers_status(self) -> List[Dict[str, Any]]:
        containers = await self.get_containers()
        running = [c for c in containers if c.state == "running"]
        details = await asyncio.gather(
            *(self.docker_runtime.inspect(c.id) for c in running),
            return_exceptions=True,
        )
        started_by_id: Dict[str, Optional[int]] = {}
        for container, detail in zip(running, details):
            if isinstance(detail, DockerControlError):
                logger.error("Error getting details for container %s: %s", container.id, detail)
                started_by_id[container.id] = container.created * 1000
            elif isinstance(detail, BaseException):
                raise detail
            else:
                state = detail.get("State") or {}
                started_by_id[container.id] = parse_started_at(state.get("StartedAt"))

        return [
            {
                "id": c.id,
                "name": c.name,
                "health": c.state,
                "status": c.status,
                "started": started_by_id.get(c.id),
            }
            for c in containers
        ]

    # -------------------------------
    # Lookup
    # -------------------------------
    async def find_container_by_id(self, container_id: str) -> Container | None:
        """Exact id, or the one container whose id starts with ``container_id``."""
        containers = await self.get_containers()
        for c in containers:
            if c.id == container_id:
                return c
        matches = [c for c in containers if c.matches_id(container_id)]
        if len(matches) > 1:
            logger.info("Id prefix %r is ambiguous (%d containers)", container_id, len(matches))
            return None
        return matches[0] if matches else None

    async def find_container_by_name(self, name: str) -> Container | None:
        for c in await self.get_containers():
            if c.has_name(name):
                return c
        return None

    async def resolve(self, association: str, value: str) -> Container:
        if association == "id":
            container = await self.find_container_by_id(value)
        elif association == "name":
            container = await self.find_container_by_name(value)
        else:
            raise InvalidAssociationError(association)

        if container is None:
            raise NotFoundError(f"Container with {association} '{value}' not found")
        return container

    # -------------------------------
    # Actions
    # -------------------------------
    async def start_container(self, association: str, value: str) -> Dict[str, Any]:
        container = await self.resolve(association, value)
        await self.docker_runtime.start(container.id)
        return self._action_result(container, "started")

    async def stop_container(self, association: str, value: str) -> Dict[str, Any]:
        container = await self.resolve(association, value)
        await self.docker_runtime.stop(container.id)
        return self._action_result(container, "stopped")

    async def restart_container(self, association: str, value: str) -> Dict[str, Any]:
        container = await self.resolve(association, value)
        await self.docker_runtime.restart(container.id)
        return self._action_result(container, "restarted")

    async def container_logs(self, association: str, value: str, tail: int | None = None) -> str:
        container = await self.resolve(association, value)
        return await self.docker_runtime.logs(container.id, tail)

    async def container_status(self, association: str, value: str) -> Dict[str, Any]:
        container = await self.resolve(association, value)
        details = await self.docker_runtime.inspect(container.id)
        state = details.get("State") or {}

        health = container.state
        if state.get("Health"):
            health = state["Health"].get("Status", health)

        return {
            "id": container.id,
            "name": container.name,
            "health": health,
            "status": container.status,
            "startTimestamp": parse_started_at(state.get("StartedAt")),
            "state": container.state,
            "image": container.image,
            "created": container.created,
        }

    def _action_result(self, container: Container, verb: str) -> Dict[str, Any]:
        message = f"Container '{container.name}' ({container.short_id}) {verb} successfully"
        logger.info(message)
        return {"success": True, "message": message}
