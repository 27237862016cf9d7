from typing import Any, Dict, List, Optional, Protocol


class DockerRuntime(Protocol):
    async def list_containers(self) -> List[Dict[str, Any]]:
        """Raw engine listing of all containers, stopped ones included."""
        ...

    async def inspect(self, docker_id: str) -> Dict[str, Any]:
        """Raw engine inspect document of one container."""
        ...

    async def start(self, docker_id: str) -> None:
        ...

    async def stop(self, docker_id: str) -> None:
        ...

    async def restart(self, docker_id: str) -> None:
        ...

    async def logs(self, docker_id: str, tail: Optional[int] = None) -> str:
        """Combined stdout/stderr of a container as text."""
        ...
