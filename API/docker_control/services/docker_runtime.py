import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from docker_control.domain.errors import ProtocolError
from docker_control.domain.ports import DockerRuntime
from docker_control.services.engine_client import EngineSocketClient


class SocketDockerRuntime(DockerRuntime):
    """Engine endpoints over the raw socket client.

    Every call runs the blocking socket exchange in a worker thread, so
    concurrent requests use concurrent, independent connections.
    """

    def __init__(self, client: EngineSocketClient):
        self.client = client

    # -------------------------------
    # Queries
    # -------------------------------
    async def list_containers(self) -> List[Dict[str, Any]]:
        containers = await asyncio.to_thread(self.client.send, "/containers/json?all=true")
        if not isinstance(containers, list):
            raise ProtocolError("Unexpected container listing from Docker API", body=repr(containers))
        return containers

    async def inspect(self, docker_id: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.send, f"/containers/{docker_id}/json")

    async def logs(self, docker_id: str, tail: Optional[int] = None) -> str:
        params = {"stdout": "true", "stderr": "true"}
        if tail is not None:
            params["tail"] = str(tail)
        return await asyncio.to_thread(
            self.client.send,
            f"/containers/{docker_id}/logs?{urlencode(params)}",
            "GET",
            raw_response=True,
        )

    # -------------------------------
    # Container lifecycle
    # -------------------------------
    async def start(self, docker_id: str) -> None:
        await self._post_empty(f"/containers/{docker_id}/start")

    async def stop(self, docker_id: str) -> None:
        await self._post_empty(f"/containers/{docker_id}/stop")

    async def restart(self, docker_id: str) -> None:
        await self._post_empty(f"/containers/{docker_id}/restart")

    async def _post_empty(self, path: str) -> None:
        await asyncio.to_thread(self.client.send, path, "POST", expect_empty_response=True)
