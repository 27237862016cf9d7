from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Start timestamp the engine reports for containers that never ran
NEVER_STARTED = "0001-01-01T00:00:00Z"


@dataclass
class PortMapping:
    private_port: int
    type: str
    ip: Optional[str] = None
    public_port: Optional[int] = None


@dataclass
class Container:
    id: str
    names: List[str]
    image: str
    state: str
    status: str
    created: int
    image_id: str = ""
    command: str = ""
    ports: List[PortMapping] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """First alias without the leading slash."""
        return self.names[0].lstrip("/") if self.names else ""

    @property
    def short_id(self) -> str:
        return self.id[:12]

    def has_name(self, name: str) -> bool:
        target = name.lstrip("/")
        return bool(target) and any(n.lstrip("/") == target for n in self.names)

    def matches_id(self, container_id: str) -> bool:
        return bool(container_id) and self.id.startswith(container_id)

    @classmethod
    def from_engine(cls, data: Dict[str, Any]) -> "Container":
        """Build from one entry of the engine's ``/containers/json`` listing."""
        return cls(
            id=data["Id"],
            names=list(data.get("Names") or []),
            image=data.get("Image", ""),
            state=data.get("State", ""),
            status=data.get("Status", ""),
            created=int(data.get("Created", 0)),
            image_id=data.get("ImageID", ""),
            command=data.get("Command", ""),
            ports=[
                PortMapping(
                    private_port=p.get("PrivatePort", 0),
                    type=p.get("Type", "tcp"),
                    ip=p.get("IP"),
                    public_port=p.get("PublicPort"),
                )
                for p in data.get("Ports") or []
            ],
            labels=dict(data.get("Labels") or {}),
        )
