from pydantic import BaseModel, Field
from typing import Optional


class ContainerStatusSummary(BaseModel):
    id: str
    name: str
    health: str
    status: str
    started: Optional[int] = Field(None, description="Start time in epoch milliseconds, running containers only")


class ContainerStatusDetail(BaseModel):
    id: str
    name: str
    health: str = Field(..., description="Healthcheck status, or the container state without a healthcheck")
    status: str
    startTimestamp: Optional[int] = Field(None, description="Start time in epoch milliseconds")
    state: str
    image: str
    created: int = Field(..., description="Creation time in epoch seconds")


class ActionResponse(BaseModel):
    success: bool
    message: str


class ErrorResponse(BaseModel):
    error: str
