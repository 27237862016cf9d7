from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from typing import Any, Dict, List

from docker_control.api.dependencies import get_container_service
from docker_control.services.container_service import ContainerService
from docker_control.schemas.container import (
    ActionResponse,
    ContainerStatusDetail,
    ContainerStatusSummary,
    ErrorResponse,
)

router = APIRouter(tags=["containers"])

_lookup_errors = {
    400: {"model": ErrorResponse, "description": "Association is neither 'id' nor 'name'"},
    404: {"model": ErrorResponse, "description": "No container matches"},
}


@router.get("/containers", summary="Engine listing of all containers")
async def list_containers(
    service: ContainerService = Depends(get_container_service),
) -> List[Dict[str, Any]]:
    return await service.list_containers()


@router.get("/names", response_model=List[str])
async def list_container_names(service: ContainerService = Depends(get_container_service)):
    return await service.container_names()


@router.get("/status", response_model=List[ContainerStatusSummary])
async def list_container_status(service: ContainerService = Depends(get_container_service)):
    return await service.containers_status()


# ---------- Control ----------

@router.api_route(
    "/control/{association}/{value}/start",
    methods=["GET", "POST"],
    response_model=ActionResponse,
    responses=_lookup_errors,
)
async def start_container(
    association: str,
    value: str,
    service: ContainerService = Depends(get_container_service),
):
    return await service.start_container(association, value)


@router.api_route(
    "/control/{association}/{value}/stop",
    methods=["GET", "POST"],
    response_model=ActionResponse,
    responses=_lookup_errors,
)
async def stop_container(
    association: str,
    value: str,
    service: ContainerService = Depends(get_container_service),
):
    return await service.stop_container(association, value)


@router.api_route(
    "/control/{association}/{value}/restart",
    methods=["GET", "POST"],
    response_model=ActionResponse,
    responses=_lookup_errors,
)
async def restart_container(
    association: str,
    value: str,
    service: ContainerService = Depends(get_container_service),
):
    return await service.restart_container(association, value)


@router.get(
    "/control/{association}/{value}/logs",
    response_class=PlainTextResponse,
    responses=_lookup_errors,
)
async def container_logs(
    association: str,
    value: str,
    tail: int | None = Query(None, ge=0, description="Number of lines from the end of the logs"),
    service: ContainerService = Depends(get_container_service),
):
    return await service.container_logs(association, value, tail)


@router.get(
    "/control/{association}/{value}/status",
    response_model=ContainerStatusDetail,
    responses=_lookup_errors,
)
async def container_status(
    association: str,
    value: str,
    service: ContainerService = Depends(get_container_service),
):
    return await service.container_status(association, value)
