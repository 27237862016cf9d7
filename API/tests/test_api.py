# tests/test_api.py
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from docker_control.main import app
from docker_control.api.dependencies import get_container_service, get_rate_limiter
from docker_control.core.config import Settings, get_settings
from docker_control.domain.errors import ProtocolError, TransportError
from docker_control.services.container_service import ContainerService
from docker_control.services.rate_limiter import RateLimiter

WEB_ID = "3f4e5a6b7c8d" + "a" * 52
AUTH = {"Authorization": "Bearer secret"}


@pytest.fixture
def docker_runtime():
    runtime = AsyncMock()
    runtime.list_containers = AsyncMock(return_value=[
        {
            "Id": WEB_ID,
            "Names": ["/web"],
            "Image": "nginx:latest",
            "State": "running",
            "Status": "Up 2 hours",
            "Created": 1700000000,
            "Ports": [],
            "Labels": {},
        }
    ])
    runtime.inspect = AsyncMock(return_value={"State": {"StartedAt": "2024-01-02T03:04:05Z"}})
    return runtime


@pytest.fixture
def rate_limiter():
    return RateLimiter(limit=5, period=60)


@pytest.fixture
def client(docker_runtime, rate_limiter):
    app.dependency_overrides[get_settings] = lambda: Settings(TOKEN="secret")
    app.dependency_overrides[get_container_service] = lambda: ContainerService(docker_runtime)
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


# -------------------------------
# Listing
# -------------------------------

def test_list_containers_passes_engine_listing(client, docker_runtime):
    response = client.get("/containers", headers=AUTH)

    assert response.status_code == 200
    assert response.json()[0]["Id"] == WEB_ID


def test_names(client):
    response = client.get("/names", headers=AUTH)
    assert response.json() == ["web"]


def test_status(client):
    response = client.get("/status", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == [
        {"id": WEB_ID, "name": "web", "health": "running", "status": "Up 2 hours", "started": 1704164645000}
    ]


# -------------------------------
# Control
# -------------------------------

@pytest.mark.parametrize("method", ["GET", "POST"])
def test_start_by_name(client, docker_runtime, method):
    response = client.request(method, "/control/name/web/start", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": f"Container 'web' ({WEB_ID[:12]}) started successfully",
    }
    docker_runtime.start.assert_awaited_once_with(WEB_ID)


def test_stop_by_id_prefix(client, docker_runtime):
    response = client.post(f"/control/id/{WEB_ID[:12]}/stop", headers=AUTH)

    assert response.status_code == 200
    docker_runtime.stop.assert_awaited_once_with(WEB_ID)


def test_unknown_container_is_404(client, docker_runtime):
    response = client.post("/control/name/ghost/restart", headers=AUTH)

    assert response.status_code == 404
    assert response.json() == {"error": "Container with name 'ghost' not found"}
    docker_runtime.restart.assert_not_awaited()


def test_invalid_association_is_400(client):
    response = client.get("/control/label/web/status", headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid association parameter. Use 'id' or 'name'."}


def test_logs_are_plain_text(client, docker_runtime):
    docker_runtime.logs = AsyncMock(return_value="hello\nworld\n")

    response = client.get("/control/name/web/logs?tail=2", headers=AUTH)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "hello\nworld\n"
    docker_runtime.logs.assert_awaited_once_with(WEB_ID, 2)


def test_container_status(client):
    response = client.get("/control/name/web/status", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["startTimestamp"] == 1704164645000
    assert body["health"] == "running"
    assert body["created"] == 1700000000


# -------------------------------
# Errors
# -------------------------------

def test_transport_error_is_generic_500(client, docker_runtime):
    docker_runtime.list_containers = AsyncMock(
        side_effect=TransportError("Cannot connect to Docker socket at /var/run/docker.sock")
    )

    response = client.get("/containers", headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}


def test_protocol_error_does_not_leak_body(client, docker_runtime):
    docker_runtime.inspect = AsyncMock(side_effect=ProtocolError("Invalid JSON", body="secret-ish body"))

    response = client.get("/control/name/web/status", headers=AUTH)

    assert response.status_code == 500
    assert "secret-ish" not in response.text


def test_error_object_listing_is_500_not_404(client, docker_runtime):
    docker_runtime.list_containers = AsyncMock(side_effect=ProtocolError(
        "Unexpected container listing from Docker API", body="{'message': 'daemon error'}"
    ))

    response = client.post("/control/name/web/start", headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}
    docker_runtime.start.assert_not_awaited()


def test_unexpected_error_is_500(client, docker_runtime):
    docker_runtime.list_containers = AsyncMock(side_effect=RuntimeError("boom"))

    response = client.get("/names", headers=AUTH)

    assert response.status_code == 500
    assert "boom" not in response.text


def test_unknown_path(client):
    response = client.get("/nope", headers=AUTH)

    assert response.status_code == 404
    assert response.text == "API path '/nope' not found"



def test_unknown_path_post(client):
    response = client.post("/v1/images/create", headers=AUTH)

    assert response.status_code == 404
    assert response.text == "API path '/v1/images/create' not found"

# -------------------------------
# Auth / rate limiting
# -------------------------------

@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "Basic secret"}])
def test_unauthorized(client, docker_runtime, headers):
    response = client.get("/containers", headers=headers)

    assert response.status_code == 401
    assert response.text == "Unauthorized"
    docker_runtime.list_containers.assert_not_awaited()


def test_rate_limited_after_limit(client, docker_runtime):
    statuses = [client.get("/names", headers=AUTH).status_code for _ in range(6)]

    assert statuses == [200] * 5 + [429]
    assert docker_runtime.list_containers.await_count == 5


def test_rate_limit_identity_uses_forwarded_header(client, rate_limiter):
    for _ in range(5):
        client.get("/names", headers=AUTH)

    blocked = client.get("/names", headers=AUTH)
    other = client.get("/names", headers={**AUTH, "X-Forwarded-For": "192.168.1.20"})

    assert blocked.status_code == 429
    assert blocked.text == "Too Many Requests"
    assert other.status_code == 200
    assert rate_limiter.get("testclient|192.168.1.20").count == 1


def test_unknown_path_requires_auth(client):
    response = client.get("/nope")

    assert response.status_code == 401
    assert response.text == "Unauthorized"


def test_unknown_paths_count_toward_rate_limit(client, docker_runtime, rate_limiter):
    statuses = [client.get(f"/scan/{i}", headers=AUTH).status_code for i in range(5)]
    blocked = client.get("/names", headers=AUTH)

    assert statuses == [404] * 5
    assert blocked.status_code == 429
    assert rate_limiter.get("testclient|").count == 6
    docker_runtime.list_containers.assert_not_awaited()
