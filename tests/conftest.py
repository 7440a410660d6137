"""Pytest configuration and shared fixtures."""

import asyncio
from unittest.mock import MagicMock, Mock

import pytest
from docker.errors import APIError

from launcher.common.models import ContainerSummary
from launcher.docker_handler.client import ContainerEngine


def make_api_error(status_code: int, explanation: str) -> APIError:
    """Build a daemon error response as the Docker SDK raises it."""
    response = Mock()
    response.status_code = status_code
    response.url = "http+docker://localhost/v1.43/containers/create"
    response.reason = "Error"
    return APIError(f"{status_code} Error", response=response, explanation=explanation)


class FakeEngine(ContainerEngine):
    """In-memory engine recording every call.

    ``errors`` maps an operation name ("list", "create", "start") to the
    exception that operation raises.
    """

    def __init__(self) -> None:
        self.containers: list[ContainerSummary] = []
        self.calls: list[tuple] = []
        self.errors: dict[str, BaseException] = {}
        self.closed = False

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.errors:
            raise self.errors[operation]

    def add_container(self, container_id: str, name: str, image: str = "nginx:latest") -> None:
        self.containers.append(
            ContainerSummary(id=container_id, names=[f"/{name}"], image=image, state="exited")
        )

    async def list_containers(self, all: bool = False) -> list[ContainerSummary]:
        self.calls.append(("list", all))
        await asyncio.sleep(0)
        self._maybe_fail("list")
        return list(self.containers)

    async def create_container(self, options, config) -> str:
        self.calls.append(("create", options, config))
        await asyncio.sleep(0)
        self._maybe_fail("create")
        name = f"/{options['name']}"
        if any(name in c.names for c in self.containers):
            raise make_api_error(
                409, f'Conflict. The container name "{name}" is already in use'
            )
        container_id = f"new-{len(self.containers) + 1}"
        self.containers.append(
            ContainerSummary(id=container_id, names=[name], image=config["Image"], state="created")
        )
        return container_id

    async def start_container(self, container_id: str) -> None:
        self.calls.append(("start", container_id))
        await asyncio.sleep(0)
        self._maybe_fail("start")

    async def close(self) -> None:
        self.closed = True

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_engine():
    """Create an empty in-memory engine."""
    return FakeEngine()


@pytest.fixture
def api_error():
    """Factory for Docker API errors."""
    return make_api_error


@pytest.fixture
def mock_docker_client():
    """Create a mock Docker client."""
    client = MagicMock()
    client.ping.return_value = True
    client.api.base_url = "http+docker://localhost"
    return client


@pytest.fixture
def mock_docker_from_env(monkeypatch, mock_docker_client):
    """Mock docker.from_env to return a mock client."""
    import docker

    def mock_from_env(*args, **kwargs):
        return mock_docker_client

    monkeypatch.setattr(docker, "from_env", mock_from_env)
    return mock_docker_client


@pytest.fixture
def mock_docker_client_class(monkeypatch, mock_docker_client):
    """Mock docker.DockerClient class."""
    import docker

    def mock_docker_client_init(*args, **kwargs):
        return mock_docker_client

    monkeypatch.setattr(docker, "DockerClient", mock_docker_client_init)
    return mock_docker_client


@pytest.fixture
def mock_container():
    """Create a mock sparse Docker container from a listing."""
    container = Mock()
    container.id = "abc123"
    container.attrs = {
        "Id": "abc123",
        "Names": ["/test-container"],
        "Image": "nginx:latest",
        "State": "running",
    }
    return container


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep settings tests independent of the caller's environment and .env."""
    for var in (
        "DOCKER_HOST",
        "PLATFORM",
        "DOCKER_TIMEOUT_SECONDS",
        "VERIFY_CONNECTION",
        "DOCKER_API_VERSION",
        "SERVER_HOST",
        "SERVER_PORT",
        "LOG_LEVEL",
        "LOG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
