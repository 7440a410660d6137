"""Container engine adapter with connection management.

``ContainerEngine`` is the capability interface the runner drives. ``DockerEngine``
binds it to the Docker daemon through the Docker SDK.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any

import docker
from docker import DockerClient as _DockerClient
from docker.constants import DEFAULT_DOCKER_API_VERSION
from docker.errors import DockerException
from requests.exceptions import RequestException

from launcher.common.config import DockerSettings
from launcher.common.models import ContainerSummary

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ContainerEngine(ABC):
    """Operations the container runner needs from an engine, and nothing else.

    Implementations raise the engine's own errors unchanged; the runner
    converts them.
    """

    @abstractmethod
    async def list_containers(self, all: bool = False) -> list[ContainerSummary]:
        """List containers, including stopped ones when ``all`` is set."""
        pass

    @abstractmethod
    async def create_container(self, options: dict[str, Any], config: dict[str, Any]) -> str:
        """Create a container and return its ID.

        ``options`` holds the create parameters (``name``); ``config`` is the
        container create body.
        """
        pass

    @abstractmethod
    async def start_container(self, container_id: str) -> None:
        """Start a container with default options."""
        pass

    async def close(self) -> None:
        """Release the engine connection."""
        pass


class DockerEngine(ContainerEngine):
    """
    Docker binding of ``ContainerEngine``.

    One instance is shared by every request. SDK calls block, so each one runs
    on a worker thread.

    Parameters
    ----------
    base_url : str, optional
        Docker daemon URL (default: from environment)
    tls : Any, optional
        TLS configuration
    timeout : int
        Request timeout in seconds
    verify : bool
        Ping the daemon while connecting. When False no request is made until
        the first operation, and the API version is pinned unless given
    **kwargs : Any
        Additional Docker client parameters

    Examples
    --------
    >>> async def example():
    ...     async with DockerEngine() as engine:
    ...         containers = await engine.list_containers(all=True)
    ...         print(f"Found {len(containers)} containers")
    >>> asyncio.run(example())
    Found 0 containers
    """

    _client: _DockerClient | None = None

    def __init__(
        self,
        base_url: str | None = None,
        tls: Any | None = None,
        timeout: int = 60,
        verify: bool = True,
        **kwargs: Any,
    ) -> None:
        self.base_url = base_url
        self.tls = tls
        self.timeout = timeout
        self.verify = verify
        self.kwargs = kwargs
        self._connect()

    def _connect(self) -> None:
        """Establish connection to Docker daemon."""
        client_kwargs = dict(self.kwargs)
        if not self.verify:
            # Without a pinned version the SDK queries the daemon on construction
            client_kwargs.setdefault("version", DEFAULT_DOCKER_API_VERSION)
        try:
            if self.base_url:
                self._client = docker.DockerClient(
                    base_url=self.base_url,
                    tls=self.tls,
                    timeout=self.timeout,
                    **client_kwargs,
                )
            else:
                # Use environment variables or defaults
                self._client = docker.from_env(timeout=self.timeout, **client_kwargs)

            if self.verify:
                self._client.ping()
            logger.info(f"Connected to Docker daemon at {self._client.api.base_url}")

        except (DockerException, RequestException) as e:
            logger.error(f"Failed to connect to Docker daemon: {e}")
            raise ConfigurationError(
                "Cannot connect to Docker daemon",
                details={"error": str(e), "base_url": self.base_url},
            ) from e

    @property
    def client(self) -> _DockerClient:
        """Get the underlying Docker client."""
        if self._client is None:
            self._connect()
        if self._client is None:
            raise ConfigurationError("Docker client not initialized")
        return self._client

    async def list_containers(self, all: bool = False) -> list[ContainerSummary]:
        """
        List containers.

        Parameters
        ----------
        all : bool
            Include stopped containers

        Returns
        -------
        list[ContainerSummary]
            One summary per container
        """
        containers = await asyncio.to_thread(self.client.containers.list, all=all, sparse=True)
        return [
            ContainerSummary(
                id=container.id,
                names=container.attrs.get("Names") or [],
                image=container.attrs.get("Image"),
                state=container.attrs.get("State"),
            )
            for container in containers
        ]

    async def create_container(self, options: dict[str, Any], config: dict[str, Any]) -> str:
        """
        Create a container.

        Parameters
        ----------
        options : dict[str, Any]
            Create parameters; ``name`` sets the container name
        config : dict[str, Any]
            Container create body (``Image``, ``Env``, ``HostConfig``, ...)

        Returns
        -------
        str
            New container ID
        """
        result = await asyncio.to_thread(
            self.client.api.create_container_from_config, config, name=options.get("name")
        )
        for warning in result.get("Warnings") or []:
            logger.warning(f"Docker warning creating {options.get('name')}: {warning}")
        return result["Id"]

    async def start_container(self, container_id: str) -> None:
        """Start a container by ID."""
        await asyncio.to_thread(self.client.api.start, container_id)

    def ping(self) -> bool:
        """
        Check if Docker daemon is reachable.

        Returns
        -------
        bool
            True if daemon responds
        """
        try:
            return self.client.ping()  # type: ignore[no-any-return]
        except (DockerException, RequestException):
            return False

    def _close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
            logger.info("Closed Docker client connection")

    async def close(self) -> None:
        """Close connection to Docker daemon."""
        self._close()

    async def __aenter__(self) -> "DockerEngine":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    def __del__(self) -> None:
        """Cleanup on deletion."""
        self._close()


def create_engine(settings: DockerSettings) -> ContainerEngine:
    """
    Build the engine binding selected by configuration.

    Parameters
    ----------
    settings : DockerSettings
        Docker connection settings

    Returns
    -------
    ContainerEngine
        Connected engine

    Raises
    ------
    ConfigurationError
        If the platform has no binding or the daemon is unreachable
    """
    if settings.platform == "docker":
        kwargs: dict[str, Any] = {}
        if settings.docker_api_version:
            kwargs["version"] = settings.docker_api_version
        return DockerEngine(
            base_url=settings.docker_host,
            timeout=settings.docker_timeout_seconds,
            verify=settings.verify_connection,
            **kwargs,
        )
    raise ConfigurationError(
        f"Unsupported container platform: {settings.platform}",
        details={"platform": settings.platform},
    )
