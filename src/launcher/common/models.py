"""
Pydantic data models for the container launcher.

This module defines the desired-state schema accepted by ``POST /run``:
- Container configuration (image, name, network identity, ports, storage, environment)
- Bind-mount storage entries
- The adapter's summary view of an existing container

All models use Pydantic v2 for validation and serialization.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Storage Models
# =============================================================================


class StorageMount(BaseModel):
    """
    One bind mount for a container.

    Parameters
    ----------
    host : str
        Host-side path prefix
    local : str
        In-container path, appended onto ``host`` to form the bind source
    ro : bool
        Mount read-only

    Examples
    --------
    >>> StorageMount(host="/data", local="/app/data", ro=True).bind
    '/data/app/data:ro'
    >>> StorageMount(host="/data", local="/app/data").bind
    '/data/app/data'
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., description="Host path prefix")
    local: str = Field(..., description="In-container path suffix")
    ro: bool = Field(False, description="Read-only mount")

    @property
    def bind(self) -> str:
        """Docker bind string. ``host`` and ``local`` are concatenated as-is."""
        bind = self.host + self.local
        if self.ro:
            bind += ":ro"
        return bind


# =============================================================================
# Container Models
# =============================================================================


class ContainerConfiguration(BaseModel):
    """
    Desired state for one container.

    ``name`` is both the Docker container name and the lookup key used to
    decide whether the container already exists.

    Parameters
    ----------
    image : str
        Image to run (e.g., "nginx:latest")
    name : str
        Unique container name
    hostname : str, optional
        Container hostname
    domain : str, optional
        Container domain name
    ports : list[int], optional
        Port numbers (informational, not bound)
    storage : list[StorageMount], optional
        Bind mounts
    environment : dict[str, str], optional
        Environment variables

    Examples
    --------
    >>> conf = ContainerConfiguration(
    ...     image="nginx:latest",
    ...     name="web",
    ...     environment={"A": "1"},
    ... )
    >>> conf.engine_name
    '/web'
    """

    image: str = Field(..., description="Image to run")
    name: str = Field(..., min_length=1, description="Container name")
    hostname: str | None = Field(None, description="Container hostname")
    domain: str | None = Field(None, description="Container domain name")
    ports: list[int] | None = Field(None, description="Port numbers (not bound)")
    storage: list[StorageMount] | None = Field(None, description="Bind mounts")
    environment: dict[str, str] | None = Field(None, description="Environment variables")

    @property
    def engine_name(self) -> str:
        """Name as reported by the Docker daemon in container listings."""
        return f"/{self.name}"

    @property
    def env_list(self) -> list[str] | None:
        """Environment flattened to ``KEY=VALUE`` strings."""
        if self.environment is None:
            return None
        return [f"{k}={v}" for k, v in self.environment.items()]

    @property
    def binds(self) -> list[str] | None:
        """Bind strings for ``HostConfig.Binds``."""
        if self.storage is None:
            return None
        return [mount.bind for mount in self.storage]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ContainerConfiguration":
        """Load a configuration from a YAML file.

        Parameters
        ----------
        path : str or Path
            Path to the YAML file.

        Returns
        -------
        ContainerConfiguration
            Parsed configuration.

        Raises
        ------
        FileNotFoundError
            If the file doesn't exist.
        pydantic.ValidationError
            If the file content is not a valid configuration.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)


class ContainerSummary(BaseModel):
    """
    A container as returned by the engine's list operation.

    Parameters
    ----------
    id : str
        Container ID
    names : list[str]
        Engine names (Docker prefixes each with "/")
    image : str, optional
        Image the container was created from
    state : str, optional
        Container state (e.g., "running", "exited")
    """

    id: str
    names: list[str] = Field(default_factory=list)
    image: str | None = None
    state: str | None = None
