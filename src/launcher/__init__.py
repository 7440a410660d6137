"""Container launcher - create and start containers over HTTP."""

from launcher.common.config import LauncherConfig, load_config
from launcher.common.models import ContainerConfiguration, ContainerSummary, StorageMount
from launcher.docker_handler import (
    ContainerEngine,
    ContainerRunError,
    DockerEngine,
    StartFailureReason,
)
from launcher.runner import ContainerRunner
from launcher.server import create_app

__all__ = [
    # Config
    "LauncherConfig",
    "load_config",
    # Models
    "ContainerConfiguration",
    "ContainerSummary",
    "StorageMount",
    # Docker
    "ContainerEngine",
    "DockerEngine",
    "ContainerRunError",
    "StartFailureReason",
    # Runner
    "ContainerRunner",
    "create_app",
]
