"""Docker handler with connection management and error handling."""

from .client import ContainerEngine, DockerEngine, create_engine
from .exceptions import (
    ConfigurationError,
    ContainerError,
    ContainerRunError,
    DockerHandlerError,
    StartFailureReason,
    convert_engine_error,
)

__all__ = [
    "ContainerEngine",
    "DockerEngine",
    "create_engine",
    "DockerHandlerError",
    "ContainerError",
    "ContainerRunError",
    "ConfigurationError",
    "StartFailureReason",
    "convert_engine_error",
]
