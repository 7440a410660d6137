"""Custom exceptions for Docker Handler subsystem.

Engine failures are converted into ``ContainerRunError`` carrying one of the
``StartFailureReason`` values so callers can react to them uniformly.
"""

from enum import Enum
from typing import Any

from docker.errors import APIError


class DockerHandlerError(Exception):
    """Base exception for all Docker Handler errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Container operation errors
class ContainerError(DockerHandlerError):
    """Base exception for container-related errors."""

    pass


# Configuration errors
class ConfigurationError(DockerHandlerError):
    """Raised when configuration is invalid."""

    pass


class StartFailureReason(str, Enum):
    """Closed set of reasons a container run can fail."""

    STORAGE_PATH_DOES_NOT_EXIST = "StoragePathDoesNotExist"
    IMAGE_DOES_NOT_EXIST = "ImageDoesNotExist"
    PORT_BIND_FAILURE = "PortBindFailure"
    PERMISSION_DENIED = "PermissionDenied"
    OTHER = "Other"


class ContainerRunError(ContainerError):
    """
    Raised when a container could not be found, created or started.

    Parameters
    ----------
    reason : StartFailureReason
        Classified failure reason
    message : str
        Diagnostic text, engine-provided where available
    details : dict[str, Any], optional
        Structured error details for logging/debugging

    Examples
    --------
    >>> err = ContainerRunError(StartFailureReason.PERMISSION_DENIED, "connect: permission denied")
    >>> str(err)
    'Permission denied communicating with docker service: connect: permission denied'
    >>> str(ContainerRunError(StartFailureReason.OTHER, "boom"))
    'Error occurred'
    """

    def __init__(
        self,
        reason: StartFailureReason,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.reason = reason
        super().__init__(message, details=details)

    def __str__(self) -> str:
        if self.reason is StartFailureReason.PERMISSION_DENIED:
            return f"Permission denied communicating with docker service: {self.message}"
        if self.reason is StartFailureReason.IMAGE_DOES_NOT_EXIST:
            return f"Image does not exist: {self.message}"
        if self.reason is StartFailureReason.STORAGE_PATH_DOES_NOT_EXIST:
            return f"Storage path does not exist: {self.message}"
        if self.reason is StartFailureReason.PORT_BIND_FAILURE:
            return f"Port could not be bound: {self.message}"
        return "Error occurred"

    def __repr__(self) -> str:
        return f"ContainerRunError(reason={self.reason.value!r}, message={self.message!r})"


# (HTTP status or None for any, lower-cased daemon message fragment, reason)
DAEMON_ERROR_REASONS: list[tuple[int | None, str, StartFailureReason]] = [
    (404, "no such image", StartFailureReason.IMAGE_DOES_NOT_EXIST),
    (None, "bind source path does not exist", StartFailureReason.STORAGE_PATH_DOES_NOT_EXIST),
    (None, "error while creating mount source path", StartFailureReason.STORAGE_PATH_DOES_NOT_EXIST),
    (None, "invalid mount config", StartFailureReason.STORAGE_PATH_DOES_NOT_EXIST),
    (None, "port is already allocated", StartFailureReason.PORT_BIND_FAILURE),
    (None, "address already in use", StartFailureReason.PORT_BIND_FAILURE),
]


def _inner_error(exc: BaseException) -> BaseException | None:
    if exc.__cause__ is not None:
        return exc.__cause__
    # requests/urllib3 pass the wrapped error as a positional argument
    for arg in exc.args:
        if isinstance(arg, BaseException):
            return arg
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


def root_cause(exc: BaseException) -> BaseException | None:
    """
    Return the innermost error wrapped by ``exc``.

    Returns None when ``exc`` does not wrap another error.

    Examples
    --------
    >>> inner = PermissionError(13, "Permission denied")
    >>> root_cause(ConnectionError("Connection aborted.", inner)) is inner
    True
    >>> root_cause(ValueError("plain")) is None
    True
    """
    cause = _inner_error(exc)
    if cause is None:
        return None
    seen = {id(exc), id(cause)}
    while True:
        inner = _inner_error(cause)
        if inner is None or id(inner) in seen:
            return cause
        seen.add(id(inner))
        cause = inner


def classify_daemon_error(error: APIError) -> StartFailureReason:
    """Map a daemon error response onto a failure reason by status and message."""
    status = error.status_code
    text = str(error.explanation or "").lower()
    for expected_status, fragment, reason in DAEMON_ERROR_REASONS:
        if expected_status is not None and status != expected_status:
            continue
        if fragment in text:
            return reason
    return StartFailureReason.OTHER


def convert_engine_error(exc: BaseException) -> ContainerRunError:
    """
    Convert an engine-layer error into a ``ContainerRunError``.

    Daemon error responses (``APIError``) are classified on their status and
    message. Anything else is treated as a transport failure and classified
    on its root cause.

    Parameters
    ----------
    exc : BaseException
        Error raised by a ``ContainerEngine`` call

    Returns
    -------
    ContainerRunError
        Classified error; ``exc`` itself if it already is one

    Examples
    --------
    >>> err = convert_engine_error(ConnectionError("aborted", OSError("connect: Permission Denied")))
    >>> err.reason.value, err.message
    ('PermissionDenied', 'connect: Permission Denied')
    >>> convert_engine_error(RuntimeError("daemon went away")).reason.value
    'Other'
    """
    if isinstance(exc, ContainerRunError):
        return exc

    details: dict[str, Any] = {"error_type": type(exc).__name__}

    if isinstance(exc, APIError):
        details["status_code"] = exc.status_code
        reason = classify_daemon_error(exc)
        if reason is StartFailureReason.OTHER:
            return ContainerRunError(reason, str(exc), details)
        return ContainerRunError(reason, str(exc.explanation), details)

    cause = root_cause(exc)
    if cause is None:
        return ContainerRunError(StartFailureReason.OTHER, str(exc), details)

    cause_text = str(cause)
    if "permission denied" in cause_text.lower():
        return ContainerRunError(StartFailureReason.PERMISSION_DENIED, cause_text, details)
    return ContainerRunError(StartFailureReason.OTHER, cause_text, details)
