"""
Configuration management for the container launcher.

This module uses Pydantic Settings for environment-based configuration with
support for .env files. Configuration is organized into logical sections:
- Docker settings
- HTTP server settings
- Logging settings

Variables are read unprefixed (e.g., LOG_LEVEL, SERVER_PORT); each section
reads its own fields.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class DockerSettings(BaseSettings):
    """
    Container engine connection settings.

    Parameters
    ----------
    docker_host : str
        Docker daemon URL (default: unix:///var/run/docker.sock)
    platform : str
        Container platform binding to use (only "docker" is available)
    docker_timeout_seconds : int
        Timeout for daemon requests (seconds)
    verify_connection : bool
        Ping the daemon at startup
    docker_api_version : str, optional
        Docker API version to pin; unset pins the SDK default when
        verify_connection is off, otherwise negotiates with the daemon

    Environment Variables
    ---------------------
    DOCKER_HOST : str
        Override Docker daemon URL
    PLATFORM : str
        Container platform

    Examples
    --------
    >>> config = DockerSettings()
    >>> config.docker_host
    'unix:///var/run/docker.sock'
    >>> config = DockerSettings(docker_host="tcp://localhost:2375")
    >>> config.docker_host
    'tcp://localhost:2375'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    docker_host: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker daemon URL",
    )
    platform: str = Field(default="docker", description="Container platform")
    docker_timeout_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Daemon request timeout",
    )
    verify_connection: bool = Field(default=True, description="Ping daemon at startup")
    docker_api_version: str | None = Field(None, description="Pinned Docker API version")

    @field_validator("docker_host")
    @classmethod
    def validate_docker_host(cls, v: str) -> str:
        """Validate Docker host URL format."""
        valid_schemes = ("unix://", "tcp://", "http://", "https://", "npipe://", "ssh://")
        if not any(v.startswith(scheme) for scheme in valid_schemes):
            raise ValueError(f"Docker host must start with one of: {valid_schemes}. Got: {v}")
        return v


class ServerSettings(BaseSettings):
    """
    HTTP server settings.

    Parameters
    ----------
    server_host : str
        Listen address
    server_port : int
        Listen port

    Examples
    --------
    >>> config = ServerSettings()
    >>> config.server_host, config.server_port
    ('127.0.0.1', 3030)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    server_host: str = Field(default="127.0.0.1", description="Listen address")
    server_port: int = Field(default=3030, ge=1, le=65535, description="Listen port")


class LoggingSettings(BaseSettings):
    """
    Logging configuration.

    Parameters
    ----------
    log_level : str
        Logging level ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    log_file : Path, optional
        Log file path (None for stderr only)

    Environment Variables
    ---------------------
    LOG_LEVEL : str
        Logging level
    LOG_FILE : str
        Log file path

    Examples
    --------
    >>> config = LoggingSettings()
    >>> config.log_level
    'INFO'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_file: Path | None = Field(None, description="Log file path")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v


class LauncherConfig(BaseSettings):
    """
    Main launcher configuration aggregating all settings.

    Parameters
    ----------
    docker : DockerSettings
        Docker configuration
    server : ServerSettings
        HTTP server configuration
    logging : LoggingSettings
        Logging configuration

    Examples
    --------
    >>> config = LauncherConfig()
    >>> config.docker.platform
    'docker'
    >>> config.server.server_port
    3030
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    docker: DockerSettings = Field(default_factory=DockerSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# =============================================================================
# Convenience functions
# =============================================================================


def load_config(env_file: Path | str | None = None) -> LauncherConfig:
    """
    Load launcher configuration from environment and optional .env file.

    Parameters
    ----------
    env_file : Path or str, optional
        Path to .env file (default: .env in current directory)

    Returns
    -------
    LauncherConfig
        Loaded configuration
    """
    if env_file:
        # Create config with explicit env_file
        return LauncherConfig(
            docker=DockerSettings(_env_file=str(env_file)),
            server=ServerSettings(_env_file=str(env_file)),
            logging=LoggingSettings(_env_file=str(env_file)),
        )
    return LauncherConfig()


def configure_logging(settings: LoggingSettings) -> None:
    """Configure the root logger from logging settings."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
