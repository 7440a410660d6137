"""Container runner: reconcile a desired configuration against the engine.

The runner finds a container by name, creates it when absent and starts it.
Every engine failure is converted into a ``ContainerRunError``.
"""

import logging
from typing import Any

from launcher.common.models import ContainerConfiguration
from launcher.docker_handler.client import ContainerEngine
from launcher.docker_handler.exceptions import ContainerRunError, convert_engine_error

logger = logging.getLogger(__name__)


def build_create_options(conf: ContainerConfiguration) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Translate a configuration into engine create parameters.

    Ports are not translated into bindings.

    Parameters
    ----------
    conf : ContainerConfiguration
        Desired container state

    Returns
    -------
    tuple[dict[str, Any], dict[str, Any]]
        Create options (``name``) and the container create body

    Examples
    --------
    >>> from launcher.common.models import StorageMount
    >>> conf = ContainerConfiguration(
    ...     image="nginx:latest",
    ...     name="web",
    ...     environment={"A": "1"},
    ...     storage=[StorageMount(host="/data", local="/app/data", ro=True)],
    ... )
    >>> options, config = build_create_options(conf)
    >>> options
    {'name': 'web'}
    >>> config["Env"], config["HostConfig"]["Binds"]
    (['A=1'], ['/data/app/data:ro'])
    """
    options = {"name": conf.name}
    config: dict[str, Any] = {"Image": conf.image}

    if conf.hostname is not None:
        config["Hostname"] = conf.hostname
    if conf.domain is not None:
        config["Domainname"] = conf.domain

    env = conf.env_list
    if env is not None:
        config["Env"] = env

    binds = conf.binds
    if binds is not None:
        config["HostConfig"] = {"Binds": binds}

    return options, config


class ContainerRunner:
    """
    Drives an engine through find, create-if-absent and start.

    Parameters
    ----------
    engine : ContainerEngine
        Shared engine handle

    Examples
    --------
    >>> async def example(engine):
    ...     runner = ContainerRunner(engine)
    ...     await runner.run_container(ContainerConfiguration(image="nginx", name="web"))
    >>> asyncio.run(example(DockerEngine()))
    """

    def __init__(self, engine: ContainerEngine):
        self.engine = engine

    async def find_container(self, conf: ContainerConfiguration) -> str | None:
        """Return the ID of the container named ``conf.name``, if any."""
        name = conf.engine_name
        for container in await self.engine.list_containers(all=True):
            if name in container.names:
                if container.image is not None and container.image != conf.image:
                    # TODO: recreate or reject once image drift has a defined policy
                    logger.warning(
                        f"Container {conf.name} runs image {container.image}, "
                        f"requested {conf.image}; reusing it"
                    )
                return container.id
        return None

    async def create_container(self, conf: ContainerConfiguration) -> str:
        """Create the container described by ``conf`` and return its ID."""
        if conf.ports:
            logger.debug(f"Ports {conf.ports} for {conf.name} are not bound")
        options, config = build_create_options(conf)
        container_id = await self.engine.create_container(options, config)
        logger.info(f"Created container {conf.name} ({container_id})")
        return container_id

    async def run_container(self, conf: ContainerConfiguration) -> None:
        """
        Create a container if one does not exist, then start it.

        Parameters
        ----------
        conf : ContainerConfiguration
            Desired container state

        Raises
        ------
        ContainerRunError
            If any engine call fails
        """
        try:
            container_id = await self.find_container(conf)
            if container_id is None:
                container_id = await self.create_container(conf)
            else:
                logger.debug(f"Found container {conf.name} ({container_id})")
            await self.engine.start_container(container_id)
        except ContainerRunError:
            raise
        except Exception as e:
            error = convert_engine_error(e)
            logger.error(
                f"Failed to run container {conf.name}: {error.reason.value}: {error.message}"
            )
            raise error from e

        logger.info(f"Started container {conf.name} ({container_id})")
