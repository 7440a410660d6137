"""
HTTP endpoint for the container launcher.

Exposes ``POST /run``: the JSON body is a container configuration, the
response is plain text on success and a JSON error object on failure.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from launcher.common.config import LauncherConfig
from launcher.common.models import ContainerConfiguration
from launcher.docker_handler.client import ContainerEngine, create_engine
from launcher.docker_handler.exceptions import ContainerRunError, StartFailureReason
from launcher.runner import ContainerRunner

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Started successfully"

REASON_STATUS: dict[StartFailureReason, int] = {
    StartFailureReason.STORAGE_PATH_DOES_NOT_EXIST: 400,
    StartFailureReason.IMAGE_DOES_NOT_EXIST: 404,
    StartFailureReason.PORT_BIND_FAILURE: 409,
    StartFailureReason.PERMISSION_DENIED: 503,
    StartFailureReason.OTHER: 500,
}


def get_runner(request: Request) -> ContainerRunner:
    """Return the runner shared by all requests."""
    return request.app.state.runner  # type: ignore[no-any-return]


class RunRoutes:
    """
    Router for the run endpoint.

    Attributes:
        router: Instance of `APIRouter` with the `/run` endpoint.
    """

    def __init__(self) -> None:
        self.router = self._build_router()

    def _build_router(self) -> APIRouter:
        router = APIRouter(tags=["Containers"])
        # POST /run - create the container if needed and start it
        router.add_api_route(
            "/run",
            self.run_container,
            methods=["POST"],
            response_class=PlainTextResponse,
        )
        router.add_api_route("/health", self.health, methods=["GET"])
        return router

    async def run_container(
        self,
        conf: ContainerConfiguration,
        runner: ContainerRunner = Depends(get_runner),
    ) -> str:
        """
        Ensure the configured container exists and is started.

        Args:
            conf: Desired container configuration from the request body.
            runner: Shared container runner.

        Returns:
            Confirmation text.

        Raises:
            ContainerRunError: Rendered by `container_run_error_handler`.
        """
        logger.info(f"Run requested for container {conf.name} ({conf.image})")
        await runner.run_container(conf)
        return SUCCESS_MESSAGE

    async def health(self) -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}


async def container_run_error_handler(request: Request, exc: ContainerRunError) -> JSONResponse:
    """Render a ``ContainerRunError`` as a JSON error body."""
    return JSONResponse(
        status_code=REASON_STATUS.get(exc.reason, 500),
        content={"reason": exc.reason.value, "message": exc.message, "detail": str(exc)},
    )


def create_app(
    config: LauncherConfig | None = None,
    engine: ContainerEngine | None = None,
    title: str = "Container Launcher",
    version: str = "0.1.0",
) -> FastAPI:
    """
    Factory function to create the FastAPI application.

    Args:
        config: Launcher configuration; loaded from the environment if omitted.
        engine: Engine to use instead of one built from `config`. The app
            does not close an engine it was given.
        title: FastAPI application title.
        version: Application version string.

    Returns:
        FastAPI app ready to serve.
    """
    config = config or LauncherConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.engine = engine if engine is not None else create_engine(config.docker)
        app.state.runner = ContainerRunner(app.state.engine)
        try:
            yield
        finally:
            if engine is None:
                await app.state.engine.close()

    app = FastAPI(title=title, version=version, lifespan=lifespan)
    app.include_router(RunRoutes().router)
    app.add_exception_handler(ContainerRunError, container_run_error_handler)
    return app
