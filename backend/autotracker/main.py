from __future__ import annotations

import os
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import PlainTextResponse

from .clockify import ClockifyClient, ClockifyError
from .config import Settings, settings as default_settings
from .logging_setup import get_logger, setup_logging
from .middleware import AuthMiddleware, LoggingMiddleware, TracingMiddleware
from .services import TimeEntryClient, TimeTracker
from .state import WorkingState

logger = get_logger(__name__)

ANY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_client(config: Settings) -> ClockifyClient:
    return ClockifyClient(
        config.clockify_key,
        config.clockify_workspace,
        base_url=config.clockify_api_url,
        timeout=config.clockify_timeout,
        user_agent=config.user_agent,
    )


def request_shutdown() -> None:
    """Ask the serving process to stop, the way an operator's SIGTERM would."""
    os.kill(os.getpid(), signal.SIGTERM)


def get_working_state(request: Request) -> WorkingState:
    return request.app.state.working_state


def get_tracker(request: Request) -> TimeTracker:
    return request.app.state.tracker


def _toggle(field: str, request: Request, working_state: WorkingState, tracker: TimeTracker) -> Response:
    values = request.query_params.getlist("state")
    if not values:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="State Param not readable.")
    enabled = values[0] == "true"
    logger.info("%s=%s", field, enabled)
    snapshot = working_state.update(field, enabled)
    tracker.apply(snapshot)
    return PlainTextResponse("Succeeded\n", status_code=status.HTTP_200_OK)


def create_app(config: Optional[Settings] = None, client: Optional[TimeEntryClient] = None) -> FastAPI:
    config = config or default_settings
    setup_logging(config.log_level)
    upstream = client if client is not None else build_client(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Server is starting...")
        try:
            app.state.tracker.load_tags()
        except ClockifyError as exc:
            logger.critical("Could not load tags: %s", exc)
            raise
        logger.info("Server is ready to handle requests at %s", config.listen_addr)
        app.state.healthy = True
        try:
            yield
        finally:
            logger.info("Server is shutting down...")
            app.state.healthy = False
            close = getattr(upstream, "close", None)
            if callable(close):
                close()
            logger.info("Server stopped")

    app = FastAPI(
        title=config.app_name,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = config
    app.state.healthy = False
    app.state.working_state = WorkingState()
    app.state.tracker = TimeTracker(upstream, config.clockify_project)

    # Added innermost first: tracing wraps logging wraps auth.
    app.add_middleware(AuthMiddleware, key=config.auth_key)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(TracingMiddleware)

    @app.exception_handler(ClockifyError)
    async def upstream_failure(request: Request, exc: ClockifyError) -> Response:
        logger.critical("Upstream request failed: %s", exc)
        request.app.state.healthy = False
        if request.app.state.settings.exit_on_upstream_error:
            request_shutdown()
        return PlainTextResponse("Bad Gateway\n", status_code=status.HTTP_502_BAD_GATEWAY)

    @app.api_route("/", methods=ANY_METHODS)
    def index() -> Response:
        response = PlainTextResponse("Hello, World!\n", status_code=status.HTTP_200_OK)
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response

    @app.api_route("/health", methods=ANY_METHODS)
    def health(request: Request) -> Response:
        if request.app.state.healthy:
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    @app.api_route("/on_phone", methods=["GET", "POST"])
    def on_phone(
        request: Request,
        working_state: WorkingState = Depends(get_working_state),
        tracker: TimeTracker = Depends(get_tracker),
    ) -> Response:
        return _toggle("on_phone", request, working_state, tracker)

    @app.api_route("/on_laptop", methods=["GET", "POST"])
    def on_laptop(
        request: Request,
        working_state: WorkingState = Depends(get_working_state),
        tracker: TimeTracker = Depends(get_tracker),
    ) -> Response:
        return _toggle("on_laptop", request, working_state, tracker)

    @app.api_route("/at_work", methods=["GET", "POST"])
    def at_work(
        request: Request,
        working_state: WorkingState = Depends(get_working_state),
        tracker: TimeTracker = Depends(get_tracker),
    ) -> Response:
        return _toggle("at_work", request, working_state, tracker)

    return app


app = create_app()
