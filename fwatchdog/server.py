"""
FastAPI application that exposes the function over HTTP.

Every path is routed to the same handler. POST, PUT, DELETE and UPDATE feed
the request body to the function; GET runs it with an empty stdin. Any other
method gets a 405 without the function being started.
"""

import logging
import math
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

from anyio import CapacityLimiter, to_thread
from fastapi import FastAPI, Request, Response

from .bridge import InvocationResult, ProcessBridge
from .config import WatchdogConfig
from .environment import environment_mapping, project_environment
from .errors import ConfigurationError, InputEncodingError
from .request import read_function_input
from .response import compose_response, debug_headers

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "DELETE", "UPDATE")
BODILESS_METHODS = ("GET",)
SUPPORTED_METHODS = list(BODY_METHODS + BODILESS_METHODS)


def method_has_body(method: str) -> Optional[bool]:
    """True if the method carries a body, False for GET, None if unsupported."""
    if method in BODY_METHODS:
        return True
    if method in BODILESS_METHODS:
        return False
    return None


def write_lock_file(path: Union[str, Path]) -> Path:
    """
    Write the empty readiness file that external health checks look for.

    Raises:
        ConfigurationError: If the file cannot be written.
    """
    path = Path(path)
    logger.info(f"Writing lock-file to: {path}")
    try:
        path.write_bytes(b"")
        os.chmod(path, 0o660)
    except OSError as e:
        raise ConfigurationError(
            f"Cannot write {path}. To disable lock-file set env suppress_lock=true.\n Error: {e}."
        ) from e
    return path


def remove_lock_file(path: Union[str, Path]) -> None:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove lock-file {path}: {e}")


async def run_invocation(bridge: ProcessBridge, *args) -> InvocationResult:
    """
    Run one invocation on a worker thread of its own.

    Not bound by the shared threadpool limit: every running function holds
    its own thread, however many requests are in flight.
    """
    return await to_thread.run_sync(bridge.run, *args, limiter=CapacityLimiter(math.inf))


def create_app(config: WatchdogConfig, bridge: Optional[ProcessBridge] = None) -> FastAPI:
    """
    Build the watchdog application.

    Args:
        config: Resolved watchdog configuration.
        bridge: Process bridge to run invocations with. A new one is created
            from the config when omitted.

    Returns:
        FastAPI: The application, ready to hand to uvicorn.
    """
    bridge = bridge or ProcessBridge(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if not config.suppress_lock:
            remove_lock_file(config.lock_path)

    app = FastAPI(title="fwatchdog", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    async def handle(request: Request) -> Response:
        method = request.method
        has_body = method_has_body(method)
        if has_body is None:
            return Response(status_code=405)

        if config.debug_headers:
            debug_headers(request.headers.items(), "in")

        stdin_bytes = b""
        if has_body:
            try:
                stdin_bytes = await read_function_input(config, request)
            except InputEncodingError as e:
                return Response(content=str(e), status_code=400)

        envs = project_environment(config, request.headers.items(), method, request.url.query)

        result = await run_invocation(
            bridge, config.command, environment_mapping(envs), has_body, stdin_bytes
        )
        response = compose_response(config, result, request.headers.get("content-type"))

        if config.debug_headers:
            debug_headers(response.headers.items(), "out")

        return response

    app.add_api_route("/{path:path}", handle, methods=SUPPORTED_METHODS)
    app.state.config = config
    return app
