"""
Builds the HTTP response for a finished invocation.
"""

import logging
from typing import Iterable, Optional, Tuple

from fastapi import Response

from .bridge import InvocationResult
from .config import WatchdogConfig
from .marshal import group_headers

logger = logging.getLogger(__name__)

DURATION_HEADER = "X-Duration-Seconds"


def debug_headers(headers: Iterable[Tuple[str, str]], direction: str) -> None:
    """Log each header as `[direction] Name=[values]`."""
    for name, values in group_headers(headers).items():
        logger.info(f"[{direction}] {name}=[{' '.join(values)}]")


def compose_response(
    config: WatchdogConfig,
    result: InvocationResult,
    request_content_type: Optional[str] = None,
) -> Response:
    """
    Turn an invocation result into a response.

    A failed call becomes a 500 whose body is the error description; any
    output the function produced before failing is only logged. A successful
    call returns the output verbatim with the configured or mirrored
    Content-Type and the X-Duration-Seconds header.
    """
    if not result.succeeded:
        if config.write_debug:
            logger.warning(
                f"{config.fprocess}: {result.error} (output: {result.output[:4096]!r})"
            )
        return Response(content=str(result.error), status_code=500)

    if config.write_debug:
        logger.info(result.output.decode("utf-8", errors="replace"))

    headers = {DURATION_HEADER: f"{result.duration:f}"}
    if config.content_type:
        headers["Content-Type"] = config.content_type
    elif request_content_type:
        headers["Content-Type"] = request_content_type

    return Response(content=result.output, status_code=200, headers=headers)
