"""
Turns an inbound request into the bytes written to the function's stdin.
"""

from typing import Iterable, Optional, Tuple

from fastapi import Request

from .config import WatchdogConfig
from .marshal import marshal_request


def build_function_input(
    config: WatchdogConfig,
    body: Optional[bytes],
    headers: Iterable[Tuple[str, str]],
) -> bytes:
    """
    Produce the function input from a request body.

    Raises:
        InputEncodingError: If marshal_request is on and the envelope cannot be built.
    """
    raw = body or b""
    if config.marshal_request:
        return marshal_request(raw, headers)
    return raw


async def read_function_input(config: WatchdogConfig, request: Request) -> bytes:
    """Read the whole request body and build the function input from it."""
    try:
        body = await request.body()
        return build_function_input(config, body, request.headers.items())
    finally:
        await request.close()
