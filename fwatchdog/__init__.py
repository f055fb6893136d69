"""
fwatchdog - run any command-line program as an HTTP function.

Each request starts the configured process, writes the request body to its
stdin and returns whatever it writes to stdout/stderr as the response.

Quick Start:
    from fwatchdog import read_config, create_app
    import uvicorn

    config = read_config({"fprocess": "cat", "suppress_lock": "true"})
    uvicorn.run(create_app(config), port=8080)
"""

from .bridge import InvocationResult, ProcessBridge
from .config import WatchdogConfig, load_config, read_config
from .errors import ConfigurationError, InputEncodingError, InvocationError, WatchdogError
from .server import create_app

__all__ = [
    "ConfigurationError",
    "InputEncodingError",
    "InvocationError",
    "InvocationResult",
    "ProcessBridge",
    "WatchdogConfig",
    "WatchdogError",
    "create_app",
    "load_config",
    "read_config",
]
