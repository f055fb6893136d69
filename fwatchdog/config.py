"""
Watchdog configuration, read once from the process environment.

Every option is a plain environment variable so the watchdog can be configured
from a Dockerfile or a Kubernetes manifest. A `.env` file is honoured too,
which is handy when running locally:

    fprocess="cat"
    write_debug=false
    suppress_lock=true
"""

import logging
import os
import re
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_PORT = 8080
DEFAULT_LOCK_PATH = "/tmp/.lock"

_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m|h)?$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class WatchdogConfig(BaseModel):
    """Resolved watchdog options. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    fprocess: str = ""
    read_timeout: float = DEFAULT_TIMEOUT_SECONDS
    write_timeout: float = DEFAULT_TIMEOUT_SECONDS
    exec_timeout: float = 0.0
    port: int = DEFAULT_PORT
    content_type: str = ""
    marshal_request: bool = False
    cgi_headers: bool = True
    debug_headers: bool = False
    write_debug: bool = True
    suppress_lock: bool = False
    lock_path: str = DEFAULT_LOCK_PATH

    @property
    def command(self) -> List[str]:
        """The target command line as argv. Split on spaces, no quoting support."""
        return [part for part in self.fprocess.split(" ") if part]

    @property
    def invocation_timeout(self) -> Optional[float]:
        """How long a single function call may run before it is killed."""
        if self.exec_timeout > 0:
            return self.exec_timeout
        if self.write_timeout > 0:
            return self.write_timeout
        return None

    def ensure_valid(self) -> None:
        if not self.command:
            raise ConfigurationError("Provide a valid process via fprocess environmental variable.")


def parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def parse_duration(value: Optional[str], default: float) -> float:
    """
    Parse a timeout value in seconds.

    Accepts a bare number ("10", "2.5") or a number with a unit suffix
    ("500ms", "10s", "1m", "1h"). Anything else, including negative numbers,
    yields the default.
    """
    if not value:
        return default
    match = _DURATION_RE.match(value.strip())
    if not match:
        logger.warning(f"Ignoring invalid duration {value!r}, using {default}s")
        return default
    number, unit = match.groups()
    return float(number) * _DURATION_UNITS[unit or "s"]


def parse_port(value: Optional[str], default: int = DEFAULT_PORT) -> int:
    try:
        port = int(value) if value else default
    except ValueError:
        return default
    return port if 0 < port < 65536 else default


def read_config(environ: Optional[Mapping[str, str]] = None) -> WatchdogConfig:
    """
    Build a WatchdogConfig from an environment mapping.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        WatchdogConfig: The resolved, immutable configuration.
    """
    env = os.environ if environ is None else environ

    return WatchdogConfig(
        fprocess=env.get("fprocess", ""),
        read_timeout=parse_duration(env.get("read_timeout"), DEFAULT_TIMEOUT_SECONDS),
        write_timeout=parse_duration(env.get("write_timeout"), DEFAULT_TIMEOUT_SECONDS),
        exec_timeout=parse_duration(env.get("exec_timeout"), 0.0),
        port=parse_port(env.get("port")),
        content_type=env.get("content_type", ""),
        marshal_request=parse_bool(env.get("marshal_request"), False),
        cgi_headers=parse_bool(env.get("cgi_headers"), True),
        debug_headers=parse_bool(env.get("debug_headers"), False),
        write_debug=parse_bool(env.get("write_debug"), True),
        suppress_lock=parse_bool(env.get("suppress_lock"), False),
        lock_path=env.get("lock_path") or DEFAULT_LOCK_PATH,
    )


def load_config(env_file: Optional[str] = None) -> WatchdogConfig:
    """Load an optional .env file into os.environ, then read the config from it."""
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)
    return read_config(os.environ)
