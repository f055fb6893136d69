"""
CGI-style environment for the function process.

With `cgi_headers=true` every request header is exposed as `Http_<Header>`,
alongside `Http_Method` and `Http_Query`. With it off the function simply
inherits the watchdog's own environment.
"""

import os
from typing import Dict, Iterable, List, Optional, Tuple

from .config import WatchdogConfig
from .marshal import canonical_header_key


def project_environment(
    config: WatchdogConfig,
    headers: Iterable[Tuple[str, str]],
    method: str,
    query_string: str = "",
) -> Optional[List[str]]:
    """
    Build the NAME=value entries for the function's environment.

    Only the first value of a repeated header is used.

    Args:
        config: Watchdog configuration.
        headers: Request headers as (name, value) pairs, in arrival order.
        method: HTTP method of the request.
        query_string: Raw URL query string, without the leading '?'.

    Returns:
        Optional[List[str]]: None when the child should inherit the environment
        unchanged, otherwise the complete environment to run it with.
    """
    if not config.cgi_headers:
        return None

    envs = [f"{key}={value}" for key, value in os.environ.items()]

    seen = set()
    for name, value in headers:
        key = canonical_header_key(name)
        if key in seen:
            continue
        seen.add(key)
        envs.append(f"Http_{key}={value}")

    envs.append(f"Http_Method={method}")

    if query_string:
        envs.append(f"Http_Query={query_string}")

    return envs


def environment_mapping(entries: Optional[List[str]]) -> Optional[Dict[str, str]]:
    """Turn NAME=value entries into a Popen env mapping. Later entries win."""
    if entries is None:
        return None
    env: Dict[str, str] = {}
    for entry in entries:
        key, _, value = entry.partition("=")
        env[key] = value
    return env
