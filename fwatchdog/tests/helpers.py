"""Shared helpers for the watchdog tests."""

import socket
import stat

from ..config import WatchdogConfig


def make_config(**overrides) -> WatchdogConfig:
    """Config for tests: no lock file and a quiet log unless asked otherwise."""
    values = {"fprocess": "cat", "suppress_lock": True, "write_debug": False}
    values.update(overrides)
    return WatchdogConfig(**values)


def write_script(path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
