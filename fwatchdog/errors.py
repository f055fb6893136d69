"""
Exception types raised by the watchdog.
"""

from typing import Optional


class WatchdogError(Exception):
    """Base class for all watchdog errors."""

    pass


class ConfigurationError(WatchdogError):
    """Fatal startup problem, e.g. no fprocess or an unwritable lock file."""

    pass


class InputEncodingError(WatchdogError):
    """The request could not be turned into bytes for the function's stdin."""

    pass


class InvocationError(WatchdogError):
    """
    The function process could not be started, exited non-zero or was killed.

    The partial combined output is kept on the exception so it can be logged,
    but it is never returned to the caller.
    """

    def __init__(self, message: str, output: bytes = b"", returncode: Optional[int] = None):
        self.output = output
        self.returncode = returncode
        super().__init__(message)
