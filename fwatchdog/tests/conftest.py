import os

import pytest

from .helpers import write_script


@pytest.fixture
def failing_script(tmp_path):
    """A function that prints 'boom' and exits 1."""
    return write_script(tmp_path / "fail.sh", "echo boom\nexit 1")


@pytest.fixture
def large_payload() -> bytes:
    """Well past the size of a pipe buffer."""
    return os.urandom(4 * 1024 * 1024)
