"""
Command-line entry point.

    fprocess="cat" python -m fwatchdog
"""

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from .config import load_config
from .errors import ConfigurationError
from .server import create_app, write_lock_file

logger = logging.getLogger("fwatchdog")

MAX_HEADER_BYTES = 1 << 20


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Expose a command-line program over HTTP")
    parser.add_argument("--env-file", default=None, help="Path to a .env file to load before reading config")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to listen on")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (overrides the port env var)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    config = load_config(args.env_file)

    try:
        config.ensure_valid()
        if not config.suppress_lock:
            write_lock_file(config.lock_path)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    port = args.port or config.port
    logger.info(f"Forking {config.fprocess!r} for requests on {args.host}:{port}")

    uvicorn.run(
        create_app(config),
        host=args.host,
        port=port,
        timeout_keep_alive=max(1, int(config.read_timeout)),
        h11_max_incomplete_event_size=MAX_HEADER_BYTES,
        log_level="info",
    )
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
