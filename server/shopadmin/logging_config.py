"""
Logging configuration for the store admin server.

Console output only; uvicorn and the container runtime take care of
collecting stdout.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s"


def setup_logging(debug: bool = False) -> None:
    """
    Configure the root logger once for the whole process.

    Third-party loggers that are chatty at INFO (asyncpg, multipart) are
    reduced to WARNING.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("python_multipart").setLevel(logging.WARNING)
