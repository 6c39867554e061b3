from __future__ import annotations

import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure console logging for the CLI.

    Safe to call multiple times (won't double-add handlers).
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Keep common noisy loggers reasonable.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
