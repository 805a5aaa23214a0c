"""Shared logging helpers for idsync."""

from __future__ import annotations

import logging
from typing import Final

# third-party loggers that are chatty at INFO
NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel")


def level_for_verbosity(verbosity: int) -> int:
    """Map ``-v`` counts to a level: none is WARNING, one INFO, two or more DEBUG."""

    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with a terse CLI format.

    HTTP client libraries are held at WARNING unless ``level`` is DEBUG. Pass
    ``force=True`` to reconfigure an already configured root logger.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
