from __future__ import annotations

import logging

import pytest

from idsync.common import configure_logging, level_for_verbosity
from idsync.common.logging import NOISY_LOGGERS


@pytest.mark.parametrize(
    ("verbosity", "level"),
    [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_level_for_verbosity(verbosity: int, level: int) -> None:
    assert level_for_verbosity(verbosity) == level


@pytest.mark.parametrize(
    ("level", "library_level"),
    [(logging.INFO, logging.WARNING), (logging.DEBUG, logging.DEBUG)],
)
def test_configure_logging_quiets_http_libraries(level: int, library_level: int) -> None:
    configure_logging(level=level)

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == library_level
