from __future__ import annotations

import logging

from cbrf_exchange.utils.logger import PACKAGE_LOGGER_NAME, get_logger


def test_module_loggers_live_under_the_package_logger() -> None:
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger = get_logger("cbrf_exchange.rate_cache")

    assert logger.name == "cbrf_exchange.rate_cache"
    assert logger.parent is package_logger


def test_default_logger_is_the_package_logger() -> None:
    assert get_logger() is logging.getLogger(PACKAGE_LOGGER_NAME)


def test_messages_reach_caplog(caplog) -> None:
    with caplog.at_level(logging.INFO):
        get_logger("cbrf_exchange.tests").info("Cached %s rates", 3)

    assert "Cached 3 rates" in caplog.text
