"""Shared test configuration and fixtures."""

import os
from collections.abc import Iterator
from unittest.mock import patch

import pytest

import price_collector.core.config as config_module

_ENV_PREFIX = "PRICE_COLLECTOR_"


@pytest.fixture(autouse=True)
def _isolate_environment() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    """Hide PRICE_COLLECTOR_* variables and reset the config singleton.

    The packaged settings.yaml reads the store backend and DB URL from the
    environment, so a developer's shell must not leak into test expectations.
    """
    clean = {k: v for k, v in os.environ.items() if not k.startswith(_ENV_PREFIX)}
    config_module._config = None
    with patch.dict(os.environ, clean, clear=True):
        yield
    config_module._config = None
