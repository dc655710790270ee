"""Shared fixtures."""

import pytest

from newsdesk.config import ConfigModel
from newsdesk.scheduler import RateLimiter
from newsdesk.storage import InMemoryStorage


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(0)


@pytest.fixture
def config_model() -> ConfigModel:
    return ConfigModel(
        scheduler={"interval_seconds": 0},
        service={"account_name": "acct", "poll_interval": 0, "max_polls": 5},
        rewrite={"auto_start": False, "batch_size": 2},
    )
