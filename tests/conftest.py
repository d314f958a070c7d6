from __future__ import annotations

import pytest
from requests_mock import Mocker

from backend.api.views import reset_platform


@pytest.fixture
def requests_mock():
    """Intercept provider HTTP calls, including those made from worker threads."""
    with Mocker() as mock:
        yield mock


@pytest.fixture(autouse=True)
def fresh_station():
    """Every test starts without a cached web station and leaves none running."""
    reset_platform()
    yield
    reset_platform()
