from datetime import datetime

import pytest
from unittest.mock import AsyncMock, MagicMock

FIXED_NOW = datetime(2026, 3, 2, 12, 0, 0)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    # Writes echo the entity back, like flush + refresh
    uow.security_events.create = AsyncMock(side_effect=lambda event: event)
    uow.security_alerts.create = AsyncMock(side_effect=lambda alert: alert)
    return uow
