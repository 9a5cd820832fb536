import pytest
from unittest.mock import AsyncMock, MagicMock

from capwatchbot.models import Watch
from capwatchbot.storage import WatchStore

OWNER = 1001
OTHER = 2002


def change_watch(delta=100.0, label="bonk", address="Addr1", symbol="BONK", **kw):
    return Watch.change_threshold(label, address, symbol, delta, **kw)


def cross_watch(target=150.0, label="wif", address="Addr2", symbol="WIF", **kw):
    return Watch.target_cross(label, address, symbol, target, **kw)


@pytest.fixture
def store():
    return WatchStore()


@pytest.fixture
def market():
    m = MagicMock()
    m.resolve_symbol = AsyncMock(return_value="BONK")
    m.fetch_supply = AsyncMock(return_value=1_000.0)
    m.fetch_price = AsyncMock(return_value=1.0)
    return m


@pytest.fixture
def notifier():
    n = MagicMock()
    n.send = AsyncMock()
    return n
