from datetime import datetime, timezone

import pytest

from feirao.clock import FixedClock
from feirao.config import Settings
from feirao.discovery import DiscoveryService
from feirao.models import Listing
from feirao.moderation import ReportManager
from feirao.promotion import PromotionLifecycleManager

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock():
    return FixedClock(NOW)


@pytest.fixture()
def settings():
    return Settings(_env_file=None)


@pytest.fixture()
def lifecycle(clock, settings):
    return PromotionLifecycleManager(clock=clock, settings=settings)


@pytest.fixture()
def discovery(lifecycle):
    return DiscoveryService(lifecycle)


@pytest.fixture()
def reports(clock, settings):
    return ReportManager(clock=clock, settings=settings)


@pytest.fixture()
def make_listing():
    counter = {"next": 1}

    def _make(**overrides):
        data = {
            "id": str(counter["next"]),
            "category": "vehicle",
            "title": "Fiat Uno 2010",
            "price": 25000,
            "location": "Taguatinga, DF",
        }
        data.update(overrides)
        counter["next"] += 1
        return Listing(**data)

    return _make
