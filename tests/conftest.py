"""
Pytest configuration and fixtures
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from core.exceptions import HttpFailureError
from models.base import SourceId
from sync.base import ApiSource
from sync.loaders.local_store import LocalStore
from sync.orchestrator import SyncOrchestrator
from sync.transformers.definitions import build_default_registry
import httpx


class FakeClock:
    """Controllable wall clock for orchestrator and merger tests"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class FakeSource(ApiSource):
    """In-memory source API: endpoint -> records, or an error to raise"""

    def __init__(self, source_id: str, records: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        super().__init__(fetcher=None)
        self.source_id = source_id
        self.records = records or {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[str] = []

    def fail(self, endpoint: str, message: str = "Connection refused"):
        url = f"https://{self.source_id}.example.com{endpoint}"
        self.errors[endpoint] = HttpFailureError(url, 4, httpx.ConnectError(message))

    async def fetch_records(self, endpoint: str) -> List[Dict[str, Any]]:
        self.calls.append(endpoint)
        if endpoint in self.errors:
            raise self.errors[endpoint]
        return [dict(record) for record in self.records.get(endpoint, [])]


class FailingStore(LocalStore):
    """Local store whose writes to one collection always fail"""

    def __init__(self, failing_collection: str):
        super().__init__()
        self.failing_collection = failing_collection

    async def save_all(self, collection, records):
        if collection == self.failing_collection:
            raise OSError("Disk full")
        await super().save_all(collection, records)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def xivapi_mounts():
    """xivapi /Mount results"""
    return [
        {
            "Id": 1,
            "Name": "Company Chocobo",
            "Description": "A loyal companion.",
            "Order": 5,
            "Icon": "/i/004000/004001.png",
            "IsFlying": 0,
        },
        {
            "Id": 2,
            "Name": "Magitek Armor",
            "Description": "Imperial war machine.",
            "Order": 12,
            "Icon": "/i/004000/004002.png",
            "IsFlying": 1,
        },
    ]


@pytest.fixture
def ffxivcollect_mounts():
    """FFXIV Collect /mounts results"""
    return [
        {
            "id": 1,
            "name": "Company Chocobo",
            "description": "Your Grand Company chocobo.",
            "movement": "Terrestrial",
            "seats": 1,
            "patch": "2.0",
            "tradeable": False,
            "owned": "97.5%",
            "image": "https://ffxivcollect.com/images/mounts/1.png",
        },
        {
            "id": 3,
            "name": "Unicorn",
            "movement": "Terrestrial",
            "seats": 1,
            "patch": "2.0",
            "tradeable": False,
        },
    ]


@pytest.fixture
def sources(xivapi_mounts, ffxivcollect_mounts):
    return {
        SourceId.XIVAPI.value: FakeSource(SourceId.XIVAPI.value, {"/Mount": xivapi_mounts}),
        SourceId.FFXIVCOLLECT.value: FakeSource(
            SourceId.FFXIVCOLLECT.value, {"/mounts": ffxivcollect_mounts}
        ),
    }


@pytest.fixture
def local_store():
    return LocalStore()


@pytest.fixture
def orchestrator(registry, sources, local_store, clock):
    return SyncOrchestrator(
        registry=registry,
        sources=sources,
        backend=local_store,
        clock=clock
    )


@pytest.fixture
def make_source():
    """Factory for extra in-memory sources"""
    return FakeSource


@pytest.fixture
def failing_store():
    return FailingStore("db_mounts")


@pytest.fixture
def state_failing_store():
    """Store that cannot save the sync state collection"""
    return FailingStore("sync_state")
