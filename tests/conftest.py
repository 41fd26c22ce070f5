import asyncio
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.database import build_engine, init_database
from app.main import app
from app.models.fundraise import FundraiseRecord
from app.services.feed.assembler import FeedAssembler, get_feed_assembler
from app.services.feed.dataset import DatasetStore
from app.services.swipes.repositories import SwipeRepository, get_swipe_repository
from tests.helpers.records import REFERENCE_NOW, make_record


class _SyncASGIClient:
    """Minimal synchronous wrapper around httpx.AsyncClient for ASGI apps."""

    def __init__(self, app):
        transport = httpx.ASGITransport(app=app)
        self._client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    def request(self, method: str, url: str, **kwargs):
        return asyncio.run(self._client.request(method, url, **kwargs))

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs):
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs):
        return self.request("DELETE", url, **kwargs)

    def close(self) -> None:
        asyncio.run(self._client.aclose())


@pytest.fixture
def archive_records() -> list[FundraiseRecord]:
    names = ["Acme Robotics", "Birch Labs", "Cobalt AI", "Dune Health", "Ember Pay"]
    return [
        make_record(name, REFERENCE_NOW - timedelta(days=30 * (index + 1)))
        for index, name in enumerate(names)
    ]


@pytest.fixture
def recent_records() -> list[FundraiseRecord]:
    return [
        make_record("Forty Hours", REFERENCE_NOW - timedelta(hours=40)),
        make_record("One Hour", REFERENCE_NOW - timedelta(hours=1)),
        make_record("Ten Hours", REFERENCE_NOW - timedelta(hours=10)),
    ]


@pytest.fixture
def assembler(archive_records, recent_records) -> FeedAssembler:
    return FeedAssembler(DatasetStore.from_records(archive=archive_records, recent=recent_records))


@pytest.fixture
def repository():
    engine = build_engine("sqlite://")
    init_database(engine)
    repo = SwipeRepository(engine)
    yield repo
    repo.dispose()


@pytest.fixture
def api_overrides(repository, assembler):
    """Route the API at the in-memory repository and fixture datasets."""
    app.dependency_overrides[get_swipe_repository] = lambda: repository
    app.dependency_overrides[get_feed_assembler] = lambda: assembler
    try:
        yield repository, assembler
    finally:
        app.dependency_overrides.pop(get_swipe_repository, None)
        app.dependency_overrides.pop(get_feed_assembler, None)


@pytest.fixture
def client():
    """Create test client compatible with older/newer httpx releases."""
    try:
        test_client = TestClient(app)
        yield test_client
    except TypeError:
        fallback_client = _SyncASGIClient(app)
        try:
            yield fallback_client
        finally:
            fallback_client.close()
