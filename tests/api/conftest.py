"""Fixtures for HTTP API tests (FastAPI)."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import claudemon.dashboard as dash_module
from claudemon.config import MonitorConfig
from claudemon.core import MonitorDB
from claudemon.dashboard import create_app
from claudemon.scheduler import ScanScheduler
from tests._db_factory import make_db
from tests._fakes import FakeRunner, RecordingActivity


@pytest.fixture
def api_db(tmp_path: Path) -> Generator[MonitorDB, None, None]:
    """MonitorDB usable from FastAPI's threadpool."""
    d = make_db(tmp_path, check_same_thread=False)
    yield d
    d.close()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def api_scheduler(tmp_path: Path, fake_runner: FakeRunner) -> ScanScheduler:
    return ScanScheduler(
        ["scan-claude"],
        cwd=tmp_path,
        runner=fake_runner,
        interval_ms=60_000,
        activity=RecordingActivity(),
    )


@contextlib.asynccontextmanager
async def _client_for(
    db: MonitorDB,
    scheduler: ScanScheduler | None,
    config: MonitorConfig,
) -> AsyncIterator[AsyncClient]:
    dash_module._db = db
    dash_module._scheduler = scheduler
    dash_module._config = config
    app = create_app()
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        if scheduler is not None:
            await scheduler.aclose()
        dash_module._db = None
        dash_module._scheduler = None
        dash_module._config = None


@pytest.fixture
async def client(api_db: MonitorDB, api_scheduler: ScanScheduler) -> AsyncIterator[AsyncClient]:
    """Test client backed by a fresh DB and a scheduler with a fake runner."""
    async with _client_for(api_db, api_scheduler, MonitorConfig()) as c:
        yield c


@pytest.fixture
async def bare_client(api_db: MonitorDB) -> AsyncIterator[AsyncClient]:
    """Test client with no scan command configured (no scheduler)."""
    async with _client_for(api_db, None, MonitorConfig()) as c:
        yield c


@pytest.fixture
async def small_page_client(api_db: MonitorDB) -> AsyncIterator[AsyncClient]:
    """Test client with tiny page size limits."""
    async with _client_for(api_db, None, MonitorConfig(default_page_size=2, max_page_size=3)) as c:
        yield c
