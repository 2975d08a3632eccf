from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from gateway.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from gateway.app.services.geo_lookup import GeoLocation
from gateway.depends import get_clock, get_geo_lookup, get_unit_of_work
from tests.fixtures.json_loader import TestDataLoader
from tests.utils.auth import bearer
from tests.utils.clock import FakeClock
from tests.utils.geo import FakeGeoLookup


@pytest.fixture
def test_data():
    return TestDataLoader()


@pytest.fixture
def fake_clock():
    return FakeClock(datetime(2026, 3, 2, 12, 0, 0))


@pytest.fixture
def geo_lookup(test_data):
    known = {
        ip: GeoLocation(**location) for ip, location in test_data.get_copy("geo_locations").items()
    }
    return FakeGeoLookup(known)


@pytest.fixture
def user_headers():
    return bearer("user-42")


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session, fake_clock, geo_lookup):
    from gateway.api.app import create_app

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_clock] = lambda: fake_clock
    app.dependency_overrides[get_geo_lookup] = lambda: geo_lookup

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
