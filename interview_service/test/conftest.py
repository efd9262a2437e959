"""
Shared fixtures for the interview service tests.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from interview_service.core.route_limiters import limiter
from interview_service.database import build_engine, create_tables, drop_tables
from interview_service.services.transcript_store.transcript_store import TranscriptStore
from interview_service.test.fakes import InMemoryTranscriptStore

limiter.enabled = False


@pytest.fixture
def memory_store():
    return InMemoryTranscriptStore()


@pytest_asyncio.fixture
async def sqlite_engine():
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await drop_tables(engine)
    await engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine):
    return TranscriptStore(async_sessionmaker(sqlite_engine, expire_on_commit=False, class_=AsyncSession))
