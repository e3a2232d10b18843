"""
IEP Compliance Monitor - Test Configuration and Fixtures
"""
import os
from datetime import timedelta
from typing import AsyncGenerator, Callable
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_iep_monitor.db'
os.environ['LOG_LEVEL'] = 'WARNING'

from iep_monitor.main import app
from iep_monitor.core.config import settings
from iep_monitor.core.database import Base, get_db
from iep_monitor.core.types import generate_uuid, utcnow
from iep_monitor.models import CaseRecord, CaseStatus

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_iep_monitor.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def owner_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def teammate_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def outsider_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def actor_headers(owner_id: str) -> dict:
    return {settings.ACTOR_HEADER: owner_id}


@pytest.fixture
def case_factory(owner_id: str) -> Callable[..., CaseRecord]:
    """Build a transient CaseRecord; every field can be overridden"""
    def build(**overrides) -> CaseRecord:
        now = utcnow()
        values = dict(
            id=generate_uuid(),
            subject_name=fake.name(),
            subject_id=fake.bothify(text='STU-#####'),
            grade_level='5',
            category='Specific Learning Disability',
            status=CaseStatus.ACTIVE,
            meeting_date=(now - timedelta(days=300)).date().isoformat(),
            annual_review_date=(now + timedelta(days=200)).date().isoformat(),
            owner_id=owner_id,
            team_members=[owner_id],
            goals=[],
            services=[],
            created_at=now - timedelta(days=1),
            updated_at=now - timedelta(days=1),
        )
        values.update(overrides)
        return CaseRecord(**values)

    return build


@pytest.fixture
def make_case(db_session: AsyncSession, case_factory):
    """Persist a CaseRecord built by case_factory"""
    async def create(**overrides) -> CaseRecord:
        record = case_factory(**overrides)
        db_session.add(record)
        await db_session.commit()
        await db_session.refresh(record)
        return record

    return create
