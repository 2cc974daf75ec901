"""
FieldOps - Test Configuration

Pytest fixtures and configuration.

Tests run against an in-memory SQLite database (aiosqlite) that is
created and dropped around every test.
"""

import os

os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite://")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_async_session
import app.models  # noqa: F401
from app.models.task import JobType, Task, TaskAssignee
from app.models.user import PayType, User, UserRole
from app.utils.security import create_access_token
from main import app


# Create test engine
test_engine = create_async_engine(
    "sqlite+aiosqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

async def _create_user(db_session: AsyncSession, **fields) -> User:
    user = User(**fields)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def boss_user(db_session: AsyncSession) -> User:
    """Boss account that manages payroll."""
    return await _create_user(
        db_session,
        username="boss",
        display_name="Somchai",
        role=UserRole.BOSS,
        pay_type=PayType.OTHER,
    )


@pytest_asyncio.fixture
async def plain_user(db_session: AsyncSession) -> User:
    """Regular user without payroll rights."""
    return await _create_user(
        db_session,
        username="viewer",
        role=UserRole.USER,
        pay_type=PayType.OTHER,
    )


@pytest_asyncio.fixture
async def rai_worker(db_session: AsyncSession) -> User:
    """Worker paid per rai: 60/rai, 500 per repair."""
    return await _create_user(
        db_session,
        username="driver1",
        display_name="Prasert",
        role=UserRole.USER,
        pay_type=PayType.PER_RAI,
        default_rate_per_rai=Decimal("60.00"),
        default_repair_rate=Decimal("500.00"),
    )


@pytest_asyncio.fixture
async def daily_worker(db_session: AsyncSession) -> User:
    """Worker paid a flat 400 per job."""
    return await _create_user(
        db_session,
        username="helper1",
        role=UserRole.USER,
        pay_type=PayType.DAILY,
        default_daily_rate=Decimal("400.00"),
        default_repair_rate=Decimal("900.00"),
    )


@pytest_asyncio.fixture
async def make_task(db_session: AsyncSession):
    """Factory: create a task with one assignee."""

    async def _make(
        user_id: int,
        job_type: JobType = JobType.FIELD_AREA,
        start_date: date = date(2026, 1, 10),
        end_date: Optional[date] = None,
        area: Optional[Decimal] = None,
        use_default: bool = True,
        rate_per_rai: Optional[Decimal] = None,
        repair_rate: Optional[Decimal] = None,
        daily_rate: Optional[Decimal] = None,
        title: str = "Ploughing",
    ) -> Task:
        task = Task(
            title=title,
            job_type=job_type,
            start_date=start_date,
            end_date=end_date,
            area=area,
        )
        db_session.add(task)
        await db_session.flush()
        db_session.add(TaskAssignee(
            task_id=task.id,
            user_id=user_id,
            use_default=use_default,
            rate_per_rai=rate_per_rai,
            repair_rate=repair_rate,
            daily_rate=daily_rate,
        ))
        await db_session.commit()
        await db_session.refresh(task)
        return task

    return _make


def auth_headers_for(user: User) -> dict:
    token = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def boss_headers(boss_user: User) -> dict:
    return auth_headers_for(boss_user)


@pytest_asyncio.fixture
async def plain_headers(plain_user: User) -> dict:
    return auth_headers_for(plain_user)
