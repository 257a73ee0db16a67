"""
TaxBridge - Test Configuration

Pytest fixtures and configuration.
"""

import os

# Point the application at SQLite before any taxbridge module reads settings
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal
from typing import AsyncGenerator, Callable, Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import taxbridge.models  # noqa: F401
from taxbridge.database import Base, get_async_session
from taxbridge.models.enums import AccountType
from taxbridge.models.payroll import Employee
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and session for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """File-backed database so independent sessions get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taxbridge.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


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

@pytest.fixture
def company_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_employee(db_session: AsyncSession) -> Callable:
    """Factory for employees. Benefit flags default to fully enrolled."""
    counter = {"n": 0}

    async def _make(
        entity_id: UUID,
        salary: Decimal = Decimal("250000.00"),
        entity_type: AccountType = AccountType.COMPANY,
        is_active: Optional[bool] = True,
        has_pension: Optional[bool] = True,
        has_nhf: Optional[bool] = True,
        has_nhis: Optional[bool] = True,
    ) -> Employee:
        counter["n"] += 1
        employee = Employee(
            id=uuid4(),
            entity_id=entity_id,
            entity_type=entity_type,
            employee_code=f"EMP{counter['n']:03d}",
            first_name="Adaeze",
            last_name=f"Okafor{counter['n']}",
            salary=salary,
            is_active=is_active,
            has_pension=has_pension,
            has_nhf=has_nhf,
            has_nhis=has_nhis,
        )
        db_session.add(employee)
        await db_session.commit()
        return employee

    return _make
