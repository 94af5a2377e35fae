import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from feeledger.core.ledger.schemas import ClassFeeSchedule, OneOffFeeItem, Payment, Student
from feeledger.db.session import Base, get_db
from feeledger.main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test, wired into the FastAPI dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# --- Ledger record factories ---
@pytest.fixture()
def schedule_a() -> ClassFeeSchedule:
    return ClassFeeSchedule(id=uuid4(), name="Class 1", monthly_fee=Decimal("1000"))


@pytest.fixture()
def schedule_b() -> ClassFeeSchedule:
    return ClassFeeSchedule(id=uuid4(), name="Class 2", monthly_fee=Decimal("1500"))


@pytest.fixture()
def make_student(schedule_a):
    def _make(**overrides) -> Student:
        data = {
            "id": uuid4(),
            "class_id": schedule_a.id,
            "name": "Asha Verma",
            "admission_date": date(2024, 1, 15),
            "transport_fee": Decimal("200"),
        }
        data.update(overrides)
        return Student(**data)

    return _make


@pytest.fixture()
def make_payment():
    def _make(student: Student, amount, paid_at=None) -> Payment:
        return Payment(
            id=uuid4(),
            student_id=student.id,
            amount_paid=Decimal(str(amount)),
            paid_at=paid_at or date(2024, 3, 1).isoformat() + "T10:00:00",
        )

    return _make


@pytest.fixture()
def make_fee_item():
    def _make(student: Student, title: str, amount, category: str = "exam") -> OneOffFeeItem:
        return OneOffFeeItem(
            id=uuid4(),
            student_id=student.id,
            category=category,
            title=title,
            amount=Decimal(str(amount)),
        )

    return _make
